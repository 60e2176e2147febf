from datetime import date, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from leave_analyzer.services.classifier import DayStatus


class CanonicalRecord(BaseModel):
    """Classified attendance fact for one employee on one day."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    employee_id: UUID
    employee_name: str
    day: date
    day_of_week: str
    in_time: time | None
    out_time: time | None
    worked_hours: float
    expected_hours: float
    status: DayStatus
    is_leave: bool
    is_holiday: bool
    month_label: str
