from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from leave_analyzer.schemas.stats import EmployeeMonthStatistic


class EmployeeIdentity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    leaves_per_month: int


class EmployeeResponse(EmployeeIdentity):
    created_at: datetime | None = None


class PartitionSummary(BaseModel):
    month_label: str
    record_count: int
    employee_count: int
    last_updated: datetime | None


class ImportResultResponse(BaseModel):
    filename: str
    month_label: str
    total: int
    inserted_count: int
    employee_count: int
    error_count: int
    errors: list[str]
    overridden: bool
    status: Literal["success", "partial"]
    statistics: list[EmployeeMonthStatistic]
