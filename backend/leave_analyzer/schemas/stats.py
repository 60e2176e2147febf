from datetime import date
from uuid import UUID

from pydantic import BaseModel

from leave_analyzer.schemas.records import CanonicalRecord


class EmployeeMonthSummary(BaseModel):
    employee_id: UUID
    employee_name: str
    month_label: str
    total_expected_hours: float
    total_worked_hours: float
    leaves_taken: int
    leaves_allowed: int
    productivity_percent: float


class EmployeeMonthStatistic(EmployeeMonthSummary):
    daily_breakdown: list[CanonicalRecord]


class MonthStatisticsResponse(BaseModel):
    month_label: str
    year: int
    month: int
    total_records: int
    total_employees: int
    statistics: list[EmployeeMonthStatistic]


class PreviousMonthResponse(BaseModel):
    month_label: str
    year: int
    month: int
    statistics: list[EmployeeMonthSummary]


class MonthProductivity(BaseModel):
    month: int
    month_name: str
    productivity_percent: float
    leaves_taken: int
    worked_hours: float
    expected_hours: float


class EmployeeYearStatistic(BaseModel):
    employee_id: UUID
    employee_name: str
    year: int
    total_worked_hours: float
    total_expected_hours: float
    total_leaves_taken: int
    total_leaves_allowed: int
    avg_productivity_percent: float
    avg_monthly_hours: float
    exceeded_limit_months: int
    best_month: MonthProductivity | None
    worst_month: MonthProductivity | None
    monthly_breakdown: list[MonthProductivity]


class YearAggregateResponse(BaseModel):
    year: int
    total_employees: int
    total_hours: float
    total_leaves: int
    avg_productivity_percent: float
    avg_hours: float
    month_count: int
    employees: list[EmployeeYearStatistic]


class WorkforceEntry(BaseModel):
    employee_id: UUID
    employee_name: str
    worked_hours: float
    is_leave: bool
    is_holiday: bool


class WorkforceDaySnapshot(BaseModel):
    day: date
    per_employee: list[WorkforceEntry]


class WorkforceMonthResponse(BaseModel):
    year: int
    month: int
    daily_breakdown: list[WorkforceDaySnapshot]


class YearComparisonEntry(BaseModel):
    year: int
    total_worked_hours: float
    total_leaves: int
    employee_count: int
    avg_productivity_percent: float
    avg_hours_per_employee: float
    avg_leaves_per_employee: float


class EmployeeProductivity(BaseModel):
    employee_id: UUID
    employee_name: str
    total_worked_hours: float
    total_expected_hours: float
    leave_days: int
    productivity_percent: float


class EmployeeProductivityResponse(BaseModel):
    year: int
    employees: list[EmployeeProductivity]
