"""
Productivity analytics routes.

Every route validates its year/month first (400 on nonsense input), then
loads canonical records with a single range or partition query and hands
them to the pure aggregator.  A valid query with no stored data answers 404,
except the workforce and comparison views, which report empty/zero results.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_analyzer.core.exceptions import InvalidRangeError
from leave_analyzer.db.repository import AttendanceRepository
from leave_analyzer.db.session import get_db
from leave_analyzer.schemas.attendance import PartitionSummary
from leave_analyzer.schemas.stats import (
    EmployeeMonthSummary,
    EmployeeProductivityResponse,
    MonthStatisticsResponse,
    PreviousMonthResponse,
    WorkforceDaySnapshot,
    WorkforceMonthResponse,
    YearAggregateResponse,
    YearComparisonEntry,
)
from leave_analyzer.services import aggregator
from leave_analyzer.services.dates import (
    month_bounds,
    month_label,
    previous_month,
    validate_year,
    year_bounds,
)

router = APIRouter()


def _bad_range(exc: InvalidRangeError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


@router.get(
    "/month/{year}/{month}",
    response_model=MonthStatisticsResponse,
    summary="Per-employee statistics for one month",
)
async def get_month(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
) -> MonthStatisticsResponse:
    try:
        label = month_label(year, month)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_partition(label)
    if not records:
        raise _not_found(f"No attendance data found for {label}")

    allowances = await repo.leave_allowances(r.employee_id for r in records)
    statistics = aggregator.month_statistics(label, records, allowances)

    return MonthStatisticsResponse(
        month_label=label,
        year=year,
        month=month,
        total_records=len(records),
        total_employees=len(statistics),
        statistics=statistics,
    )


@router.get(
    "/previous-month/{year}/{month}",
    response_model=PreviousMonthResponse,
    summary="Summary statistics for the month before the given one",
)
async def get_previous_month(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
) -> PreviousMonthResponse:
    try:
        month_label(year, month)
        prev_year, prev_month = previous_month(year, month)
        label = month_label(prev_year, prev_month)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_partition(label)
    if not records:
        raise _not_found(f"No attendance data found for {label}")

    allowances = await repo.leave_allowances(r.employee_id for r in records)
    statistics = aggregator.month_statistics(label, records, allowances)

    return PreviousMonthResponse(
        month_label=label,
        year=prev_year,
        month=prev_month,
        statistics=[
            EmployeeMonthSummary(**stat.model_dump(exclude={"daily_breakdown"}))
            for stat in statistics
        ],
    )


@router.get(
    "/year-aggregated/{year}",
    response_model=YearAggregateResponse,
    summary="Per-employee yearly statistics with workforce totals",
)
async def get_year_aggregated(
    year: int,
    db: AsyncSession = Depends(get_db),
) -> YearAggregateResponse:
    try:
        validate_year(year)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_date_range(*year_bounds(year))
    if not records:
        raise _not_found(f"No attendance data found for {year}")

    allowances = await repo.leave_allowances(r.employee_id for r in records)
    employees = aggregator.year_statistics(year, records, allowances)
    return aggregator.year_aggregate(year, employees)


@router.get(
    "/workforce/{year}/{month}",
    response_model=WorkforceMonthResponse,
    summary="Daily workforce snapshots for one month",
)
async def get_workforce(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
) -> WorkforceMonthResponse:
    try:
        month_label(year, month)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_date_range(*month_bounds(year, month))
    return WorkforceMonthResponse(
        year=year,
        month=month,
        daily_breakdown=aggregator.workforce_snapshots(records),
    )


@router.get(
    "/day/{day}",
    response_model=WorkforceDaySnapshot,
    summary="Workforce snapshot for a single day",
)
async def get_day(
    day: date,
    db: AsyncSession = Depends(get_db),
) -> WorkforceDaySnapshot:
    try:
        validate_year(day.year)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    start, end = month_bounds(day.year, day.month)
    records = await repo.find_by_date_range(start, end)
    return aggregator.workforce_day_snapshot(day, records)


@router.get(
    "/year-comparison",
    response_model=list[YearComparisonEntry],
    summary="Year-over-year workforce comparison",
)
async def get_year_comparison(
    years: list[int] | None = Query(default=None, description="Defaults to last and current year"),
    db: AsyncSession = Depends(get_db),
) -> list[YearComparisonEntry]:
    if not years:
        current = date.today().year
        years = [current - 1, current]
    try:
        for y in years:
            validate_year(y)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_date_range(
        year_bounds(min(years))[0], year_bounds(max(years))[1]
    )
    return aggregator.year_comparison(records, years)


@router.get(
    "/employees/productivity/{year}",
    response_model=EmployeeProductivityResponse,
    summary="Yearly productivity totals per employee",
)
async def get_employee_productivity(
    year: int,
    db: AsyncSession = Depends(get_db),
) -> EmployeeProductivityResponse:
    try:
        validate_year(year)
    except InvalidRangeError as exc:
        raise _bad_range(exc)

    repo = AttendanceRepository(db)
    records = await repo.find_by_date_range(*year_bounds(year))
    return EmployeeProductivityResponse(
        year=year,
        employees=aggregator.employee_productivity(records),
    )


@router.get(
    "/months",
    response_model=list[PartitionSummary],
    summary="Months that hold attendance data, newest first",
)
async def list_months(db: AsyncSession = Depends(get_db)) -> list[PartitionSummary]:
    repo = AttendanceRepository(db)
    return await repo.list_partitions()
