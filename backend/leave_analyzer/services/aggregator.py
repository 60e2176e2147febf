"""
Productivity roll-ups over canonical attendance records.

Every function here is pure: it takes already-classified records and returns
schema objects, never touching storage and never re-deriving a day's status.
Sums go through ``math.fsum`` over day-sorted input so that replaying the
same records always produces identical figures.
"""

from __future__ import annotations

import math
import uuid
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from leave_analyzer.core.config import settings
from leave_analyzer.schemas.records import CanonicalRecord
from leave_analyzer.schemas.stats import (
    EmployeeMonthStatistic,
    EmployeeProductivity,
    EmployeeYearStatistic,
    MonthProductivity,
    WorkforceDaySnapshot,
    WorkforceEntry,
    YearAggregateResponse,
    YearComparisonEntry,
)
from leave_analyzer.services.classifier import DayStatus

MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def productivity(worked: float, expected: float) -> float:
    """worked / expected * 100, or 0 when nothing was expected."""
    if expected <= 0:
        return 0.0
    return worked / expected * 100


def _r2(value: float) -> float:
    return round(value, 2)


def _by_day(records: Iterable[CanonicalRecord]) -> list[CanonicalRecord]:
    return sorted(records, key=lambda r: (r.day, str(r.employee_id)))


def _count_leaves(records: Iterable[CanonicalRecord]) -> int:
    return sum(1 for r in records if r.status is DayStatus.LEAVE)


def _group_by_employee(
    records: Iterable[CanonicalRecord],
) -> dict[uuid.UUID, list[CanonicalRecord]]:
    grouped: dict[uuid.UUID, list[CanonicalRecord]] = defaultdict(list)
    for rec in records:
        grouped[rec.employee_id].append(rec)
    return grouped


def _display_name(records: Sequence[CanonicalRecord]) -> str:
    return records[0].employee_name if records else ""


# ---------------------------------------------------------------------------
# Employee / month
# ---------------------------------------------------------------------------


def month_statistic(
    employee_id: uuid.UUID,
    month_label: str,
    records: Iterable[CanonicalRecord],
    leaves_allowed: int | None = None,
) -> EmployeeMonthStatistic:
    """Totals, leave count and productivity for one employee in one month."""
    if leaves_allowed is None:
        leaves_allowed = settings.DEFAULT_LEAVES_PER_MONTH
    ordered = _by_day(records)

    total_expected = math.fsum(r.expected_hours for r in ordered)
    total_worked = math.fsum(r.worked_hours for r in ordered)

    return EmployeeMonthStatistic(
        employee_id=employee_id,
        employee_name=_display_name(ordered),
        month_label=month_label,
        total_expected_hours=_r2(total_expected),
        total_worked_hours=_r2(total_worked),
        leaves_taken=_count_leaves(ordered),
        leaves_allowed=leaves_allowed,
        productivity_percent=_r2(productivity(total_worked, total_expected)),
        daily_breakdown=ordered,
    )


def month_statistics(
    month_label: str,
    records: Iterable[CanonicalRecord],
    allowances: Mapping[uuid.UUID, int] | None = None,
) -> list[EmployeeMonthStatistic]:
    """``month_statistic`` for every employee in a partition, sorted by name."""
    allowances = allowances or {}
    stats = [
        month_statistic(emp_id, month_label, recs, allowances.get(emp_id))
        for emp_id, recs in _group_by_employee(records).items()
    ]
    return sorted(stats, key=lambda s: (s.employee_name, str(s.employee_id)))


# ---------------------------------------------------------------------------
# Employee / year
# ---------------------------------------------------------------------------


def _monthly_breakdown(
    records: Iterable[CanonicalRecord],
) -> list[tuple[float, MonthProductivity]]:
    """Per-month figures, each paired with its unrounded productivity."""
    by_month: dict[int, list[CanonicalRecord]] = defaultdict(list)
    for rec in _by_day(records):
        by_month[rec.day.month].append(rec)

    breakdown = []
    for month in sorted(by_month):
        recs = by_month[month]
        worked = math.fsum(r.worked_hours for r in recs)
        expected = math.fsum(r.expected_hours for r in recs)
        raw = productivity(worked, expected)
        breakdown.append(
            (
                raw,
                MonthProductivity(
                    month=month,
                    month_name=MONTH_NAMES[month - 1],
                    productivity_percent=_r2(raw),
                    leaves_taken=_count_leaves(recs),
                    worked_hours=_r2(worked),
                    expected_hours=_r2(expected),
                ),
            )
        )
    return breakdown


def year_statistic(
    employee_id: uuid.UUID,
    year: int,
    records: Iterable[CanonicalRecord],
    leaves_per_month: int | None = None,
) -> EmployeeYearStatistic:
    """
    Yearly view of one employee built from per-month productivity.

    Months with zero productivity (all holidays/leave, or no expected hours)
    are left out of the average and of the best/worst pick.  Both work on
    unrounded monthly figures; only the reported values are rounded.
    """
    if leaves_per_month is None:
        leaves_per_month = settings.DEFAULT_LEAVES_PER_MONTH
    ordered = _by_day(records)
    breakdown = _monthly_breakdown(ordered)
    months = [m for _, m in breakdown]

    total_worked = math.fsum(r.worked_hours for r in ordered)
    total_expected = math.fsum(r.expected_hours for r in ordered)

    productive = [(raw, m) for raw, m in breakdown if raw > 0]
    avg_productivity = (
        math.fsum(raw for raw, _ in productive) / len(productive) if productive else 0.0
    )

    # max/min keep the earliest month on ties
    best = max(productive, key=lambda p: p[0], default=(None, None))[1]
    worst = min(productive, key=lambda p: p[0], default=(None, None))[1]

    return EmployeeYearStatistic(
        employee_id=employee_id,
        employee_name=_display_name(ordered),
        year=year,
        total_worked_hours=_r2(total_worked),
        total_expected_hours=_r2(total_expected),
        total_leaves_taken=sum(m.leaves_taken for m in months),
        total_leaves_allowed=len(months) * leaves_per_month,
        avg_productivity_percent=_r2(avg_productivity),
        avg_monthly_hours=_r2(total_worked / len(months)) if months else 0.0,
        exceeded_limit_months=sum(1 for m in months if m.leaves_taken > leaves_per_month),
        best_month=best,
        worst_month=worst,
        monthly_breakdown=months,
    )


def year_statistics(
    year: int,
    records: Iterable[CanonicalRecord],
    allowances: Mapping[uuid.UUID, int] | None = None,
) -> list[EmployeeYearStatistic]:
    allowances = allowances or {}
    stats = [
        year_statistic(emp_id, year, recs, allowances.get(emp_id))
        for emp_id, recs in _group_by_employee(r for r in records if r.day.year == year).items()
    ]
    return sorted(stats, key=lambda s: (s.employee_name, str(s.employee_id)))


def year_aggregate(year: int, employees: Sequence[EmployeeYearStatistic]) -> YearAggregateResponse:
    """Workforce totals over a set of per-employee year statistics."""
    count = len(employees)
    total_hours = math.fsum(e.total_worked_hours for e in employees)
    total_leaves = sum(e.total_leaves_taken for e in employees)
    avg_productivity = (
        math.fsum(e.avg_productivity_percent for e in employees) / count if count else 0.0
    )
    return YearAggregateResponse(
        year=year,
        total_employees=count,
        total_hours=_r2(total_hours),
        total_leaves=total_leaves,
        avg_productivity_percent=_r2(avg_productivity),
        avg_hours=_r2(total_hours / count) if count else 0.0,
        month_count=max((len(e.monthly_breakdown) for e in employees), default=0),
        employees=list(employees),
    )


def employee_productivity(records: Iterable[CanonicalRecord]) -> list[EmployeeProductivity]:
    """Flat yearly totals per employee (no monthly split)."""
    result = []
    for emp_id, recs in _group_by_employee(records).items():
        ordered = _by_day(recs)
        worked = math.fsum(r.worked_hours for r in ordered)
        expected = math.fsum(r.expected_hours for r in ordered)
        result.append(
            EmployeeProductivity(
                employee_id=emp_id,
                employee_name=_display_name(ordered),
                total_worked_hours=_r2(worked),
                total_expected_hours=_r2(expected),
                leave_days=_count_leaves(ordered),
                productivity_percent=_r2(productivity(worked, expected)),
            )
        )
    return sorted(result, key=lambda e: (e.employee_name, str(e.employee_id)))


# ---------------------------------------------------------------------------
# Workforce
# ---------------------------------------------------------------------------


def workforce_day_snapshot(day: date, records: Iterable[CanonicalRecord]) -> WorkforceDaySnapshot:
    """One entry per employee with a record on ``day``; other days are ignored."""
    entries = []
    for emp_id, recs in _group_by_employee(r for r in records if r.day == day).items():
        entries.append(
            WorkforceEntry(
                employee_id=emp_id,
                employee_name=_display_name(recs),
                worked_hours=_r2(math.fsum(r.worked_hours for r in recs)),
                is_leave=any(r.is_leave for r in recs),
                is_holiday=any(r.is_holiday for r in recs),
            )
        )
    entries.sort(key=lambda e: (e.employee_name, str(e.employee_id)))
    return WorkforceDaySnapshot(day=day, per_employee=entries)


def workforce_snapshots(records: Iterable[CanonicalRecord]) -> list[WorkforceDaySnapshot]:
    """A snapshot for every day that has at least one record, ascending."""
    records = list(records)
    days = sorted({r.day for r in records})
    by_day: dict[date, list[CanonicalRecord]] = defaultdict(list)
    for rec in records:
        by_day[rec.day].append(rec)
    return [workforce_day_snapshot(d, by_day[d]) for d in days]


# ---------------------------------------------------------------------------
# Year over year
# ---------------------------------------------------------------------------


def year_comparison(
    records: Iterable[CanonicalRecord], years: Iterable[int]
) -> list[YearComparisonEntry]:
    """
    Workforce totals per requested year, ascending.

    A year without records yields an entry of zeros rather than being dropped.
    """
    by_year: dict[int, list[CanonicalRecord]] = defaultdict(list)
    for rec in records:
        by_year[rec.day.year].append(rec)

    entries = []
    for year in sorted(set(years)):
        recs = _by_day(by_year.get(year, []))
        worked = math.fsum(r.worked_hours for r in recs)
        expected = math.fsum(r.expected_hours for r in recs)
        leaves = _count_leaves(recs)
        employees = len({r.employee_id for r in recs})
        entries.append(
            YearComparisonEntry(
                year=year,
                total_worked_hours=_r2(worked),
                total_leaves=leaves,
                employee_count=employees,
                avg_productivity_percent=round(productivity(worked, expected), 1),
                avg_hours_per_employee=round(worked / employees, 1) if employees else 0.0,
                avg_leaves_per_employee=round(leaves / employees, 1) if employees else 0.0,
            )
        )
    return entries
