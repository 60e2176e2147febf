"""
Builds canonical attendance records from raw spreadsheet rows.

Each row goes through date normalization, worked-hours calculation and day
classification.  Rows that cannot be placed on a calendar day inside the
target month are skipped with a message; the batch carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any, Protocol

from leave_analyzer.core.exceptions import DateParseError
from leave_analyzer.schemas.records import CanonicalRecord
from leave_analyzer.services.classifier import DayStatus, classify
from leave_analyzer.services.dates import (
    RawDate,
    day_name,
    month_label,
    month_label_for,
    normalize_date,
)
from leave_analyzer.services.hours import RawTime, compute_worked_hours, parse_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawRow:
    employee_name: Any
    date_value: RawDate | None
    in_time: RawTime = None
    out_time: RawTime = None
    row_number: int | None = None

    def label(self) -> str:
        return f"Row {self.row_number}" if self.row_number is not None else "Row"


@dataclass(frozen=True)
class ClassifiedRow:
    """A row resolved to a day and a status, not yet bound to an employee id."""

    employee_name: str
    day: date
    in_time: time | None
    out_time: time | None
    worked_hours: float
    expected_hours: float
    status: DayStatus


@dataclass
class PreparedBatch:
    month_label: str
    rows: list[ClassifiedRow] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rows_seen: int = 0
    duplicates_replaced: int = 0


class EmployeeResolver(Protocol):
    async def find_or_create_employee(self, name: str, *, cache: dict | None = None) -> Any: ...


def classify_row(row: RawRow) -> ClassifiedRow:
    """Normalize and classify one row.  Raises DateParseError on a bad date."""
    day = normalize_date(row.date_value)
    in_clock = parse_clock(row.in_time)
    out_clock = parse_clock(row.out_time)
    worked = compute_worked_hours(in_clock, out_clock)
    status, expected, worked = classify(day_name(day), in_clock, out_clock, worked)
    return ClassifiedRow(
        employee_name=str(row.employee_name).strip(),
        day=day,
        in_time=in_clock,
        out_time=out_clock,
        worked_hours=worked,
        expected_hours=expected,
        status=status,
    )


def prepare_batch(rows: list[RawRow], year: int, month: int) -> PreparedBatch:
    """
    Classify every row of an upload for the ``year``-``month`` partition.

    Rows without a name or date are ignored silently, like blank spreadsheet
    lines.  A repeated (employee, day) pair keeps the last occurrence.
    """
    label = month_label(year, month)
    batch = PreparedBatch(month_label=label)
    by_key: dict[tuple[str, date], ClassifiedRow] = {}

    for row in rows:
        name = "" if row.employee_name is None else str(row.employee_name).strip()
        if not name or row.date_value is None or row.date_value == "":
            continue
        batch.rows_seen += 1

        try:
            classified = classify_row(row)
        except DateParseError as exc:
            msg = f"{row.label()}: invalid date {exc.value!r} ({exc.reason})"
            logger.warning("Skipped: %s (employee='%s')", msg, name)
            batch.errors.append(msg)
            continue

        if month_label_for(classified.day) != label:
            msg = (
                f"{row.label()}: date {classified.day.isoformat()} is outside "
                f"the uploaded month {label}"
            )
            logger.warning("Skipped: %s (employee='%s')", msg, name)
            batch.errors.append(msg)
            continue

        key = (classified.employee_name, classified.day)
        if key in by_key:
            batch.duplicates_replaced += 1
            logger.debug("%s: duplicate day %s for '%s', keeping last", row.label(), classified.day, name)
        by_key[key] = classified

    batch.rows = sorted(by_key.values(), key=lambda r: (r.employee_name, r.day))
    return batch


def build_record(row: ClassifiedRow, employee_id: Any, label: str) -> CanonicalRecord:
    return CanonicalRecord(
        employee_id=employee_id,
        employee_name=row.employee_name,
        day=row.day,
        day_of_week=day_name(row.day),
        in_time=row.in_time,
        out_time=row.out_time,
        worked_hours=row.worked_hours,
        expected_hours=row.expected_hours,
        status=row.status,
        is_leave=row.status is DayStatus.LEAVE,
        is_holiday=row.status is DayStatus.HOLIDAY,
        month_label=label,
    )


async def build_records(
    batch: PreparedBatch, resolver: EmployeeResolver
) -> tuple[list[CanonicalRecord], dict[str, Any]]:
    """
    Bind classified rows to employee identities.

    Returns the records and the ``name -> employee`` map used, one lookup
    (or creation) per distinct name.
    """
    cache: dict[str, Any] = {}
    records: list[CanonicalRecord] = []
    for row in batch.rows:
        employee = await resolver.find_or_create_employee(row.employee_name, cache=cache)
        records.append(build_record(row, employee.id, batch.month_label))
    return records, cache
