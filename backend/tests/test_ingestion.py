"""
Partition ingestion against an in-memory SQLite database.

Covers the override/duplicate contract, empty batches, stable employee
identities across months and the import history trail.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy import func, select

from leave_analyzer.core.exceptions import (
    DuplicatePartitionError,
    EmptyBatchError,
    InvalidRangeError,
)
from leave_analyzer.db.models import AttendanceRecord, Employee, ImportHistory
from leave_analyzer.db.repository import AttendanceRepository
from leave_analyzer.services import ingestion
from leave_analyzer.services.aggregator import month_statistics
from leave_analyzer.services.classifier import DayStatus
from leave_analyzer.services.ingestion import ingest_batch
from leave_analyzer.services.record_builder import RawRow


def march_rows(names=("Asha", "Ravi"), days=range(1, 21), in_time="09:00", out_time="17:30"):
    return [
        RawRow(name, date(2024, 3, d), in_time, out_time, row_number=i + 2)
        for i, (name, d) in enumerate((n, d) for n in names for d in days)
    ]


async def _count(db, model, *where) -> int:
    stmt = select(func.count()).select_from(model)
    if where:
        stmt = stmt.where(*where)
    return (await db.execute(stmt)).scalar()


async def test_ingest_stores_partition_and_reports_statistics(db) -> None:
    rows = [
        RawRow("Asha", "2024-03-03", row_number=2),
        RawRow("Asha", "2024-03-04", "09:00", "17:30", row_number=3),
        RawRow("Asha", "2024-03-06", row_number=4),
    ]
    result = await ingest_batch(rows, year=2024, month=3, override=False, db=db, filename="march.xlsx")

    assert result.month_label == "2024-03"
    assert result.inserted_count == 3
    assert result.employee_count == 1
    assert result.status == "success"
    assert not result.overridden

    (stat,) = result.statistics
    assert stat.employee_name == "Asha"
    assert stat.leaves_taken == 1
    assert stat.total_worked_hours == 8.5
    assert stat.total_expected_hours == 17.0
    assert stat.productivity_percent == 50.0


async def test_stored_records_reproduce_the_same_statistics(db) -> None:
    result = await ingest_batch(
        march_rows(in_time="09:07", out_time="17:41"), year=2024, month=3, override=False, db=db
    )
    stored = await AttendanceRepository(db).find_by_partition("2024-03")

    assert len(stored) == result.inserted_count
    replayed = month_statistics("2024-03", stored)
    assert [s.model_dump() for s in replayed] == [s.model_dump() for s in result.statistics]


async def test_stored_records_keep_status_and_flags(db) -> None:
    await ingest_batch(
        [RawRow("Asha", "2024-03-03", "09:00", "17:30"), RawRow("Asha", "2024-03-05")],
        year=2024, month=3, override=False, db=db,
    )
    sunday, tuesday = await AttendanceRepository(db).find_by_partition("2024-03")

    assert sunday.status is DayStatus.HOLIDAY
    assert sunday.is_holiday and sunday.worked_hours == 0.0
    assert sunday.in_time is not None
    assert tuesday.status is DayStatus.LEAVE
    assert tuesday.is_leave and tuesday.expected_hours == 8.5


async def test_existing_partition_without_override_is_untouched(db) -> None:
    await ingest_batch(march_rows(), year=2024, month=3, override=False, db=db)
    assert await _count(db, AttendanceRecord, AttendanceRecord.month_label == "2024-03") == 40

    with pytest.raises(DuplicatePartitionError) as exc_info:
        await ingest_batch(
            march_rows(names=("Meera",), days=[4]), year=2024, month=3, override=False, db=db
        )

    assert exc_info.value.month_label == "2024-03"
    assert exc_info.value.existing_count == 40
    assert await _count(db, AttendanceRecord) == 40
    assert await _count(db, Employee, Employee.name == "Meera") == 0
    assert await _count(db, ImportHistory) == 1


async def test_override_replaces_partition(db) -> None:
    await ingest_batch(march_rows(), year=2024, month=3, override=False, db=db)

    result = await ingest_batch(
        march_rows(names=("Asha",), days=[4, 5]), year=2024, month=3, override=True, db=db
    )

    assert result.overridden
    assert result.inserted_count == 2
    assert await _count(db, AttendanceRecord) == 2
    names = {r.employee_name for r in await AttendanceRepository(db).find_by_partition("2024-03")}
    assert names == {"Asha"}


async def test_override_leaves_other_months_alone(db) -> None:
    await ingest_batch(
        [RawRow("Asha", "2024-02-05", "09:00", "17:30")], year=2024, month=2, override=False, db=db
    )
    await ingest_batch(march_rows(days=[4]), year=2024, month=3, override=False, db=db)
    await ingest_batch(march_rows(days=[5]), year=2024, month=3, override=True, db=db)

    assert await _count(db, AttendanceRecord, AttendanceRecord.month_label == "2024-02") == 1
    assert await _count(db, AttendanceRecord, AttendanceRecord.month_label == "2024-03") == 2


async def test_override_on_empty_month_is_a_plain_insert(db) -> None:
    result = await ingest_batch(march_rows(days=[4]), year=2024, month=3, override=True, db=db)
    assert not result.overridden
    assert result.inserted_count == 2


async def test_batch_without_valid_rows_is_rejected(db) -> None:
    rows = [RawRow("Asha", "garbage", row_number=2), RawRow("Ravi", "2024-04-02", row_number=3)]

    with pytest.raises(EmptyBatchError) as exc_info:
        await ingest_batch(rows, year=2024, month=3, override=False, db=db)

    assert exc_info.value.rows_seen == 2
    assert exc_info.value.rows_accepted == 0
    assert await _count(db, AttendanceRecord) == 0
    assert await _count(db, ImportHistory) == 0


async def test_empty_batch_does_not_wipe_existing_month(db) -> None:
    await ingest_batch(march_rows(days=[4]), year=2024, month=3, override=False, db=db)

    with pytest.raises(EmptyBatchError):
        await ingest_batch([], year=2024, month=3, override=True, db=db)

    assert await _count(db, AttendanceRecord) == 2


async def test_invalid_month_is_rejected(db) -> None:
    with pytest.raises(InvalidRangeError):
        await ingest_batch(march_rows(days=[4]), year=2024, month=0, override=False, db=db)


async def test_partial_import_keeps_valid_rows(db) -> None:
    rows = [
        RawRow("Asha", "2024-03-04", "09:00", "17:30", row_number=2),
        RawRow("Asha", "31/02/2024", "09:00", "17:30", row_number=3),
    ]
    result = await ingest_batch(rows, year=2024, month=3, override=False, db=db, filename="p.xlsx")

    assert result.status == "partial"
    assert result.inserted_count == 1
    assert len(result.errors) == 1 and result.errors[0].startswith("Row 3:")

    total, history = await AttendanceRepository(db).list_import_history(0, 10)
    assert total == 1
    assert history[0].status == "partial"
    assert history[0].filename == "p.xlsx"
    assert history[0].logs["inserted"] == 1
    assert history[0].logs["errors"] == result.errors


async def test_employee_identity_is_stable_across_months(db) -> None:
    await ingest_batch(
        [RawRow("Asha", "2024-02-05", "09:00", "17:30")], year=2024, month=2, override=False, db=db
    )
    await ingest_batch(
        [RawRow("Asha", "2024-03-04", "09:00", "17:30")], year=2024, month=3, override=False, db=db
    )

    repo = AttendanceRepository(db)
    feb = await repo.find_by_partition("2024-02")
    mar = await repo.find_by_partition("2024-03")
    assert feb[0].employee_id == mar[0].employee_id
    assert await _count(db, Employee) == 1


async def test_concurrent_uploads_of_one_month_serialize(session_factory) -> None:
    async def attempt():
        async with session_factory() as session:
            return await ingest_batch(march_rows(), year=2024, month=3, override=False, db=session)

    outcomes = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    failures = [o for o in outcomes if isinstance(o, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1 and isinstance(failures[0], DuplicatePartitionError)

    async with session_factory() as session:
        assert await _count(session, AttendanceRecord) == 40


async def test_employee_created_by_another_upload_is_reused(session_factory, db) -> None:
    # Another month's upload commits "Asha" after this session's lookup missed
    async with session_factory() as other:
        first = await AttendanceRepository(other).find_or_create_employee("Asha")
        await other.commit()

    repo = AttendanceRepository(db)
    real_find = repo._find_employee
    calls: list[str] = []

    async def find_after_stale_read(name: str):
        calls.append(name)
        if len(calls) == 1:
            return None
        return await real_find(name)

    repo._find_employee = find_after_stale_read

    employee = await repo.find_or_create_employee("Asha")

    assert employee.id == first.id
    assert calls == ["Asha", "Asha"]
    assert await _count(db, Employee) == 1


async def test_partition_locks_are_released_after_upload(db) -> None:
    await ingest_batch(march_rows(days=[4]), year=2024, month=3, override=False, db=db)
    assert "2024-03" not in ingestion._partition_locks
