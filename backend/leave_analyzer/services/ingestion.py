"""
Month-partition ingestion.

A batch targets exactly one ``YYYY-MM`` partition.  If the partition already
holds data the batch fails with DuplicatePartitionError unless override was
requested, in which case the old partition is deleted and the new one
inserted inside the same transaction.  Writers to the same partition are
serialized; different partitions proceed independently.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
import zlib
from dataclasses import dataclass, field

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leave_analyzer.core.exceptions import DuplicatePartitionError, EmptyBatchError
from leave_analyzer.db.repository import AttendanceRepository
from leave_analyzer.schemas.stats import EmployeeMonthStatistic
from leave_analyzer.services.aggregator import month_statistics
from leave_analyzer.services.record_builder import RawRow, build_records, prepare_batch

logger = logging.getLogger(__name__)

# An entry lives only while some upload holds or waits on it
_partition_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _partition_lock(month_label: str) -> asyncio.Lock:
    lock = _partition_locks.get(month_label)
    if lock is None:
        lock = _partition_locks[month_label] = asyncio.Lock()
    return lock


@dataclass
class IngestionResult:
    month_label: str
    rows_seen: int
    inserted_count: int
    employee_count: int
    overridden: bool
    errors: list[str] = field(default_factory=list)
    statistics: list[EmployeeMonthStatistic] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "partial" if self.errors else "success"


async def _lock_partition_in_db(db: AsyncSession, month_label: str) -> None:
    """Transaction-scoped advisory lock so separate processes serialize too."""
    if db.get_bind().dialect.name != "postgresql":
        return
    key = zlib.crc32(month_label.encode())
    await db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})


async def ingest_batch(
    rows: list[RawRow],
    *,
    year: int,
    month: int,
    override: bool,
    db: AsyncSession,
    filename: str = "unknown",
) -> IngestionResult:
    """
    Classify, store and summarize one month of attendance rows.

    Raises InvalidRangeError for a bad (year, month), DuplicatePartitionError
    when the month exists and ``override`` is False, and EmptyBatchError when
    no row survives validation.  On any failure storage is left untouched.
    """
    batch = prepare_batch(rows, year, month)
    label = batch.month_label

    async with _partition_lock(label):
        repo = AttendanceRepository(db)
        try:
            await _lock_partition_in_db(db, label)

            existing = await repo.count_partition(label)
            if existing and not override:
                logger.warning(
                    "Rejected upload '%s': partition %s already has %d records",
                    filename, label, existing,
                )
                raise DuplicatePartitionError(label, existing)

            if not batch.rows:
                logger.warning(
                    "Rejected upload '%s': no valid rows (seen=%d, errors=%d)",
                    filename, batch.rows_seen, len(batch.errors),
                )
                raise EmptyBatchError(batch.rows_seen, 0)

            records, employees = await build_records(batch, repo)
            allowances = {emp.id: emp.leaves_per_month for emp in employees.values()}

            if existing:
                await repo.delete_by_partition(label)
                logger.info("Override: replacing %d records of %s", existing, label)

            inserted = await repo.insert_batch(records)

            result = IngestionResult(
                month_label=label,
                rows_seen=batch.rows_seen,
                inserted_count=inserted,
                employee_count=len(employees),
                overridden=bool(existing),
                errors=batch.errors,
            )

            await repo.add_import_history(
                filename=filename,
                month_label=label,
                status=result.status,
                logs={
                    "total": batch.rows_seen,
                    "inserted": inserted,
                    "employees": len(employees),
                    "overridden": bool(existing),
                    "replaced_duplicates": batch.duplicates_replaced,
                    "errors": batch.errors[:100],
                },
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    result.statistics = month_statistics(label, records, allowances)

    logger.info(
        "Import '%s' into %s: status=%s, seen=%d, inserted=%d, employees=%d, errors=%d",
        filename, label, result.status, result.rows_seen, inserted,
        result.employee_count, len(result.errors),
    )
    return result
