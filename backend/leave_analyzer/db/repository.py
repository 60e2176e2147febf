"""
Storage access for attendance partitions and employee identities.

All calls operate at batch granularity (one SELECT / DELETE / INSERT per
partition), never per record.  Transaction boundaries belong to the caller:
nothing here commits.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from leave_analyzer.core.config import settings
from leave_analyzer.db.models import AttendanceRecord, Employee, ImportHistory
from leave_analyzer.schemas.attendance import PartitionSummary
from leave_analyzer.schemas.records import CanonicalRecord

logger = logging.getLogger(__name__)

_CONFLICT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class AttendanceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Attendance partitions
    # ------------------------------------------------------------------

    async def count_partition(self, month_label: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(AttendanceRecord)
            .where(AttendanceRecord.month_label == month_label)
        )
        return int(result.scalar() or 0)

    async def find_by_partition(self, month_label: str) -> list[CanonicalRecord]:
        result = await self.db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.month_label == month_label)
            .order_by(AttendanceRecord.employee_name, AttendanceRecord.day)
        )
        return [CanonicalRecord.model_validate(row) for row in result.scalars().all()]

    async def find_by_date_range(self, start: date, end: date) -> list[CanonicalRecord]:
        """Records with ``start <= day < end``."""
        result = await self.db.execute(
            select(AttendanceRecord)
            .where(AttendanceRecord.day >= start, AttendanceRecord.day < end)
            .order_by(AttendanceRecord.day, AttendanceRecord.employee_name)
        )
        return [CanonicalRecord.model_validate(row) for row in result.scalars().all()]

    async def delete_by_partition(self, month_label: str) -> int:
        result = await self.db.execute(
            delete(AttendanceRecord).where(AttendanceRecord.month_label == month_label)
        )
        deleted = result.rowcount or 0
        logger.info("Partition %s: deleted %d records", month_label, deleted)
        return deleted

    async def insert_batch(self, records: Sequence[CanonicalRecord]) -> int:
        if not records:
            return 0
        rows = [
            AttendanceRecord(
                employee_id=rec.employee_id,
                employee_name=rec.employee_name,
                day=rec.day,
                day_of_week=rec.day_of_week,
                in_time=rec.in_time,
                out_time=rec.out_time,
                worked_hours=rec.worked_hours,
                expected_hours=rec.expected_hours,
                status=rec.status.value,
                is_leave=rec.is_leave,
                is_holiday=rec.is_holiday,
                month_label=rec.month_label,
            )
            for rec in records
        ]
        self.db.add_all(rows)
        await self.db.flush()
        return len(rows)

    async def list_partitions(self) -> list[PartitionSummary]:
        result = await self.db.execute(
            select(
                AttendanceRecord.month_label,
                func.count().label("record_count"),
                func.count(func.distinct(AttendanceRecord.employee_id)).label("employee_count"),
                func.max(AttendanceRecord.created_at).label("last_updated"),
            )
            .group_by(AttendanceRecord.month_label)
            .order_by(AttendanceRecord.month_label.desc())
        )
        return [
            PartitionSummary(
                month_label=r["month_label"],
                record_count=int(r["record_count"]),
                employee_count=int(r["employee_count"]),
                last_updated=r["last_updated"],
            )
            for r in result.mappings().all()
        ]

    # ------------------------------------------------------------------
    # Employees
    # ------------------------------------------------------------------

    async def _find_employee(self, name: str) -> Employee | None:
        result = await self.db.execute(select(Employee).where(Employee.name == name))
        return result.scalar_one_or_none()

    async def find_or_create_employee(
        self,
        name: str,
        *,
        cache: dict[str, Employee] | None = None,
    ) -> Employee:
        """
        Return the employee whose name matches exactly, creating it if unseen.

        Matching is case-sensitive.  Pass the same ``cache`` dict for every
        row of one upload to avoid a query per row.  Creation is an
        ``ON CONFLICT DO NOTHING`` insert followed by a re-read, so two
        uploads for different months racing on a new name both end up with
        the same row.
        """
        if cache is not None and name in cache:
            return cache[name]

        employee = await self._find_employee(name)

        if employee is None:
            insert = _CONFLICT_INSERTS[self.db.get_bind().dialect.name]
            stmt = (
                insert(Employee)
                .values(
                    id=uuid.uuid4(),
                    name=name,
                    leaves_per_month=settings.DEFAULT_LEAVES_PER_MONTH,
                )
                .on_conflict_do_nothing(index_elements=[Employee.name])
            )
            result = await self.db.execute(stmt)
            employee = await self._find_employee(name)
            if result.rowcount:
                logger.info("Created employee '%s' (id=%s)", name, employee.id)
            else:
                logger.info("Employee '%s' was created concurrently, reusing id=%s", name, employee.id)

        if cache is not None:
            cache[name] = employee
        return employee

    async def list_employees(self) -> list[Employee]:
        result = await self.db.execute(select(Employee).order_by(Employee.name))
        return list(result.scalars().all())

    async def get_employees(self, ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Employee]:
        id_list = list(set(ids))
        if not id_list:
            return {}
        result = await self.db.execute(select(Employee).where(Employee.id.in_(id_list)))
        return {emp.id: emp for emp in result.scalars().all()}

    async def leave_allowances(self, ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, int]:
        employees = await self.get_employees(ids)
        return {emp_id: emp.leaves_per_month for emp_id, emp in employees.items()}

    # ------------------------------------------------------------------
    # Import history
    # ------------------------------------------------------------------

    async def add_import_history(
        self, filename: str, month_label: str, status: str, logs: dict
    ) -> None:
        self.db.add(
            ImportHistory(
                filename=filename,
                month_label=month_label,
                status=status,
                logs=logs,
            )
        )
        await self.db.flush()

    async def list_import_history(self, offset: int, limit: int) -> tuple[int, list[ImportHistory]]:
        total = (
            await self.db.execute(select(func.count()).select_from(ImportHistory))
        ).scalar() or 0
        result = await self.db.execute(
            select(ImportHistory)
            .order_by(ImportHistory.uploaded_at.desc(), ImportHistory.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return int(total), list(result.scalars().all())
