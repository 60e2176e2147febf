"""
Alembic migration tests.

Runs the real migration scripts against a throwaway SQLite file, passing the
URL through ``-x db_url=...`` the same way it is done from the command line.
"""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

BACKEND_ROOT = Path(__file__).resolve().parents[1]


def _alembic_config(db_path: Path) -> Config:
    return Config(
        str(BACKEND_ROOT / "alembic.ini"),
        cmd_opts=Namespace(x=[f"db_url=sqlite+aiosqlite:///{db_path}"]),
    )


def _tables(db_path: Path) -> set[str]:
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_creates_schema(tmp_path: Path) -> None:
    db_path = tmp_path / "migrated.db"
    command.upgrade(_alembic_config(db_path), "head")

    assert {"employees", "attendance_records", "import_history"} <= _tables(db_path)

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        insp = inspect(engine)
        uniques = {u["name"] for u in insp.get_unique_constraints("attendance_records")}
        indexes = {i["name"] for i in insp.get_indexes("attendance_records")}
    finally:
        engine.dispose()

    assert "uq_attendance_employee_day" in uniques
    assert {"ix_attendance_month_label", "ix_attendance_day"} <= indexes


def test_downgrade_removes_schema(tmp_path: Path) -> None:
    db_path = tmp_path / "migrated.db"
    cfg = _alembic_config(db_path)
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    assert _tables(db_path) == {"alembic_version"}
