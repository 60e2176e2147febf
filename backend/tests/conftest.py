"""
Shared fixtures.

Strategy:
- Every test gets its own in-memory SQLite database (aiosqlite + StaticPool),
  created from the ORM metadata, so tests never depend on a running server.
- The FastAPI app's ``get_db`` dependency is overridden to use that database.
- Excel uploads are generated on the fly with openpyxl into ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import openpyxl
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from leave_analyzer.db.models import Base
from leave_analyzer.db.session import get_db
from leave_analyzer.main import app

DEFAULT_HEADERS = ["Employee Name", "Date", "In-Time", "Out-Time"]

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Raw DB session for direct repository calls and assertions."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Excel helpers
# ---------------------------------------------------------------------------


def build_workbook(path: Path, rows: list[list[Any]], headers: list[str] | None = DEFAULT_HEADERS) -> Path:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Attendance"
    if headers is not None:
        ws.append(headers)
    for row in rows:
        ws.append(row)
    wb.save(str(path))
    return path


@pytest.fixture
def make_workbook(tmp_path: Path):
    """Factory: ``make_workbook(rows, name=..., headers=...)`` → Path to an .xlsx."""
    counter = {"n": 0}

    def _make(rows: list[list[Any]], name: str | None = None, headers: list[str] | None = DEFAULT_HEADERS) -> Path:
        counter["n"] += 1
        filename = name or f"attendance_{counter['n']}.xlsx"
        return build_workbook(tmp_path / filename, rows, headers)

    return _make


@pytest.fixture
def upload(client: AsyncClient):
    """Factory: POST a workbook to /api/files/upload and return the response."""

    async def _upload(path: Path, year: int, month: int, override: bool = False, mime: str = XLSX_MIME):
        with open(path, "rb") as f:
            return await client.post(
                "/api/files/upload",
                files={"file": (path.name, f, mime)},
                data={"year": str(year), "month": str(month), "override": str(override).lower()},
            )

    return _upload
