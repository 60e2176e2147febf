import logging
import subprocess
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leave_analyzer.api.employees import router as employees_router
from leave_analyzer.api.files import router as files_router
from leave_analyzer.api.stats import router as stats_router
from leave_analyzer.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_BACKEND_ROOT = Path(__file__).resolve().parents[1]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run Alembic migrations on startup."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        logger.info("Running Alembic migrations...")
        try:
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                capture_output=True,
                text=True,
                cwd=_BACKEND_ROOT,
            )
            if result.returncode != 0:
                logger.error("Alembic migration failed:\n%s", result.stderr)
            else:
                logger.info("Migrations applied successfully:\n%s", result.stdout)
        except Exception as exc:
            logger.exception("Failed to run migrations: %s", exc)

    yield

    logger.info("Shutting down Leave & Productivity Analyzer backend.")


app = FastAPI(
    title="Leave & Productivity Analyzer API",
    description="Monthly attendance uploads turned into leave and productivity statistics.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(files_router, prefix="/api/files", tags=["Files"])
app.include_router(stats_router, prefix="/api/stats", tags=["Stats"])
app.include_router(employees_router, prefix="/api/employees", tags=["Employees"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok", "service": "Leave & Productivity Analyzer API", "version": "1.0.0"}
