import io
import logging
import math

from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_analyzer.core.config import settings
from leave_analyzer.core.exceptions import (
    DuplicatePartitionError,
    EmptyBatchError,
    InvalidRangeError,
)
from leave_analyzer.db.repository import AttendanceRepository
from leave_analyzer.db.session import get_db
from leave_analyzer.schemas.attendance import ImportResultResponse
from leave_analyzer.services.excel_parser import parse_attendance_sheet
from leave_analyzer.services.ingestion import ingest_batch

logger = logging.getLogger(__name__)

router = APIRouter()

_ALLOWED_EXTENSIONS = {".xlsx", ".xls"}


def _file_extension(filename: str | None) -> str:
    if not filename:
        return ""
    idx = filename.rfind(".")
    return filename[idx:].lower() if idx != -1 else ""


@router.post(
    "/upload",
    response_model=ImportResultResponse,
    summary="Upload a month of attendance from an Excel file",
)
async def upload_file(
    file: UploadFile,
    month: int = Form(...),
    year: int = Form(...),
    override: bool = Form(default=False),
    db: AsyncSession = Depends(get_db),
) -> ImportResultResponse:
    ext = _file_extension(file.filename)
    logger.info(
        "Upload: '%s' (extension '%s') for %04d-%02d, override=%s",
        file.filename, ext, year, month, override,
    )

    if ext not in _ALLOWED_EXTENSIONS:
        logger.warning("Rejected file '%s': extension '%s' not allowed", file.filename, ext)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(_ALLOWED_EXTENSIONS))}",
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File exceeds {settings.MAX_UPLOAD_SIZE_MB} MB limit",
        )

    rows, file_errors = parse_attendance_sheet(io.BytesIO(content))
    if file_errors:
        for err_msg in file_errors:
            logger.warning("Unusable file '%s': %s", file.filename, err_msg)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Excel file could not be read", "errors": file_errors},
        )

    try:
        result = await ingest_batch(
            rows,
            year=year,
            month=month,
            override=override,
            db=db,
            filename=file.filename or "unknown",
        )
    except InvalidRangeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except DuplicatePartitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "month_label": exc.month_label,
                "existing_count": exc.existing_count,
            },
        )
    except EmptyBatchError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Excel file does not contain valid attendance data",
                "rows_seen": exc.rows_seen,
                "rows_accepted": exc.rows_accepted,
            },
        )

    return ImportResultResponse(
        filename=file.filename or "unknown",
        month_label=result.month_label,
        total=result.rows_seen,
        inserted_count=result.inserted_count,
        employee_count=result.employee_count,
        error_count=len(result.errors),
        errors=result.errors,
        overridden=result.overridden,
        status=result.status,
        statistics=result.statistics,
    )


@router.get(
    "/history",
    summary="List import history (paginated)",
)
async def list_history(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict:
    repo = AttendanceRepository(db)
    total, page_rows = await repo.list_import_history((page - 1) * per_page, per_page)

    items = [
        {
            "id": h.id,
            "filename": h.filename,
            "month_label": h.month_label,
            "uploaded_at": h.uploaded_at.isoformat() if h.uploaded_at else None,
            "status": h.status,
            "logs": h.logs,
        }
        for h in page_rows
    ]

    return {
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if total > 0 else 1,
        "items": items,
    }
