from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leave_analyzer.db.repository import AttendanceRepository
from leave_analyzer.db.session import get_db
from leave_analyzer.schemas.attendance import EmployeeResponse

router = APIRouter()


@router.get("", response_model=list[EmployeeResponse], summary="List known employees")
async def list_employees(db: AsyncSession = Depends(get_db)) -> list[EmployeeResponse]:
    repo = AttendanceRepository(db)
    return [EmployeeResponse.model_validate(emp) for emp in await repo.list_employees()]
