import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    leaves_per_month: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    attendance_records: Mapped[list["AttendanceRecord"]] = relationship(
        "AttendanceRecord", back_populates="employee", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.name}>"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    __table_args__ = (
        UniqueConstraint("employee_id", "day", name="uq_attendance_employee_day"),
        Index("ix_attendance_month_label", "month_label"),
        Index("ix_attendance_day", "day"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(9), nullable=False)
    in_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    out_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    worked_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    expected_hours: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum("Present", "Leave", "Holiday", "Weekend", name="day_status_enum"),
        nullable=False,
    )
    is_leave: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    month_label: Mapped[str] = mapped_column(String(7), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    employee: Mapped["Employee"] = relationship("Employee", back_populates="attendance_records")

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecord id={self.id} employee_id={self.employee_id} "
            f"day={self.day} status={self.status}>"
        )


class ImportHistory(Base):
    __tablename__ = "import_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    month_label: Mapped[str] = mapped_column(String(7), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    status: Mapped[str] = mapped_column(
        Enum("success", "partial", name="import_status_enum"), nullable=False
    )
    logs: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<ImportHistory id={self.id} filename={self.filename} "
            f"month_label={self.month_label} status={self.status}>"
        )
