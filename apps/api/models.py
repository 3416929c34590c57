from typing import Optional, List, Dict, Any
from datetime import datetime, date, timezone
from sqlmodel import Field, SQLModel
from sqlalchemy import Column, String, Numeric, JSON, Text
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MR = "mr"
    USER = "user"


class ActivityAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ATTENDANCE = "ATTENDANCE"


class AttendanceType(str, Enum):
    PUNCH_IN = "punch_in"
    PUNCH_OUT = "punch_out"


def utc_now() -> datetime:
    """Timezone-aware UTC timestamp for row defaults"""
    return datetime.now(timezone.utc)


def _money(nullable: bool = True) -> Column:
    # NUMERIC(12,2) in the database, floats in Python and JSON
    return Column(Numeric(12, 2, asdecimal=False), nullable=nullable)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    role: str = Field(default=Role.USER.value, sa_column=Column(String(20), nullable=False))
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True)
    name: str
    specialty: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    category: str
    status: str = Field(default="Active")
    price: Optional[float] = Field(default=0, sa_column=_money())
    product_type: Optional[str] = None
    packaging_type: Optional[str] = None
    strips_per_box: Optional[int] = None
    units_per_strip: Optional[int] = None
    created_at: datetime = Field(default_factory=utc_now)


class Investment(SQLModel, table=True):
    __tablename__ = "investments"

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: Optional[int] = Field(default=None, foreign_key="doctors.id")
    # Denormalized copies of the doctor row, may drift from it
    doctor_code: Optional[str] = Field(default=None, index=True)
    doctor_name: Optional[str] = None
    amount: float = Field(sa_column=_money(nullable=False))
    investment_date: date = Field(index=True)
    expected_returns: Optional[float] = Field(default=None, sa_column=_money())
    actual_returns: Optional[float] = Field(default=None, sa_column=_money())
    preferences: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    notes: Optional[str] = None
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class Bill(SQLModel, table=True):
    __tablename__ = "bills"

    id: Optional[int] = Field(default=None, primary_key=True)
    merchant: Optional[str] = None
    bill_date: Optional[date] = None
    total: Optional[float] = Field(default=0, sa_column=_money())
    items: List[Any] = Field(default_factory=list, sa_column=Column(JSON))
    raw_text: Optional[str] = Field(default=None, sa_column=Column(Text))
    extracted: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)


class Pharmacy(SQLModel, table=True):
    __tablename__ = "pharmacies"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    city: str
    address: str
    product_with_count_given: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    date_given: date
    current_stock_owns: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    due_date_amount: date
    scheme_applied: Optional[str] = None
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)


class Attendance(SQLModel, table=True):
    """MR punch-in / punch-out with location and selfie"""
    __tablename__ = "attendance"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    type: str = Field(sa_column=Column(String(20), nullable=False))
    lat: Optional[float] = None
    lon: Optional[float] = None
    accuracy: Optional[float] = None
    photo: Optional[str] = Field(default=None, sa_column=Column(Text))
    device_time: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now, index=True)


class ActivityLog(SQLModel, table=True):
    """Append-only audit ledger, rows are never updated or deleted"""
    __tablename__ = "activity_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)
    action: str = Field(index=True)
    entity_type: str
    entity_id: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now, index=True)
