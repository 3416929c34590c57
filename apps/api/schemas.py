from typing import Optional, List, Dict, Any, Union
from pydantic import BaseModel, EmailStr
from models import AttendanceType
from datetime import datetime, date

# Numbers arrive from the forms either as JSON numbers or as strings
NumberInput = Union[float, str]


class Identity(BaseModel):
    """Claims carried by a session token"""
    id: int
    email: str
    role: str


# Auth schemas
class UserRegister(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

class UserLogin(BaseModel):
    email: str
    password: str

class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


# Doctor schemas
class DoctorCreate(BaseModel):
    code: str
    name: str
    specialty: Optional[str] = None

class DoctorResponse(BaseModel):
    id: int
    code: str
    name: str
    specialty: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Product schemas
class ProductCreate(BaseModel):
    name: str
    category: str
    status: Optional[str] = "Active"
    price: Optional[float] = 0
    product_type: Optional[str] = None
    packaging_type: Optional[str] = None
    strips_per_box: Optional[int] = None
    units_per_strip: Optional[int] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    price: Optional[float] = None
    product_type: Optional[str] = None
    packaging_type: Optional[str] = None
    strips_per_box: Optional[int] = None
    units_per_strip: Optional[int] = None

class ProductResponse(BaseModel):
    id: int
    name: str
    category: str
    status: str
    price: Optional[float] = None
    product_type: Optional[str] = None
    packaging_type: Optional[str] = None
    strips_per_box: Optional[int] = None
    units_per_strip: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Investment schemas
class InvestmentCreate(BaseModel):
    doctor_id: Optional[int] = None
    doctor_code: Optional[str] = None
    doctor_name: Optional[str] = None
    amount: Optional[NumberInput] = None
    investment_date: date
    expected_returns: Optional[NumberInput] = None
    actual_returns: Optional[NumberInput] = None
    preferences: Optional[List[str]] = None
    notes: Optional[str] = None

class InvestmentUpdate(BaseModel):
    doctor_code: Optional[str] = None
    doctor_name: Optional[str] = None
    amount: Optional[NumberInput] = None
    investment_date: Optional[date] = None
    expected_returns: Optional[NumberInput] = None
    actual_returns: Optional[NumberInput] = None
    preferences: Optional[List[str]] = None
    notes: Optional[str] = None

class InvestmentResponse(BaseModel):
    id: int
    doctor_id: Optional[int] = None
    doctor_code: Optional[str] = None
    doctor_name: Optional[str] = None
    amount: float
    investment_date: date
    expected_returns: Optional[float] = None
    actual_returns: Optional[float] = None
    preferences: List[str] = []
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Reporting schemas (camelCase keys are what the dashboard reads)
class InvestmentSummary(BaseModel):
    totalInvestments: float
    totalExpected: float
    totalActual: float

class MonthlySummary(BaseModel):
    labels: List[str]
    amounts: List[float]
    actuals: List[float]

class DashboardStats(BaseModel):
    totalInvestments: int
    activeDoctors: int
    products: int
    roi: str


# Bill schemas
class BillCreate(BaseModel):
    merchant: Optional[str] = None
    bill_date: Optional[date] = None
    total: Optional[float] = None
    items: Optional[List[Any]] = None
    raw_text: Optional[str] = None
    extracted: Optional[Dict[str, Any]] = None

class BillResponse(BaseModel):
    id: int
    merchant: Optional[str] = None
    bill_date: Optional[date] = None
    total: Optional[float] = None
    items: List[Any] = []
    raw_text: Optional[str] = None
    extracted: Dict[str, Any] = {}
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Pharmacy schemas
class PharmacyCreate(BaseModel):
    name: str
    city: str
    address: str
    product_with_count_given: List[Dict[str, Any]] = []
    date_given: date
    current_stock_owns: List[Dict[str, Any]] = []
    due_date_amount: date
    scheme_applied: Optional[str] = None

class PharmacyUpdate(BaseModel):
    name: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    product_with_count_given: Optional[List[Dict[str, Any]]] = None
    date_given: Optional[date] = None
    current_stock_owns: Optional[List[Dict[str, Any]]] = None
    due_date_amount: Optional[date] = None
    scheme_applied: Optional[str] = None

class PharmacyResponse(BaseModel):
    id: int
    name: str
    city: str
    address: str
    product_with_count_given: List[Dict[str, Any]] = []
    date_given: date
    current_stock_owns: List[Dict[str, Any]] = []
    due_date_amount: date
    scheme_applied: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# Activity / attendance schemas
class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    details: Dict[str, Any] = {}
    created_at: datetime

class ClientLogEntry(BaseModel):
    level: str = "INFO"
    message: str
    context: Optional[Any] = None
    timestamp: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    userAgent: Optional[str] = None

class AttendanceCreate(BaseModel):
    type: AttendanceType
    lat: Optional[float] = None
    lon: Optional[float] = None
    accuracy: Optional[float] = None
    photo: Optional[str] = None
    device_time: Optional[datetime] = None

class AttendanceResponse(BaseModel):
    id: int
    user_id: int
    type: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    accuracy: Optional[float] = None
    photo: Optional[str] = None
    device_time: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
