# File: src/campusbill/models/record_schemas.py
"""Pydantic schemas for student records, transactions and bills."""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from campusbill.core.validators import strip_tags, validate_email, validate_phone
from campusbill.models.enums import ClassStatus, College, TransactionType


class TransactionRecord(BaseModel):
    """A charge or payment line, in a records source or an API response."""

    model_config = ConfigDict(from_attributes=True)

    type: TransactionType
    transaction_date: date
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    note: Optional[str] = Field(None, max_length=255)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("note")
    @classmethod
    def clean_note(cls, v: Optional[str]) -> Optional[str]:
        return strip_tags(v)


class StudentProfileFields(BaseModel):
    """Editable transcript fields shared by load, edit and read schemas."""

    model_config = ConfigDict(str_strip_whitespace=True, from_attributes=True)

    class_status: ClassStatus
    term: str = Field("", max_length=40)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    is_resident: bool = True
    is_active_duty_military: bool = False
    scholarship: Optional[str] = Field(None, max_length=60)

    @field_validator("class_status", mode="before")
    @classmethod
    def normalize_class_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email(v)


class StudentProfileUpdate(StudentProfileFields):
    """Edit payload for a student record. Transactions are not editable."""

    user_id: str = Field(..., min_length=1, max_length=64)


class StudentRecordIn(StudentProfileUpdate):
    """One record as it appears in a bulk records source."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    transactions: list[TransactionRecord] = []


class StudentRecordRead(StudentProfileFields):
    """A full student record as returned to callers."""

    user_id: str
    first_name: str
    last_name: str
    college: College
    transactions: list[TransactionRecord] = []
    staged: bool = Field(False, description="True when showing an unsaved session edit")


class StudentSummary(BaseModel):
    """Header block of a bill."""

    user_id: str
    first_name: str
    last_name: str
    college: College
    class_status: ClassStatus
    term: str


class BillRead(BaseModel):
    """A bill: the ledger lines in a window plus their totals."""

    student: StudentSummary
    start: Optional[date] = None
    end: Optional[date] = None
    transactions: list[TransactionRecord]
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal


class PaymentCreate(BaseModel):
    """Payment request body. Amount rules are enforced by the billing service."""

    amount: Decimal
    note: Optional[str] = Field(None, max_length=255)
