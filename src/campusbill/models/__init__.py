"""Domain models package."""

from campusbill.models.enums import GRADUATE_STATUSES, ClassStatus, College, Role, TransactionType
from campusbill.models.record_schemas import (
    BillRead,
    PaymentCreate,
    StudentProfileUpdate,
    StudentRecordIn,
    StudentRecordRead,
    TransactionRecord,
)
from campusbill.models.staged_edit import StagedEdit
from campusbill.models.student_profile import StudentProfile
from campusbill.models.transaction import Transaction
from campusbill.models.user import User
from campusbill.models.user_schemas import LoginRequest, UserRecord, UserResponse

__all__ = [
    "BillRead",
    "ClassStatus",
    "College",
    "GRADUATE_STATUSES",
    "LoginRequest",
    "PaymentCreate",
    "Role",
    "StagedEdit",
    "StudentProfile",
    "StudentProfileUpdate",
    "StudentRecordIn",
    "StudentRecordRead",
    "Transaction",
    "TransactionRecord",
    "TransactionType",
    "User",
    "UserRecord",
    "UserResponse",
]
