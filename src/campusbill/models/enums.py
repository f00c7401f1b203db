"""
Enums for domain models.
Enums provide type safety and clarity. Validation for categorical fields.
"""

import enum


class Role(str, enum.Enum):
    """System roles."""

    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class College(str, enum.Enum):
    """Colleges a user belongs to."""

    ARTS_AND_SCIENCES = "ARTS_AND_SCIENCES"
    BUSINESS = "BUSINESS"
    EDUCATION = "EDUCATION"
    ENGINEERING = "ENGINEERING"
    GRADUATE_SCHOOL = "GRADUATE_SCHOOL"
    HOSPITALITY = "HOSPITALITY"
    LAW = "LAW"
    MEDICINE = "MEDICINE"
    MUSIC = "MUSIC"
    NURSING = "NURSING"
    PHARMACY = "PHARMACY"
    PUBLIC_HEALTH = "PUBLIC_HEALTH"
    SOCIAL_WORK = "SOCIAL_WORK"


class ClassStatus(str, enum.Enum):
    """Academic standing of a student."""

    FRESHMAN = "FRESHMAN"
    SOPHOMORE = "SOPHOMORE"
    JUNIOR = "JUNIOR"
    SENIOR = "SENIOR"
    MASTERS = "MASTERS"
    PHD = "PHD"
    GNG = "GNG"  # graduate non-degree


# Statuses a GRADUATE_SCHOOL admin oversees system-wide
GRADUATE_STATUSES = frozenset({ClassStatus.MASTERS, ClassStatus.PHD})


class TransactionType(str, enum.Enum):
    """Ledger entry kinds."""

    CHARGE = "CHARGE"
    PAYMENT = "PAYMENT"
