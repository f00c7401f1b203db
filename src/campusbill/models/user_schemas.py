# File: src/campusbill/models/user_schemas.py
"""Pydantic schemas for users: raw source rows and API payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from campusbill.models.enums import College, Role


class UserRecord(BaseModel):
    """One user row as it appears in a bulk users source."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    id: str = Field(..., min_length=1, max_length=64)
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    role: Role
    college: College

    @field_validator("role", "college", mode="before")
    @classmethod
    def normalize_enum_value(cls, v):
        """Accept enum values in any case ("admin", "Graduate_School")."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class LoginRequest(BaseModel):
    """Login payload. The user id is the whole credential."""

    user_id: str = Field(..., min_length=1, max_length=64)


class UserResponse(BaseModel):
    """Schema for reading a user from the database."""

    id: str
    first_name: str
    last_name: str
    display_name: str
    role: Role
    college: College
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentIdsResponse(BaseModel):
    """Ids of the students visible to the session admin."""

    student_ids: list[str]
