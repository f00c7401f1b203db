# File: src/campusbill/core/loader.py
"""Bulk loading of users and student records from named JSON sources.

Every load runs in two passes over the whole batch: validate each row into a
staging list, then check ids against the batch and the store. Only a batch
that passes both is written, in a single commit, so a failed load leaves the
store exactly as it was.
"""

import os
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.core.errors import (
    AppError,
    DuplicateRecordError,
    DuplicateUserError,
    InvalidRecordError,
    InvalidUserError,
    MalformedSourceError,
    SourceNotFoundError,
    StoreConflictError,
    StoreIOError,
    UserNotFoundError,
)
from campusbill.core.logging import get_logger
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.models.record_schemas import StudentRecordIn
from campusbill.models.student_profile import StudentProfile
from campusbill.models.transaction import Transaction
from campusbill.models.user import User
from campusbill.models.user_schemas import UserRecord

logger = get_logger(__name__)

DATA_DIR = Path(os.getenv("CAMPUSBILL_DATA_DIR", "data"))

# Tried in order after the name itself as a path
SOURCE_SUFFIXES = ("", ".txt", ".json")

RowModel = TypeVar("RowModel", bound=BaseModel)

_rows_adapter = TypeAdapter(list[dict[str, Any]])


def resolve_source(name: str, data_dir: Optional[Path] = None) -> Path:
    """Find the file behind a source name, or raise SourceNotFoundError."""
    base = data_dir if data_dir is not None else DATA_DIR
    candidates = [Path(name)] + [base / f"{name}{suffix}" for suffix in SOURCE_SUFFIXES]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise SourceNotFoundError(name)


def read_source(name: str, data_dir: Optional[Path] = None) -> list[dict[str, Any]]:
    """Read a source as a JSON array of objects."""
    path = resolve_source(name, data_dir)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise StoreIOError(f"Failed to read source {name}", details={"path": str(path)}) from e

    try:
        return _rows_adapter.validate_json(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        logger.warning("loader.malformed_source", source=name, path=str(path), error=first["msg"])
        raise MalformedSourceError(name, reason=first["msg"]) from e


def _field_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def validate_rows(
    rows: list[dict[str, Any]],
    model: type[RowModel],
    error_cls: type[InvalidUserError] | type[InvalidRecordError],
) -> list[RowModel]:
    """First pass: validate every row, stopping at the first bad one."""
    staged = []
    for index, row in enumerate(rows):
        try:
            staged.append(model.model_validate(row))
        except PydanticValidationError as e:
            row_id = row.get("id", row.get("user_id"))
            raise error_cls(
                f"Row {index} is invalid",
                details={"index": index, "id": row_id, "errors": _field_errors(e)},
            ) from e
    return staged


def first_repeat(ids: list[str]) -> Optional[str]:
    """The first id that occurs twice in ids, if any."""
    seen: set[str] = set()
    for item in ids:
        if item in seen:
            return item
        seen.add(item)
    return None


class BulkLoader:
    """Loads users and student records into the store, all-or-nothing."""

    def __init__(self, db: AsyncSession, data_dir: Optional[Path] = None):
        self.store = UserStore(db)
        self.directory = StudentDirectory(db)
        self.data_dir = data_dir

    async def load_users(self, source: str) -> list[str]:
        """
        Load a batch of users. Returns the loaded ids in source order.

        Raises:
            SourceNotFoundError, MalformedSourceError: the source can't be read.
            InvalidUserError: a row has a bad field.
            DuplicateUserError: an id repeats in the batch or already exists.
            StoreIOError: the commit failed. Nothing was written.
        """
        try:
            rows = read_source(source, self.data_dir)
            candidates = validate_rows(rows, UserRecord, InvalidUserError)

            ids = [c.id for c in candidates]
            repeated = first_repeat(ids)
            if repeated is not None:
                raise DuplicateUserError(repeated)

            existing = await self.store.find_existing_ids(ids)
            for user_id in ids:
                if user_id in existing:
                    raise DuplicateUserError(user_id)
        except AppError as e:
            logger.warning("loader.users_rejected", source=source, code=e.code, error=e.message)
            raise

        staged = [User(**c.model_dump()) for c in candidates]
        try:
            await self.store.save_all(staged)
        except StoreConflictError as e:
            # Another writer committed one of these ids after the duplicate check
            taken = await self.store.find_existing_ids(ids)
            duplicate = next((i for i in ids if i in taken), None)
            if duplicate is None:
                raise
            logger.warning(
                "loader.users_rejected", source=source, code="DUPLICATE_USER", error=e.message
            )
            raise DuplicateUserError(duplicate) from e

        logger.info("loader.users_committed", source=source, count=len(staged))
        return ids

    async def load_records(self, source: str) -> list[str]:
        """
        Load a batch of student records (profile plus transactions).

        Raises:
            SourceNotFoundError, MalformedSourceError: the source can't be read.
            InvalidRecordError: a record has a bad field.
            UserNotFoundError: a record names a user that isn't loaded.
            DuplicateRecordError: a student appears twice or already has a record.
            StoreIOError: the commit failed. Nothing was written.
        """
        try:
            rows = read_source(source, self.data_dir)
            candidates = validate_rows(rows, StudentRecordIn, InvalidRecordError)

            ids = [c.user_id for c in candidates]
            repeated = first_repeat(ids)
            if repeated is not None:
                raise DuplicateRecordError(repeated)

            known_users = await self.store.find_existing_ids(ids)
            with_records = await self.directory.existing_profile_ids(ids)
            for user_id in ids:
                if user_id not in known_users:
                    raise UserNotFoundError(user_id)
                if user_id in with_records:
                    raise DuplicateRecordError(user_id)
        except AppError as e:
            logger.warning("loader.records_rejected", source=source, code=e.code, error=e.message)
            raise

        staged = [
            StudentProfile(
                **c.model_dump(exclude={"transactions"}),
                transactions=[Transaction(**t.model_dump()) for t in c.transactions],
            )
            for c in candidates
        ]
        try:
            await self.store.save_all(staged)
        except StoreConflictError as e:
            taken = await self.directory.existing_profile_ids(ids)
            duplicate = next((i for i in ids if i in taken), None)
            if duplicate is None:
                raise
            logger.warning(
                "loader.records_rejected", source=source, code="DUPLICATE_RECORD", error=e.message
            )
            raise DuplicateRecordError(duplicate) from e

        logger.info(
            "loader.records_committed",
            source=source,
            count=len(staged),
            transactions=sum(len(c.transactions) for c in candidates),
        )
        return ids
