"""Tests for bulk loading of users and student records."""

import json
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.core.errors import (
    DuplicateRecordError,
    DuplicateUserError,
    InvalidRecordError,
    InvalidUserError,
    MalformedSourceError,
    SourceNotFoundError,
    UserNotFoundError,
)
from campusbill.core.loader import BulkLoader, first_repeat, resolve_source
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.models.enums import ClassStatus, College, Role, TransactionType
from campusbill.models.student_profile import StudentProfile
from campusbill.models.transaction import Transaction
from campusbill.models.user import User
from tests.factories import StudentFactory, UserFactory


def write_source(directory: Path, name: str, rows) -> Path:
    path = directory / f"{name}.txt"
    path.write_text(json.dumps(rows))
    return path


def user_row(user_id: str, role: str = "STUDENT", college: str = "ENGINEERING") -> dict:
    return {
        "id": user_id,
        "first_name": "First",
        "last_name": "Last",
        "role": role,
        "college": college,
    }


async def count(session: AsyncSession, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.fixture
def loader(db_session: AsyncSession, tmp_path: Path) -> BulkLoader:
    return BulkLoader(db_session, data_dir=tmp_path)


class TestResolveSource:
    """Source names map to files."""

    def test_name_with_txt_suffix(self, tmp_path):
        path = write_source(tmp_path, "users", [])
        assert resolve_source("users", tmp_path) == path

    def test_json_suffix(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text("[]")
        assert resolve_source("users", tmp_path) == path

    def test_plain_path(self, tmp_path):
        path = write_source(tmp_path, "users", [])
        assert resolve_source(str(path), tmp_path / "elsewhere") == path

    def test_missing(self, tmp_path):
        with pytest.raises(SourceNotFoundError) as exc_info:
            resolve_source("nope", tmp_path)
        assert exc_info.value.code == "SOURCE_NOT_FOUND"


class TestFirstRepeat:
    def test_finds_first_repeat(self):
        assert first_repeat(["a", "b", "c", "b", "a"]) == "b"

    def test_none_when_unique(self):
        assert first_repeat(["a", "b"]) is None


class TestLoadUsers:
    """All-or-nothing user loading."""

    async def test_valid_batch_is_persisted(self, loader, tmp_path, session_maker):
        """Every row lands and find_by_id succeeds for each."""
        write_source(
            tmp_path,
            "users",
            [
                user_row("s1"),
                user_row("a1", role="ADMIN", college="GRADUATE_SCHOOL"),
                user_row("s2", college="BUSINESS"),
            ],
        )

        ids = await loader.load_users("users")

        assert ids == ["s1", "a1", "s2"]
        async with session_maker() as fresh:
            store = UserStore(fresh)
            for user_id in ids:
                assert await store.find_by_id(user_id) is not None
            admin = await store.find_by_id("a1")
            assert admin.role == Role.ADMIN
            assert admin.college == College.GRADUATE_SCHOOL

    async def test_enum_values_are_case_insensitive(self, loader, tmp_path, db_session):
        write_source(tmp_path, "users", [user_row("s1", role="student", college="business")])

        await loader.load_users("users")

        user = await UserStore(db_session).find_by_id("s1")
        assert user.role == Role.STUDENT and user.college == College.BUSINESS

    async def test_empty_batch_loads_nothing(self, loader, tmp_path, db_session):
        write_source(tmp_path, "users", [])
        assert await loader.load_users("users") == []
        assert await count(db_session, User) == 0

    async def test_duplicate_within_batch_persists_nothing(self, loader, tmp_path, db_session):
        write_source(tmp_path, "users", [user_row("s1"), user_row("s2"), user_row("s1")])

        with pytest.raises(DuplicateUserError) as exc_info:
            await loader.load_users("users")

        assert exc_info.value.details == {"user_id": "s1"}
        assert await count(db_session, User) == 0

    async def test_duplicate_of_existing_user_persists_nothing(self, loader, tmp_path, db_session):
        await UserFactory.create(db_session, id="s2")
        write_source(tmp_path, "users", [user_row("s1"), user_row("s2"), user_row("s3")])

        with pytest.raises(DuplicateUserError) as exc_info:
            await loader.load_users("users")

        assert exc_info.value.details == {"user_id": "s2"}
        assert await count(db_session, User) == 1

    async def test_id_taken_after_duplicate_check(self, loader, tmp_path, db_session, monkeypatch):
        """A concurrent writer wins the race: still DUPLICATE_USER, nothing of ours is saved."""
        write_source(tmp_path, "users", [user_row("s1"), user_row("s2"), user_row("s3")])
        real_find = loader.store.find_existing_ids
        checks = []

        async def find_then_lose_race(ids):
            existing = await real_find(ids)
            if not checks:
                rival = User(
                    id="s2", first_name="Rival", last_name="Writer",
                    role=Role.STUDENT, college=College.BUSINESS,
                )
                db_session.add(rival)
                await db_session.commit()
                db_session.expunge(rival)
            checks.append(ids)
            return existing

        monkeypatch.setattr(loader.store, "find_existing_ids", find_then_lose_race)

        with pytest.raises(DuplicateUserError) as exc_info:
            await loader.load_users("users")

        assert exc_info.value.details == {"user_id": "s2"}
        assert exc_info.value.status_code == 409
        assert await count(db_session, User) == 1

    async def test_loading_same_source_twice_is_rejected(self, loader, tmp_path, db_session):
        write_source(tmp_path, "users", [user_row("s1")])
        await loader.load_users("users")

        with pytest.raises(DuplicateUserError):
            await loader.load_users("users")
        assert await count(db_session, User) == 1

    @pytest.mark.parametrize(
        "bad_row",
        [
            {"id": "", "role": "STUDENT", "college": "ENGINEERING"},
            {"id": "   ", "role": "STUDENT", "college": "ENGINEERING"},
            {"role": "STUDENT", "college": "ENGINEERING"},
            {"id": "x1", "role": "DEAN", "college": "ENGINEERING"},
            {"id": "x1", "role": "STUDENT", "college": "ASTROLOGY"},
            {"id": "x1", "role": "STUDENT"},
        ],
    )
    async def test_invalid_row_persists_nothing(self, loader, tmp_path, db_session, bad_row):
        write_source(tmp_path, "users", [user_row("s1"), bad_row])

        with pytest.raises(InvalidUserError) as exc_info:
            await loader.load_users("users")

        assert exc_info.value.details["index"] == 1
        assert exc_info.value.details["errors"]
        assert await count(db_session, User) == 0

    async def test_missing_source(self, loader):
        with pytest.raises(SourceNotFoundError):
            await loader.load_users("missing")

    @pytest.mark.parametrize("content", ["not json", '{"id": "s1"}', "[1, 2]", '[{"id": "s1"'])
    async def test_malformed_source(self, loader, tmp_path, content):
        (tmp_path / "users.txt").write_text(content)

        with pytest.raises(MalformedSourceError) as exc_info:
            await loader.load_users("users")

        assert exc_info.value.details["source"] == "users"


class TestLoadRecords:
    """All-or-nothing student record loading."""

    @staticmethod
    def record_row(user_id: str, class_status: str = "JUNIOR", transactions=None) -> dict:
        return {
            "user_id": user_id,
            "class_status": class_status,
            "term": "FALL 2017",
            "phone": "803-555-0101",
            "email": f"{user_id}@email.sc.edu",
            "transactions": transactions or [],
        }

    async def test_records_with_transactions(self, loader, tmp_path, db_session, session_maker):
        await UserFactory.create(db_session, id="s1")
        await UserFactory.create(db_session, id="s2", college=College.GRADUATE_SCHOOL)
        write_source(
            tmp_path,
            "records",
            [
                self.record_row(
                    "s1",
                    transactions=[
                        {
                            "type": "charge",
                            "transaction_date": "2017-08-15",
                            "amount": "5844.00",
                            "note": "Tuition",
                        },
                        {"type": "PAYMENT", "transaction_date": "2017-09-01", "amount": 2000},
                    ],
                ),
                self.record_row("s2", class_status="PHD"),
            ],
        )

        ids = await loader.load_records("records")

        assert ids == ["s1", "s2"]
        async with session_maker() as fresh:
            profile = await StudentDirectory(fresh).by_user_id("s1")
            assert profile.class_status == ClassStatus.JUNIOR
            assert profile.user.id == "s1"
            assert [t.type for t in profile.transactions] == [
                TransactionType.CHARGE,
                TransactionType.PAYMENT,
            ]
            assert profile.transactions[0].amount == Decimal("5844.00")
            graduate = await StudentDirectory(fresh).by_class_status([ClassStatus.PHD])
            assert [p.user_id for p in graduate] == ["s2"]

    async def test_unknown_user_persists_nothing(self, loader, tmp_path, db_session):
        await UserFactory.create(db_session, id="s1")
        write_source(tmp_path, "records", [self.record_row("s1"), self.record_row("ghost")])

        with pytest.raises(UserNotFoundError):
            await loader.load_records("records")

        assert await count(db_session, StudentProfile) == 0

    async def test_duplicate_in_batch(self, loader, tmp_path, db_session):
        await UserFactory.create(db_session, id="s1")
        write_source(tmp_path, "records", [self.record_row("s1"), self.record_row("s1")])

        with pytest.raises(DuplicateRecordError):
            await loader.load_records("records")

        assert await count(db_session, StudentProfile) == 0

    async def test_existing_record(self, loader, tmp_path, db_session):
        await StudentFactory.create(db_session, id="s1")
        await UserFactory.create(db_session, id="s2")
        write_source(tmp_path, "records", [self.record_row("s2"), self.record_row("s1")])

        with pytest.raises(DuplicateRecordError) as exc_info:
            await loader.load_records("records")

        assert exc_info.value.details == {"user_id": "s1"}
        assert await count(db_session, StudentProfile) == 1

    @pytest.mark.parametrize(
        "patch",
        [
            {"class_status": "POSTDOC"},
            {"user_id": ""},
            {"email": "not-an-email"},
            {"phone": "call me"},
            {"transactions": [{"type": "CHARGE", "transaction_date": "2017-08-15", "amount": "-5"}]},
            {"transactions": [{"type": "REFUND", "transaction_date": "2017-08-15", "amount": "5"}]},
            {"transactions": [{"type": "CHARGE", "transaction_date": "soon", "amount": "5"}]},
        ],
    )
    async def test_invalid_record_persists_nothing(self, loader, tmp_path, db_session, patch):
        await UserFactory.create(db_session, id="s1")
        write_source(tmp_path, "records", [{**self.record_row("s1"), **patch}])

        with pytest.raises(InvalidRecordError):
            await loader.load_records("records")

        assert await count(db_session, StudentProfile) == 0
        assert await count(db_session, Transaction) == 0
