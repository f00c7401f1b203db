"""HTTP tests: session cookies, access control and error mapping."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.models.enums import ClassStatus, College, Role, TransactionType
from tests.factories import StudentFactory, TransactionFactory, UserFactory


@pytest.fixture
async def campus(db_session: AsyncSession):
    """Two engineering students (one with a ledger), a business student and admins."""
    profile = await StudentFactory.create(db_session, id="s1", college=College.ENGINEERING)
    await TransactionFactory.create(
        db_session, profile, Decimal("5844.00"), transaction_date=date(2017, 8, 15)
    )
    await StudentFactory.create(db_session, id="s2", college=College.ENGINEERING)
    await StudentFactory.create(db_session, id="b1", college=College.BUSINESS)
    await StudentFactory.create(
        db_session, id="m1", college=College.BUSINESS, class_status=ClassStatus.MASTERS
    )
    await UserFactory.create(db_session, id="a1", role=Role.ADMIN, college=College.ENGINEERING)
    await UserFactory.create(
        db_session, id="g1", role=Role.ADMIN, college=College.GRADUATE_SCHOOL
    )


async def login(client: AsyncClient, user_id: str):
    response = await client.post("/login", json={"user_id": user_id})
    assert response.status_code == 200, response.text
    return response


class TestAuthEndpoints:
    async def test_login_and_me(self, client, campus):
        response = await login(client, "s1")
        assert response.json()["id"] == "s1"
        assert response.json()["role"] == "STUDENT"

        me = await client.get("/me")
        assert me.status_code == 200
        assert me.json()["college"] == "ENGINEERING"

    async def test_me_without_session(self, client, campus):
        response = await client.get("/me")
        assert response.status_code == 401
        assert response.json()["code"] == "NO_ACTIVE_SESSION"

    async def test_unknown_login_keeps_session(self, client, campus):
        await login(client, "s1")

        response = await client.post("/login", json={"user_id": "ghost"})

        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"
        assert (await client.get("/me")).json()["id"] == "s1"

    async def test_login_replaces_session(self, client, campus):
        await login(client, "s1")
        await login(client, "a1")
        assert (await client.get("/me")).json()["id"] == "a1"

    async def test_logout(self, client, campus):
        await login(client, "s1")

        response = await client.post("/logout")
        assert response.status_code == 200
        assert (await client.get("/me")).status_code == 401

        # idempotent
        assert (await client.post("/logout")).status_code == 200

    async def test_empty_user_id_is_rejected(self, client, campus):
        response = await client.post("/login", json={"user_id": ""})
        assert response.status_code == 422


class TestStudentsEndpoint:
    async def test_college_admin(self, client, campus):
        await login(client, "a1")
        response = await client.get("/students")
        assert response.status_code == 200
        assert sorted(response.json()["student_ids"]) == ["s1", "s2"]

    async def test_graduate_admin(self, client, campus):
        await login(client, "g1")
        response = await client.get("/students")
        assert response.json()["student_ids"] == ["m1"]

    async def test_student_forbidden(self, client, campus):
        await login(client, "s1")
        response = await client.get("/students")
        assert response.status_code == 403
        assert response.json()["code"] == "PERMISSION_DENIED"


class TestRecordEndpoints:
    async def test_own_record(self, client, campus):
        await login(client, "s1")
        response = await client.get("/records/s1")
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "s1"
        assert data["transactions"][0]["type"] == "CHARGE"

    async def test_other_college_record_forbidden(self, client, campus):
        await login(client, "a1")
        response = await client.get("/records/b1")
        assert response.status_code == 403

    async def test_missing_record(self, client, campus):
        await login(client, "a1")
        response = await client.get("/records/a1")
        assert response.status_code == 404
        assert response.json()["code"] == "RECORD_NOT_FOUND"

    async def test_staged_edit_survives_requests_until_logout(self, client, campus):
        await login(client, "s1")
        body = {"user_id": "s1", "class_status": "SENIOR", "term": "SPRING 2018"}

        response = await client.put("/records/s1", json=body)
        assert response.status_code == 200
        assert response.json()["staged"] is True

        again = await client.get("/records/s1")
        assert again.json()["class_status"] == "SENIOR"

        await client.post("/logout")
        await login(client, "s1")
        assert (await client.get("/records/s1")).json()["class_status"] == "JUNIOR"

    async def test_many_staged_edits_keep_cookie_small(self, client, db_session, campus):
        """Staged edits don't ride in the session cookie, however many there are."""
        student_ids = [f"e{i}" for i in range(12)]
        for student_id in student_ids:
            await StudentFactory.create(db_session, id=student_id, college=College.ENGINEERING)
        await login(client, "a1")

        for student_id in student_ids:
            body = {
                "user_id": student_id,
                "class_status": "SENIOR",
                "term": "SPRING 2018",
                "address": "1600 Pendleton St, Columbia SC 29201, " + "Apt 4B " * 20,
                "email": f"{student_id}@email.sc.edu",
            }
            response = await client.put(f"/records/{student_id}", json=body)
            assert response.status_code == 200
            assert len(response.headers.get("set-cookie", "")) < 1024

        for student_id in student_ids:
            record = (await client.get(f"/records/{student_id}")).json()
            assert record["staged"] is True
            assert record["class_status"] == "SENIOR"
        assert (await client.get("/me")).json()["id"] == "a1"

    async def test_permanent_edit(self, client, campus):
        await login(client, "a1")
        body = {"user_id": "s2", "class_status": "SENIOR", "term": "SPRING 2018"}

        response = await client.put("/records/s2", params={"permanent": "true"}, json=body)

        assert response.status_code == 200
        assert response.json()["staged"] is False

        await login(client, "s2")
        assert (await client.get("/records/s2")).json()["class_status"] == "SENIOR"

    async def test_edit_with_mismatched_id(self, client, campus):
        await login(client, "s1")
        body = {"user_id": "s2", "class_status": "SENIOR"}
        response = await client.put("/records/s1", json=body)
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_RECORD"


class TestBillingEndpoints:
    async def test_bill(self, client, campus):
        await login(client, "s1")
        response = await client.get("/bills/s1")
        assert response.status_code == 200
        assert Decimal(response.json()["balance"]) == Decimal("5844.00")

    async def test_charges_window(self, client, campus):
        await login(client, "s1")
        response = await client.get(
            "/bills/s1/charges", params={"start": "2017-09-01", "end": "2017-12-31"}
        )
        assert response.status_code == 200
        assert response.json()["transactions"] == []

    async def test_reversed_window(self, client, campus):
        await login(client, "s1")
        response = await client.get(
            "/bills/s1/charges", params={"start": "2017-12-31", "end": "2017-01-01"}
        )
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_DATE_RANGE"

    async def test_payment(self, client, campus):
        await login(client, "s1")

        response = await client.post("/bills/s1/payments", json={"amount": "844.00", "note": "Web"})

        assert response.status_code == 201
        assert response.json()["type"] == TransactionType.PAYMENT.value
        bill = await client.get("/bills/s1")
        assert Decimal(bill.json()["balance"]) == Decimal("5000.00")

    async def test_bad_payment(self, client, campus):
        await login(client, "s1")
        response = await client.post("/bills/s1/payments", json={"amount": "-1"})
        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_PAYMENT"

    async def test_payment_for_someone_else_forbidden(self, client, campus):
        await login(client, "s2")
        response = await client.post("/bills/s1/payments", json={"amount": "1.00"})
        assert response.status_code == 403

    async def test_bill_requires_session(self, client, campus):
        response = await client.get("/bills/s1")
        assert response.status_code == 401
