# File: src/campusbill/core/billing.py
"""Bills, charge history and payments for a student account."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.core.access import AccessControl
from campusbill.core.errors import InvalidDateRangeError, InvalidPaymentError
from campusbill.core.logging import get_logger
from campusbill.core.session import UserSession
from campusbill.core.store import StudentDirectory, UserStore
from campusbill.core.validators import strip_tags, validate_payment_amount
from campusbill.models.enums import TransactionType
from campusbill.models.record_schemas import BillRead, StudentSummary, TransactionRecord
from campusbill.models.student_profile import StudentProfile
from campusbill.models.transaction import Transaction
from campusbill.utils.datetime import today_local

logger = get_logger(__name__)

ZERO = Decimal("0.00")


def summarize(
    profile: StudentProfile,
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> BillRead:
    """Build a bill from ledger lines. Balance is charges minus payments."""
    lines = sorted(transactions, key=lambda t: t.transaction_date)
    charges = sum((t.amount for t in lines if t.type == TransactionType.CHARGE), ZERO)
    payments = sum((t.amount for t in lines if t.type == TransactionType.PAYMENT), ZERO)

    return BillRead(
        student=StudentSummary(
            user_id=profile.user_id,
            first_name=profile.user.first_name,
            last_name=profile.user.last_name,
            college=profile.user.college,
            class_status=profile.class_status,
            term=profile.term,
        ),
        start=start,
        end=end,
        transactions=[TransactionRecord.model_validate(t) for t in lines],
        total_charges=charges,
        total_payments=payments,
        balance=charges - payments,
    )


class BillingService:
    """Billing operations, each gated by access to the student's record."""

    def __init__(self, db: AsyncSession):
        self.store = UserStore(db)
        self.access = AccessControl(self.store, StudentDirectory(db))

    async def generate_bill(self, session: UserSession, user_id: str) -> BillRead:
        """Bill over the student's whole ledger."""
        profile = await self.access.profile_for(session, user_id)
        logger.info("billing.bill_generated", user_id=user_id, requested_by=session.user_id)
        return summarize(profile, profile.transactions)

    async def view_charges(
        self, session: UserSession, user_id: str, start: date, end: date
    ) -> BillRead:
        """
        Bill over ledger lines dated within [start, end].

        Raises:
            InvalidDateRangeError: start is after end.
        """
        profile = await self.access.profile_for(session, user_id)
        if start > end:
            raise InvalidDateRangeError(start.isoformat(), end.isoformat())

        window = [t for t in profile.transactions if start <= t.transaction_date <= end]
        return summarize(profile, window, start=start, end=end)

    async def apply_payment(
        self,
        session: UserSession,
        user_id: str,
        amount: Decimal | str,
        note: Optional[str] = None,
    ) -> TransactionRecord:
        """
        Record a payment against the student's balance, dated today.

        Raises:
            InvalidPaymentError: amount isn't a positive two-place value within limits.
            StoreIOError: the payment couldn't be saved. Not retried.
        """
        profile = await self.access.profile_for(session, user_id)

        try:
            value = validate_payment_amount(amount)
        except ValueError as e:
            raise InvalidPaymentError(str(e), details={"amount": str(amount)}) from e

        payment = Transaction(
            type=TransactionType.PAYMENT,
            transaction_date=today_local(),
            amount=value,
            note=strip_tags(note),
        )
        profile.transactions.append(payment)
        await self.store.save_all([profile])

        logger.info(
            "billing.payment_applied",
            user_id=user_id,
            amount=str(value),
            applied_by=session.user_id,
        )
        return TransactionRecord.model_validate(payment)
