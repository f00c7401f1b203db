# File: src/campusbill/api/billing.py
"""Bill, charge history and payment endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campusbill.api.auth import get_user_session
from campusbill.core.billing import BillingService
from campusbill.core.db import get_db
from campusbill.core.session import UserSession
from campusbill.models.record_schemas import BillRead, PaymentCreate, TransactionRecord

router = APIRouter(prefix="/bills", tags=["billing"])


@router.get("/{user_id}", response_model=BillRead)
async def generate_bill(
    user_id: str,
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """Current bill over the whole ledger."""
    return await BillingService(db).generate_bill(session, user_id)


@router.get("/{user_id}/charges", response_model=BillRead)
async def view_charges(
    user_id: str,
    start: date = Query(..., description="First day of the window (inclusive)"),
    end: date = Query(..., description="Last day of the window (inclusive)"),
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """Ledger lines and totals for a date window."""
    return await BillingService(db).view_charges(session, user_id, start, end)


@router.post(
    "/{user_id}/payments",
    response_model=TransactionRecord,
    status_code=status.HTTP_201_CREATED,
)
async def apply_payment(
    user_id: str,
    payment: PaymentCreate,
    session: UserSession = Depends(get_user_session),
    db: AsyncSession = Depends(get_db),
):
    """Apply a payment to the student's balance."""
    return await BillingService(db).apply_payment(session, user_id, payment.amount, payment.note)
