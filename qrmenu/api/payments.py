"""
QR Menu Order Service - Payment provider callback

Providers verify their own signatures before calling in; this endpoint only
receives the normalised outcome for one payment record.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import http_error
from qrmenu.core.errors import DomainError
from qrmenu.db.database import get_db
from qrmenu.schemas.order import PaymentCallbackRequest, PaymentResponse
from qrmenu.services import payments as payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/callback", response_model=PaymentResponse)
async def payment_callback(payload: PaymentCallbackRequest, db: AsyncSession = Depends(get_db)):
    try:
        return await payment_service.apply_payment_result(
            db, payload.payment_id, payload.status, method=payload.method.value
        )
    except DomainError as e:
        raise http_error(e)
