"""Paid-event checkout routes (Razorpay)."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clubhub.clients.blob_store import get_blob_store
from clubhub.clients.payment_gateway import get_payment_gateway
from clubhub.database import get_db
from clubhub.identity import Identity, require_student
from clubhub.schemas.payment import CheckoutSummaryOut, OrderCreate, OrderOut, PaymentVerify, PaymentVerifyOut
from clubhub.services import payment_service

router = APIRouter()


@router.get("/events/{event_id}", response_model=CheckoutSummaryOut)
def checkout_summary(event_id: str, identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    """What the student is about to pay for; 409 if already paid or registered."""
    return payment_service.get_checkout_summary(db, identity.user_id, event_id)


@router.post("/orders", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    identity: Identity = Depends(require_student),
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
):
    """Open a gateway order for a paid event."""
    payment = payment_service.create_order(db, identity.user_id, payload.event_id, gateway)
    return OrderOut(
        payment_id=payment.payment_id,
        order_id=payment.gateway_order_id,
        amount=payment.amount,
        currency=payment.currency,
        key_id=gateway.key_id,
    )


@router.post("/verify", response_model=PaymentVerifyOut)
def verify_payment(
    payload: PaymentVerify,
    identity: Identity = Depends(require_student),
    db: Session = Depends(get_db),
    gateway=Depends(get_payment_gateway),
    blob_store=Depends(get_blob_store),
):
    """Verify the checkout callback and issue the registration. Safe to repeat."""
    result = payment_service.verify_payment(
        db=db,
        student_id=identity.user_id,
        event_id=payload.event_id,
        gateway_order_id=payload.razorpay_order_id,
        gateway_payment_id=payload.razorpay_payment_id,
        gateway_signature=payload.razorpay_signature,
        gateway=gateway,
        blob_store=blob_store,
    )
    return PaymentVerifyOut(
        message="Payment already verified" if result.already_verified else "Payment successful",
        already_verified=result.already_verified,
        payment_id=result.payment.payment_id,
        registration_id=result.registration.registration_id,
        qr_code=result.registration.qr_code,
    )
