"""Pydantic schemas for the paid-event checkout."""
from datetime import date
from typing import Optional
from pydantic import BaseModel


class CheckoutSummaryOut(BaseModel):
    event_id: str
    title: str
    venue: Optional[str] = None
    date: date
    price: float
    currency: str


class OrderCreate(BaseModel):
    event_id: str


class OrderOut(BaseModel):
    payment_id: str
    order_id: str
    amount: float
    currency: str
    key_id: str  # public key for the checkout widget


class PaymentVerify(BaseModel):
    event_id: str
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentVerifyOut(BaseModel):
    message: str
    already_verified: bool
    payment_id: str
    registration_id: str
    qr_code: str
