from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from app.core.responses import CamelModel
from app.modules.payments.models.payment import PaymentMethod, PaymentStatus


class PaymentCreate(CamelModel):
    post_id: int = Field(gt=0)
    pricing_tier_id: Optional[int] = Field(default=None, gt=0)
    payment_method: PaymentMethod


class PaymentConfirm(CamelModel):
    transaction_reference: str = Field(min_length=1, max_length=255)


class PaymentFail(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class PaymentPost(CamelModel):
    id: int
    title: str


class PaymentOut(CamelModel):
    id: int
    post_id: int
    user_id: int
    pricing_tier_id: Optional[int] = None
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    transaction_reference: Optional[str] = None
    status: PaymentStatus
    failure_reason: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    created_at: datetime
    post: Optional[PaymentPost] = None


class PaymentHistory(CamelModel):
    payments: List[PaymentOut]
    total_spent: Decimal
    total_payments: int


class PricingTierOut(CamelModel):
    id: int
    name: str
    visibility_days: int
    price: Decimal
    description: Optional[str] = None
    is_active: bool
