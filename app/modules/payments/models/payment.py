import enum

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.db.session import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    FAILED = "Failed"


class PaymentMethod(str, enum.Enum):
    CARD = "Card"
    MOBILE_MONEY = "MobileMoney"
    BANK_TRANSFER = "BankTransfer"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    pricing_tier_id = Column(Integer, ForeignKey("pricing_tiers.id"), nullable=True)
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), default="UGX", nullable=False)
    payment_method = Column(
        Enum(PaymentMethod, values_callable=lambda e: [m.value for m in e], native_enum=False, length=50),
        nullable=False,
    )
    transaction_reference = Column(String(255), nullable=True)
    status = Column(
        Enum(PaymentStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=50),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    failure_reason = Column(String(500), nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("Post")
    user = relationship("User")
    pricing_tier = relationship("PricingTier")
