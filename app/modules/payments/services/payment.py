import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.modules.payments.models.payment import Payment, PaymentStatus
from app.modules.payments.repositories.payment import PaymentRepository
from app.modules.payments.repositories.pricing_tier import PricingTierRepository
from app.modules.payments.schemas.payment import (
    PaymentConfirm,
    PaymentCreate,
    PaymentHistory,
    PaymentOut,
    PricingTierOut,
)
from app.modules.posts.repositories.post import PostRepository

logger = logging.getLogger("app")

CANCELLED_REASON = "Cancelled by user"


class PaymentService:
    """
    Payment records for posts. A payment starts Pending and moves once,
    to Confirmed or Failed; both are terminal.
    """

    def __init__(self, db: Session):
        self.payments = PaymentRepository(db)
        self.tiers = PricingTierRepository(db)
        self.posts = PostRepository(db)

    def _get_payers_payment(self, payment_id: int, user_id: int) -> Payment:
        payment = self.payments.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if payment.user_id != user_id:
            raise ForbiddenError("You can only manage your own payments")
        return payment

    @staticmethod
    def _ensure_pending(payment: Payment, action: str) -> None:
        if payment.status != PaymentStatus.PENDING:
            raise ConflictError(f"Cannot {action} a payment with status {payment.status.value}")

    def create_payment(self, user_id: int, data: PaymentCreate) -> PaymentOut:
        post = self.posts.find_by_id(data.post_id, with_relations=False)
        if not post:
            raise NotFoundError("Post not found")
        if post.user_id == user_id:
            raise BadRequestError("You cannot pay for your own post")

        if data.pricing_tier_id is not None:
            tier = self.tiers.find_by_id(data.pricing_tier_id)
            if not tier:
                raise NotFoundError("Pricing tier not found")
            if not tier.is_active:
                raise BadRequestError("Pricing tier is not active")

        payment = self.payments.create(
            post_id=post.id,
            user_id=user_id,
            pricing_tier_id=data.pricing_tier_id,
            amount=post.price,
            currency="UGX",
            payment_method=data.payment_method,
            status=PaymentStatus.PENDING,
        )
        logger.info(f"User {user_id} created payment {payment.id} for post {post.id}")
        return PaymentOut.model_validate(self.payments.find_by_id(payment.id))

    def confirm_payment(self, payment_id: int, user_id: int, data: PaymentConfirm) -> PaymentOut:
        payment = self._get_payers_payment(payment_id, user_id)
        self._ensure_pending(payment, "confirm")
        payment = self.payments.update(
            payment,
            status=PaymentStatus.CONFIRMED,
            transaction_reference=data.transaction_reference,
            confirmed_at=utcnow(),
        )
        logger.info(f"Payment {payment_id} confirmed ({data.transaction_reference})")
        return PaymentOut.model_validate(payment)

    def fail_payment(self, payment_id: int, user_id: int, reason: Optional[str] = None) -> PaymentOut:
        payment = self._get_payers_payment(payment_id, user_id)
        self._ensure_pending(payment, "fail")
        payment = self.payments.update(
            payment,
            status=PaymentStatus.FAILED,
            failure_reason=reason or "Payment failed",
            failed_at=utcnow(),
        )
        logger.info(f"Payment {payment_id} failed: {payment.failure_reason}")
        return PaymentOut.model_validate(payment)

    def cancel_payment(self, payment_id: int, user_id: int) -> PaymentOut:
        payment = self._get_payers_payment(payment_id, user_id)
        self._ensure_pending(payment, "cancel")
        payment = self.payments.update(
            payment,
            status=PaymentStatus.FAILED,
            failure_reason=CANCELLED_REASON,
            failed_at=utcnow(),
        )
        logger.info(f"Payment {payment_id} cancelled by user {user_id}")
        return PaymentOut.model_validate(payment)

    def get_payment(self, payment_id: int, user_id: int) -> PaymentOut:
        """Visible to the payer and to the owner of the post paid for"""
        payment = self.payments.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        if payment.user_id != user_id and payment.post.user_id != user_id:
            raise ForbiddenError("You do not have access to this payment")
        return PaymentOut.model_validate(payment)

    def get_history(self, user_id: int) -> PaymentHistory:
        payments = self.payments.find_by_user(user_id)
        return PaymentHistory(
            payments=[PaymentOut.model_validate(payment) for payment in payments],
            total_spent=self.payments.total_confirmed_for_user(user_id),
            total_payments=len(payments),
        )

    def get_post_payments(self, post_id: int, user_id: int) -> List[PaymentOut]:
        post = self.posts.find_by_id(post_id, with_relations=False)
        if not post:
            raise NotFoundError("Post not found")
        if post.user_id != user_id:
            raise ForbiddenError("Only the post owner can view its payments")
        return [PaymentOut.model_validate(payment) for payment in self.payments.find_by_post(post_id)]

    def list_pricing_tiers(self) -> List[PricingTierOut]:
        return [PricingTierOut.model_validate(tier) for tier in self.tiers.find_active()]
