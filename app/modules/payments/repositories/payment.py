from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.db.repository import CrudHelper
from app.modules.payments.models.payment import Payment, PaymentStatus


def payment_relations() -> Tuple:
    return (joinedload(Payment.post), joinedload(Payment.pricing_tier))


class PaymentRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(Payment, db)

    def find_by_id(self, payment_id: int) -> Optional[Payment]:
        return self.crud.find_by_id(payment_id, options=payment_relations())

    def find_by_user(self, user_id: int) -> List[Payment]:
        return self.crud.find_all(
            Payment.user_id == user_id,
            order_by=(Payment.created_at.desc(), Payment.id.desc()),
            options=payment_relations(),
        )

    def find_by_post(self, post_id: int) -> List[Payment]:
        return self.crud.find_all(
            Payment.post_id == post_id,
            order_by=(Payment.created_at.desc(), Payment.id.desc()),
            options=payment_relations(),
        )

    def total_confirmed_for_user(self, user_id: int) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(Payment.user_id == user_id, Payment.status == PaymentStatus.CONFIRMED)
            .scalar()
        )
        return Decimal(total)

    def create(self, **data) -> Payment:
        return self.crud.create(**data)

    def update(self, payment: Payment, **data) -> Payment:
        return self.crud.update(payment, **data)
