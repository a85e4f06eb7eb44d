from typing import List, Optional

from sqlalchemy.orm import Session

from app.db.repository import CrudHelper
from app.modules.payments.models.pricing_tier import PricingTier


class PricingTierRepository:
    def __init__(self, db: Session):
        self.crud = CrudHelper(PricingTier, db)

    def find_by_id(self, tier_id: int) -> Optional[PricingTier]:
        return self.crud.find_by_id(tier_id)

    def find_active(self) -> List[PricingTier]:
        return self.crud.find_all(PricingTier.is_active.is_(True), order_by=(PricingTier.price, PricingTier.id))

    def create(self, **data) -> PricingTier:
        return self.crud.create(**data)
