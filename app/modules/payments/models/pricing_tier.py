from sqlalchemy import Boolean, Column, Integer, String, DateTime, Numeric

from app.core.clock import utcnow
from app.db.session import Base


class PricingTier(Base):
    __tablename__ = "pricing_tiers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    visibility_days = Column(Integer, nullable=False)
    price = Column(Numeric(18, 2), nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
