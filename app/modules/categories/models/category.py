from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.db.session import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    icon_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    posts = relationship("Post", back_populates="category")
