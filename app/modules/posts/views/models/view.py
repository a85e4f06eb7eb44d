from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.db.session import Base


class View(Base):
    __tablename__ = "views"
    __table_args__ = (
        Index("ix_views_post_id_created_at", "post_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    referrer_url = Column(String(500), nullable=True)
    session_id = Column(String(100), nullable=True)
    view_duration = Column(Integer, nullable=True)
    # Decided once at insert time, never recomputed
    is_unique = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("Post", back_populates="views")
