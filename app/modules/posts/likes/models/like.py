from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.db.session import Base


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        # A user may like a post at most once
        UniqueConstraint("post_id", "user_id", name="uq_likes_post_id_user_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("Post", back_populates="likes")
    user = relationship("User")
