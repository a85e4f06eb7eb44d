import enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Numeric, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship

from app.core.clock import utcnow
from app.db.session import Base


class PostStatus(str, enum.Enum):
    DRAFT = "Draft"
    PENDING_REVIEW = "PendingReview"
    SCHEDULED = "Scheduled"
    PUBLISHED = "Published"
    REJECTED = "Rejected"
    EXPIRED = "Expired"
    DELETED = "Deleted"


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_status_published_at", "status", "published_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    brand = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)
    price = Column(Numeric(18, 2), nullable=False)
    location = Column(String(255), nullable=False)
    gps_location = Column(Text, nullable=True)
    delivery_method = Column(String(100), nullable=True)
    contact_number = Column(String(20), nullable=False)
    email_address = Column(String(255), nullable=True)
    status = Column(
        Enum(PostStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=50),
        default=PostStatus.DRAFT,
        nullable=False,
    )
    scheduled_publish_time = Column(DateTime, nullable=True)
    published_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    pricing_tier_id = Column(Integer, ForeignKey("pricing_tiers.id"), nullable=True)
    instagram_post_id = Column(String(255), nullable=True)
    instagram_posted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")
    category = relationship("Category", back_populates="posts")
    pricing_tier = relationship("PricingTier")
    images = relationship(
        "PostImage",
        back_populates="post",
        order_by="PostImage.display_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    views = relationship("View", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)


class PostImage(Base):
    __tablename__ = "post_images"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), index=True, nullable=False)
    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    post = relationship("Post", back_populates="images")
