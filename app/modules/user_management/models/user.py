from sqlalchemy import Boolean, Column, Integer, String, DateTime, CheckConstraint

from app.core.clock import utcnow
from app.db.session import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # Local accounts carry a password hash, federated ones a provider identity
        CheckConstraint(
            "password_hash IS NOT NULL OR (oauth_provider IS NOT NULL AND oauth_provider_id IS NOT NULL)",
            name="ck_users_identity",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20), index=True, nullable=True)
    payments_number = Column(String(20), nullable=True)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)  # Null for OAuth-only accounts
    oauth_provider = Column(String(50), nullable=True)
    oauth_provider_id = Column(String(255), nullable=True)
    profile_picture_url = Column(String(500), nullable=True)
    location = Column(String(255), nullable=True)
    bio = Column(String(500), nullable=True)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    is_phone_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)  # Flag for system administrators
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
