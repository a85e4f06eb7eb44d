# Import all models here so Alembic can detect them
from app.db.session import Base

# Import all models below
from app.modules.user_management.models.user import User
from app.modules.categories.models.category import Category
from app.modules.payments.models.pricing_tier import PricingTier
from app.modules.posts.models.post import Post, PostImage
from app.modules.posts.likes.models.like import Like
from app.modules.posts.views.models.view import View
from app.modules.payments.models.payment import Payment
from app.modules.messages.models.message import Message
