"""
Modules package initialization.
Each functional area of the marketplace lives in its own module.
"""

from app.modules import auth
from app.modules import user_management
from app.modules import categories
from app.modules import posts
from app.modules import home_feed
from app.modules import payments
from app.modules import messages
from app.modules import media
