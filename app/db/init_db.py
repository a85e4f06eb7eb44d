import logging
from decimal import Decimal
from typing import Optional

from alembic.config import Config
from alembic import command
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.db.session import Database

logger = logging.getLogger("app")

DEFAULT_CATEGORIES = [
    ("Electronics", "Phones, computers, TVs, cameras, and other electronic devices"),
    ("Vehicles", "Cars, motorcycles, bicycles, and automotive parts"),
    ("Home & Furniture", "Furniture, home decor, and household items"),
    ("Appliances", "Kitchen appliances, refrigerators, washing machines, and more"),
    ("Fashion & Accessories", "Clothing, shoes, bags, jewelry, and fashion items"),
    ("Sports & Outdoors", "Sports equipment, fitness gear, and outdoor recreation items"),
    ("Books, Music & Hobbies", "Books, musical instruments, collectibles, and hobby supplies"),
    ("Kids & Baby", "Children's toys, baby gear, and kids' clothing"),
    ("Office & Business", "Office furniture, equipment, and business supplies"),
    ("Tools & Home Improvement", "Power tools, hand tools, and home improvement supplies"),
    ("Health & Beauty", "Cosmetics, skincare, health products, and wellness items"),
    ("Pets", "Pet supplies, accessories, and pet care products"),
    ("Free Stuff", "Items available for free to anyone who can pick them up"),
    ("Miscellaneous", "Other items that don't fit into the above categories"),
]

# (name, visibility days, price in UGX, description)
DEFAULT_PRICING_TIERS = [
    ("Basic", 30, Decimal("0"), "Standard listing visible for 30 days"),
    ("Featured", 60, Decimal("10000"), "Highlighted listing visible for 60 days"),
    ("Premium", 90, Decimal("25000"), "Top placement listing visible for 90 days"),
]


def init_db(config_path: str = "alembic.ini") -> None:
    """
    Initialize the database by running Alembic migrations.
    """
    try:
        alembic_cfg = Config(config_path)
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations applied successfully")
    except Exception as e:
        logger.error(f"Error applying database migrations: {e}")
        raise


def create_all_tables(database: Database) -> bool:
    try:
        existing_tables = inspect(database.engine).get_table_names()

        database.create_all()

        new_tables = set(inspect(database.engine).get_table_names()) - set(existing_tables)
        if new_tables:
            logger.info(f"Created new tables: {new_tables}")

        return True
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        return False


def seed_categories(db: Session) -> int:
    from app.modules.categories.models.category import Category

    existing = {name for (name,) in db.query(Category.name).all()}
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if name in existing:
            continue
        db.add(Category(name=name, description=description))
        created += 1
    db.commit()
    logger.info(f"Seeded {created} categories")
    return created


def seed_pricing_tiers(db: Session) -> int:
    from app.modules.payments.models.pricing_tier import PricingTier

    existing = {name for (name,) in db.query(PricingTier.name).all()}
    created = 0
    for name, visibility_days, price, description in DEFAULT_PRICING_TIERS:
        if name in existing:
            continue
        db.add(PricingTier(name=name, visibility_days=visibility_days, price=price, description=description))
        created += 1
    db.commit()
    logger.info(f"Seeded {created} pricing tiers")
    return created


def promote_admin(db: Session, email: str) -> Optional[int]:
    """Grant the admin flag to the user with ``email``; returns the user id, or None if absent."""
    from app.modules.user_management.models.user import User

    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        logger.warning(f"Cannot promote {email}: user not found")
        return None
    user.is_admin = True
    db.commit()
    logger.info(f"User {user.id} ({email}) is now an administrator")
    return user.id
