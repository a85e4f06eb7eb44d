"""
Database initialization script.
Creates all tables and seeds the default categories and pricing tiers.
Run this as: python init_db.py [--migrate] [--admin-email someone@example.com]
"""

import argparse
import logging
import sys

from app.core.config import settings
from app.db.init_db import create_all_tables, init_db, promote_admin, seed_categories, seed_pricing_tiers
from app.db.session import Database

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("app")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create tables and seed reference data")
    parser.add_argument("--migrate", action="store_true", help="Apply Alembic migrations instead of create_all")
    parser.add_argument("--admin-email", help="Grant the admin flag to this existing user")
    args = parser.parse_args()

    database = Database.from_settings(settings)
    logger.info(f"Initializing database at: {database.engine.url.render_as_string(hide_password=True)}")

    if args.migrate:
        init_db()
    elif not create_all_tables(database):
        logger.error("Database initialization failed")
        return 1

    db = database.session()
    try:
        seed_categories(db)
        seed_pricing_tiers(db)
        if args.admin_email and promote_admin(db, args.admin_email) is None:
            return 1
    finally:
        db.close()
        database.dispose()

    logger.info("Database initialization completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
