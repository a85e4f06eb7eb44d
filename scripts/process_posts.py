"""
Publish scheduled posts that are due and expire lapsed ones.
Meant to be run periodically, e.g. from cron: python -m scripts.process_posts
"""

import logging
import sys

from app.core.config import settings
from app.core.storage import build_storage
from app.db.session import Database
from app.modules.posts.services.post import PostService

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger("app")


def main() -> int:
    database = Database.from_settings(settings)
    db = database.session()
    try:
        result = PostService(db, settings, build_storage(settings)).process_due_posts()
        logger.info(f"Published {result.published} scheduled posts, expired {result.expired} posts")
    except Exception as e:
        logger.error(f"Post processing failed: {e}")
        return 1
    finally:
        db.close()
        database.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
