from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
import logging

from app.core.config import Settings

logger = logging.getLogger("app")

# Base class for all SQLAlchemy models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, database_url: str):
        if not database_url:
            logger.error("DATABASE_URL is not set or empty!")
            raise ValueError("DATABASE_URL environment variable is required")

        self.url = database_url
        is_sqlite = database_url.startswith("sqlite")
        try:
            if is_sqlite:
                self.engine: Engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                )
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            else:
                self.engine = create_engine(
                    database_url,
                    pool_pre_ping=True,  # Check connection before using from pool
                    pool_recycle=3600,   # Recycle connections after 1 hour
                )
            logger.info("Database engine created successfully")
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise

        # Create session factory for database interactions
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.DATABASE_URL)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        # Import models so they register on Base.metadata
        import app.db.base  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Disposing database engine")
        self.engine.dispose()


# Database session dependency for FastAPI
def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
