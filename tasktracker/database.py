import logging
from datetime import datetime, UTC

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from tasktracker.config import DATABASE_URL

logger = logging.getLogger(__name__)

# Only apply sqlite-specific connect_args when using sqlite
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Enable pool_pre_ping to avoid stale connections (useful for cloud DBs like Neon)
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo on the way back anyway."""
    return datetime.now(UTC).replace(tzinfo=None)


def init_db(bind=None):
    """Create all tables on the given engine (defaults to the configured one)."""
    # models must be imported so their tables are registered on Base.metadata
    from tasktracker.models import task, user, workspace  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database initialized")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
