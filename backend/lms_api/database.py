"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (for local testing without Docker).
Sync usage; one session per request via get_db.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from lms_api.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_sqlite_db():
    """When using SQLite: create tables. Always: make sure both roles exist. Call once at app startup."""
    from lms_api.services.credential_store import CredentialStore

    if _is_sqlite:
        # Import all models so they register with Base before create_all
        from lms_api.models import user, role, course, module, activity  # noqa: F401
        Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = CredentialStore(db).ensure_roles()
        if created:
            logger.info("Bootstrap: created roles %s", ", ".join(created))
    finally:
        db.close()


def get_db():
    """Dependency: yield a DB session, close after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
