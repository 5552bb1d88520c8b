"""
DB types that work on both SQLite (for local testing) and PostgreSQL.
Use these in models so the app runs without Docker when DATABASE_URL is sqlite:///...
"""
from datetime import datetime, timezone
from sqlalchemy import DateTime, TypeDecorator


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC datetime. SQLite drops tzinfo on read; this puts it back so comparisons with now() work."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
