from app.db.base import Base, CreatedAtMixin, IDMixin, TimestampMixin, as_utc, utcnow
from app.db.session import SessionLocal, engine, get_db

__all__ = [
    "Base",
    "IDMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "as_utc",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_db",
]
