from app.db.session import engine
from app.db.base import Base
import app.db.models  # noqa: F401  registers every table on Base.metadata


def init_db(bind=engine):
    """Create tables directly (used when Alembic migrations are not run)."""
    Base.metadata.create_all(bind=bind)
