from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware UTC now, used for every timestamp column default."""
    return datetime.now(timezone.utc)

# Note: Models are imported in app.db.models to avoid circular imports
# All models must import Base from this module
