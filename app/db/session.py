from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core import config


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Privileged connection for the billing webhook only
if config.SERVICE_DATABASE_URL == config.DATABASE_URL:
    service_engine = engine
else:
    service_engine = create_engine(config.SERVICE_DATABASE_URL, **_engine_kwargs(config.SERVICE_DATABASE_URL))
ServiceSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=service_engine)


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_service_db():
    """Privileged session dependency, used by the billing webhook."""
    db = ServiceSessionLocal()
    try:
        yield db
    finally:
        db.close()
