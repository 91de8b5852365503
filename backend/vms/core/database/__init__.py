"""
Database module
"""
from typing import Optional, Generator
from sqlalchemy.orm import Session, declarative_base
from vms.core.database.client import DatabaseClient
from vms.core.config import settings

# SQLAlchemy Base for models
Base = declarative_base()

_client: Optional[DatabaseClient] = None


def get_client() -> DatabaseClient:
    """Get or create the database client singleton"""
    global _client
    if _client is None:
        _client = DatabaseClient(settings.DATABASE_URL)
        _client.connect()
    return _client


def get_db() -> Generator[Session, None, None]:
    """Database session - FastAPI dependency"""
    session = get_client().get_session()
    try:
        yield session
    finally:
        session.close()


def SessionLocal() -> Session:
    """
    Stand-alone session factory for use in non-FastAPI contexts (e.g. scripts, startup tasks).
    """
    return get_client().get_session()


def init_db() -> None:
    """Create all tables"""
    import vms.models  # noqa: F401  registers every model on Base.metadata
    client = get_client()
    if not client.is_connected:
        client.connect()
    Base.metadata.create_all(bind=client.engine)


def reset_client():
    """Reset the database client (for testing)"""
    global _client
    if _client:
        _client.disconnect()
    _client = None


__all__ = [
    "Base",
    "get_db",
    "get_client",
    "SessionLocal",
    "init_db",
    "reset_client",
]
