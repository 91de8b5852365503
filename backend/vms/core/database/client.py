"""
SQLAlchemy database client
"""
import logging
import os
from typing import Any, Dict
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Owns the engine and session factory for one database URL"""

    def __init__(self, url: str):
        self.url = url
        self.engine = None
        self.SessionLocal = None
        self.is_connected = False

    def connect(self) -> bool:
        try:
            url = make_url(self.url)
            kwargs: Dict[str, Any] = {}
            if url.get_backend_name() == "sqlite":
                kwargs["connect_args"] = {"check_same_thread": False}
                if url.database in (None, "", ":memory:"):
                    # One shared connection so every session sees the same in-memory database
                    kwargs["poolclass"] = StaticPool
                else:
                    directory = os.path.dirname(url.database)
                    if directory:
                        os.makedirs(directory, exist_ok=True)
            self.engine = create_engine(self.url, **kwargs)
            self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
            self.is_connected = True
            return True
        except Exception as e:
            logger.error(f"Database connection error: {e}", exc_info=True)
            self.is_connected = False
            return False

    def disconnect(self) -> bool:
        try:
            if self.engine:
                self.engine.dispose()
            self.is_connected = False
            return True
        except Exception as e:
            logger.error(f"Database disconnect error: {e}")
            return False

    def test_connection(self) -> bool:
        try:
            if not self.is_connected and not self.connect():
                return False
            with self.SessionLocal() as session:
                session.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def get_session(self) -> Session:
        if not self.is_connected:
            self.connect()
        return self.SessionLocal()

    def health_check(self) -> Dict[str, Any]:
        return {
            "type": self.engine.dialect.name if self.engine else None,
            "connected": self.is_connected,
            "status": "healthy" if self.test_connection() else "unhealthy",
        }
