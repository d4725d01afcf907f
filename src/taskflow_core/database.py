"""Database connection, session management and the process-wide store."""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .config import get_settings
from .models import Base
from .sql_store import SqlAlchemyStore
from .store import DataStore

logger = logging.getLogger("taskflow-core.database")

settings = get_settings()

_is_sqlite = settings.database_url.startswith("sqlite")

# Create database engine
engine = create_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_pre_ping=True,          # Verify connections before using
    # SQLite connections are shared across the server's worker threads
    connect_args={"check_same_thread": False} if _is_sqlite else {},
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# The store is process-wide; the data access layer never opens or closes it
store = SqlAlchemyStore(SessionLocal)


def get_store() -> DataStore:
    """
    Dependency function to get the data store.

    Tests override this with an in-memory store.
    """
    return store


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
