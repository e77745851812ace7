from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from fastapi import Request
from typing import Generator, Optional
import logging
import redis

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Explicitly constructed handle around one SQLAlchemy engine.

    The application creates a ``Database`` at startup, calls :meth:`connect`,
    and hands out sessions per request through :func:`get_db`. Nothing in the
    package holds a module-level engine.
    """

    def __init__(self, url: str, **engine_options):
        self.url = url
        self.engine_options = engine_options
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def connect(self) -> None:
        """Create the engine and session factory."""
        if self.is_connected:
            return

        options = dict(self.engine_options)
        if self.url.startswith("sqlite"):
            options.setdefault("connect_args", {"check_same_thread": False})
        else:
            options.setdefault("pool_size", 5)
            options.setdefault("max_overflow", 10)
            options.setdefault("pool_timeout", 30)
            options.setdefault("pool_recycle", 1800)  # Recycle connections after 30 minutes

        self.engine = create_engine(self.url, **options)
        self._session_factory = sessionmaker(autoflush=False, bind=self.engine)
        logger.info(f"Connected to database ({self.engine.dialect.name})")

    def disconnect(self) -> None:
        """Dispose of the engine and its connection pool."""
        if not self.is_connected:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Disconnected from database")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory()

    def create_all(self) -> None:
        """Create all tables."""
        # Register every model on Base.metadata
        from ..models import booking, doctor, patient, staff, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        """Drop all tables."""
        from ..models import booking, doctor, patient, staff, user  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)


def create_redis_client(url: str) -> redis.Redis:
    """Build the Redis client used for rate limiting."""
    return redis.from_url(url, decode_responses=True)


# Database dependency
def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis(request: Request):
    """Get Redis client."""
    return request.app.state.redis
