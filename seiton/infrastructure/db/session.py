"""
Database backend (SQLAlchemy engine + session factory)

A Backend is built once by the application factory, started in the app
lifespan and disposed on shutdown. Request handlers reach it through
``request.app.state.backend``.
"""
import logging

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from seiton.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models
    """
    pass


class BackendNotConfiguredError(RuntimeError):
    """DATABASE_URL is missing, so nothing that needs storage can run."""

    def __init__(self, message: str = "Backend is not configured. Set DATABASE_URL in the environment."):
        super().__init__(message)


class Backend:
    """
    Owns the engine and the session factory for one application instance.
    """

    def __init__(self, settings: Settings, engine: Engine | None = None):
        self.settings = settings
        self._engine = engine
        # Engines passed in are owned by the caller and never disposed here
        self._owns_engine = False
        self._session_factory = (
            sessionmaker(bind=engine, autoflush=False, autocommit=False) if engine is not None else None
        )

    @property
    def is_ready(self) -> bool:
        return self._engine is not None

    def start(self) -> None:
        """
        Create the engine from settings.

        Without DATABASE_URL a DEBUG instance keeps running with storage
        disabled; any other instance refuses to start.
        """
        if self._engine is not None:
            return
        if not self.settings.backend_configured:
            if self.settings.DEBUG:
                logger.warning(
                    "DATABASE_URL is not set: storage, sign-in and all account pages are disabled"
                )
                return
            raise BackendNotConfiguredError()

        self._engine = create_engine(self.settings.get_sqlalchemy_url(), pool_pre_ping=True)
        self._owns_engine = True
        self._session_factory = sessionmaker(bind=self._engine, autoflush=False, autocommit=False)
        logger.info("Backend started (%s)", self._engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        if self._engine is None or not self._owns_engine:
            return
        self._engine.dispose()
        logger.info("Backend disposed")
        self._engine = None
        self._session_factory = None
        self._owns_engine = False

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise BackendNotConfiguredError()
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            raise BackendNotConfiguredError()
        return self._session_factory()

    def check_connection(self) -> None:
        """
        Health check - run SELECT 1 against the database

        Raises:
            BackendNotConfiguredError: backend was never started
            sqlalchemy.exc.OperationalError: database unreachable
        """
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))


def get_db(request: Request):
    """
    FastAPI dependency - opens a session on the app backend and closes it

    Usage:
        @app.get("/profile")
        def profile(db: Session = Depends(get_db)):
            ...
    """
    backend: Backend = request.app.state.backend
    db = backend.session()
    try:
        yield db
    finally:
        db.close()
