from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./tournament.db"
    admin_group_id: str = ""
    dev_mode: bool = False
    log_level: str = "INFO"

    default_rounds: int = 10
    default_round_duration_weeks: int = 2
    max_rounds: int = 20

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite needs check_same_thread=False because FastAPI serves sync
    endpoints from a thread pool.
    """
    is_sqlite = database_url.startswith("sqlite")
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        pool_pre_ping=True
    )


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign keys off; cascades rely on them.
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency: one Session per request.

    The session is closed once the response has been produced.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Transaction decorator: run the wrapped function as one atomic unit.

    Usage:
        @transactional
        def some_business_logic(db: Session, ...):
            tournament = Tournament(...)
            db.add(tournament)
            # no manual commit, the decorator handles it

    If the function raises:
        - the session is rolled back
        - the exception is re-raised for the caller to handle

    Notes:
        - the first argument (or the `db` keyword) must be a Session
        - do not commit inside the function
        - do not nest two @transactional functions; the inner commit would
          end the outer transaction early
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
