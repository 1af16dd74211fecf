"""SQLAlchemy engine and session helpers."""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings
from ..core.errors import ConstraintViolationError

# ``Base`` is the parent class for every table defined in sublinear/models.
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(db_url: str) -> Engine:
    """Build an engine; SQLite connections get foreign keys switched on."""

    if not db_url.startswith("sqlite"):
        return create_engine(db_url, pool_pre_ping=True)
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database.
        engine = create_engine(db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(db_url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def make_sessionmaker(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = make_engine(settings.DB_URL)
SessionLocal = make_sessionmaker(engine)


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session) -> None:
    """Commit, turning constraint rejections into a retryable domain error."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolationError() from exc


def flush(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolationError() from exc
