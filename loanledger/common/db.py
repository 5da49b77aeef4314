"""Engine and read-only session scope for the loan-origination database."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from loanledger.common.config import settings


engine = create_engine(
    settings.postgres_dsn,
    pool_pre_ping=True,
    pool_recycle=settings.db_pool_recycle_seconds,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Mappings for tables owned by the loan-origination backend."""


@contextmanager
def read_only_session(session_factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    """Yield a session whose transaction is always rolled back."""

    db = (session_factory or SessionLocal)()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
