from contextlib import contextmanager
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from lifehub.config import get_settings


def create_db_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """Create a SQLAlchemy engine for the key-value tables."""
    settings = get_settings()
    url = database_url or settings.database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        echo=settings.debug if echo is None else echo,
        pool_pre_ping=True,  # Verify connection health before use
        connect_args=connect_args,
    )


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    # Registers KeyValueRecord on SQLModel.metadata
    import lifehub.models.kv  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session_context(engine: Engine) -> Generator[Session, None, None]:
    """Session scope that commits on success and rolls back on error."""
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
