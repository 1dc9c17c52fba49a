from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Build the process-wide engine; its pool is shared by every request."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Needed for SQLite in multi-threaded FastAPI
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not database_url.startswith("sqlite"),
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    """Yield a database session and make sure it is always closed.

    Endpoints are responsible for doing commit / rollback explicitly.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
