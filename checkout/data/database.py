# checkout/data/database.py
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for declarative ORM models.
Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    """Tworzy engine; dla sqlite w pamięci jedno wspólne połączenie (testy, dev)."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """FastAPI dependency - jedna sesja na request, zawsze zamykana."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
