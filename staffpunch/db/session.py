# staffpunch/db/session.py
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from staffpunch.core.config import settings


def _normalize(url: str) -> str:
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url and url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _connect_args(url: str, timeout: float) -> Dict[str, Any]:
    # every database call is bounded so a stuck backend surfaces as TemporaryError
    if url.startswith("sqlite"):
        return {"timeout": timeout, "check_same_thread": False}
    if url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)} -c lock_timeout={int(timeout * 1000)}",
        }
    return {}


def build_engine(url: str | None = None, timeout: float | None = None) -> Engine:
    url = _normalize((url or settings.DATABASE_URL).strip())
    timeout = settings.DB_TIMEOUT_SECONDS if timeout is None else timeout
    kwargs: Dict[str, Any] = {"pool_pre_ping": True, "connect_args": _connect_args(url, timeout)}
    if not url.startswith("sqlite"):
        kwargs["pool_timeout"] = timeout
    return create_engine(url, **kwargs)


SQLALCHEMY_DATABASE_URL = _normalize(settings.DATABASE_URL)

engine = build_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
