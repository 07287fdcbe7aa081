# single_safety/core/db.py
from __future__ import annotations

from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

_engine: Engine | None = None


def init_db(database_url: str) -> Engine:
    global _engine
    from single_safety.core import models  # noqa: F401  (register tables)

    url = make_url(database_url)
    kwargs = {}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    _engine = create_engine(database_url, **kwargs)
    SQLModel.metadata.create_all(_engine)
    return _engine


def get_engine() -> Engine | None:
    return _engine


def dispose_db() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def get_session() -> Generator[Session, None, None]:
    if _engine is None:
        raise RuntimeError("DB not initialized")
    with Session(_engine) as session:
        yield session
