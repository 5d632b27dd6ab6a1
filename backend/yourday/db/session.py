import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlmodel import SQLModel, create_engine, Session
from ..core.config import settings

logger = logging.getLogger(__name__)

def _engine_kwargs(url: str) -> dict:
    if make_url(url).get_backend_name() == "sqlite":
        # FastAPI runs sync endpoints in a threadpool.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}

engine = create_engine(settings.DATABASE_URL, echo=False, **_engine_kwargs(settings.DATABASE_URL))

def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

def init_db() -> None:
    from . import models  # noqa: F401
    _ensure_sqlite_dir(settings.DATABASE_URL)
    SQLModel.metadata.create_all(engine)
    logger.info("Database ready url=%s", engine.url.render_as_string(hide_password=True))

def get_session():
    with Session(engine) as session:
        yield session
