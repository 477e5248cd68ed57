"""DepositLens — Database Engine & Session Factory.

One engine per process. SQLite is the default store for the staging,
derived and report tables; a PostgreSQL URL switches to pooled connections.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from depositlens.config import settings
from depositlens.core.logging import get_logger

# Registers every table on SQLModel.metadata
from depositlens.models import analysis_models, normalized_models, raw_models  # noqa: F401

logger = get_logger("database")

db_url = settings.effective_database_url


def _mask_url(url: str) -> str:
    """Hide the password part of a DB URL before it reaches the logs."""
    if "@" not in url:
        return url
    credentials, host = url.split("@", 1)
    scheme, _, userinfo = credentials.partition("//")
    if ":" not in userinfo:
        return url
    user = userinfo.split(":", 1)[0]
    return f"{scheme}//{user}:****@{host}"


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": False, "connect_args": {"check_same_thread": False}}
    return {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
    }


engine = create_engine(db_url, **_engine_kwargs(db_url))
logger.info(
    f"Engine ready for {'sqlite' if db_url.startswith('sqlite') else 'postgresql'} "
    f"at {_mask_url(db_url)}"
)


def test_connection() -> bool:
    """Round-trip a SELECT 1; False (and an error log) when the store is down."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database unreachable at {_mask_url(db_url)}: {e}")
        return False
    return True


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the raw, derived and report tables if they are missing."""
    target = bind or engine
    SQLModel.metadata.create_all(target)
    logger.info(
        f"Schema ready: {', '.join(sorted(SQLModel.metadata.tables))}",
        extra={"row_count": len(SQLModel.metadata.tables)},
    )


def get_session():
    """Dependency — yields a DB session."""
    with Session(engine) as session:
        yield session
