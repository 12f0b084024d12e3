"""
db/database.py

Responsibility: Creates the SQLite engine, session factory, and exposes
init_db() for startup table initialisation.
Does NOT: define table models, run queries, or contain business logic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator

from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

import db.models  # noqa: F401  side-effect import to register table metadata

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

# NOTE: An empty DB_PATH keeps stats in memory for the life of the process,
# which is the normal mode for a sidecar. StaticPool shares the single
# in-memory connection across sessions.
_DB_PATH = os.getenv("DB_PATH", "")

if _DB_PATH:
    engine = create_engine(
        f"sqlite:///{_DB_PATH}",
        connect_args={"check_same_thread": False},
        echo=False,
    )
else:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_db() -> None:
    """
    Creates all tables defined in SQLModel metadata if they don't exist.

    Called once from the FastAPI lifespan function in app.py.

    Returns:
        None
    """
    db_dir = os.path.dirname(_DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    SQLModel.metadata.create_all(engine)
    logger.info("Stats database initialised at %s", _DB_PATH or ":memory:")


def get_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLModel Session for the current request.

    Yields:
        A SQLModel Session bound to the application engine.
    """
    with Session(engine) as session:
        yield session
