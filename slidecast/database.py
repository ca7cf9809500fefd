"""Database connection and initialization."""

import logging

from sqlmodel import SQLModel, Session, create_engine, func, select

from slidecast.config import settings

# Import all models so SQLModel registers them
import slidecast.models  # noqa: F401
from slidecast.models.image import Tag

logger = logging.getLogger(__name__)

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


def init_db() -> None:
    """Create all tables, enable WAL mode and make sure the Hidden tag exists."""
    SQLModel.metadata.create_all(engine)

    # Enable WAL mode for better concurrent read performance
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        conn.commit()

    with Session(engine) as session:
        hidden = session.exec(
            select(Tag).where(func.lower(Tag.name) == settings.hidden_tag_name.lower())
        ).first()
        if not hidden:
            session.add(Tag(name=settings.hidden_tag_name, color=settings.hidden_tag_color))
            session.commit()
            logger.info("Created protected '%s' tag", settings.hidden_tag_name)


def get_session():
    """FastAPI dependency: yields a database session."""
    with Session(engine) as session:
        yield session
