import logging
from typing import Any, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config.settings import get_database_config

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_db_engine(database_config: Optional[Dict[str, Any]] = None) -> Engine:
    """
    Creates the SQLAlchemy engine.

    Args:
        database_config: {"url": ..., "echo": ...}. Read from the
                         environment when omitted.

    Returns:
        Configured Engine
    """
    database_config = database_config or get_database_config()
    url = database_config["url"]
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions may be used from the pika callback thread
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=database_config.get("echo", False), connect_args=connect_args)


def create_session_factory(database_config: Optional[Dict[str, Any]] = None) -> sessionmaker:
    engine = create_db_engine(database_config)
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(session_factory: sessionmaker):
    """Creates all tables that do not exist yet"""
    # Register mapped tables on Base.metadata
    from scheduler.db import tables  # noqa: F401

    engine = session_factory.kw["bind"]
    Base.metadata.create_all(engine)
    logger.info(f"Database initialized at {engine.url.render_as_string(hide_password=True)}")
