from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Column, Integer, Text, create_engine, false
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from todolist.dates import from_epoch_ms, to_calendar_date, to_epoch_ms, today

logger = logging.getLogger(__name__)

Base = declarative_base()


class EpochMillisDate(TypeDecorator):
    """Calendar date stored as the UTC millisecond timestamp of its midnight."""

    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[int]:
        if value is None:
            return None
        return to_epoch_ms(to_calendar_date(value))

    def process_result_value(self, value, dialect) -> Optional[date]:
        if value is None:
            return None
        return from_epoch_ms(value)


class TaskRow(Base):
    __tablename__ = "todo"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    completed = Column(Boolean, nullable=False, default=False, server_default=false())
    due_date = Column("due_date", EpochMillisDate, nullable=False, default=today)


def create_db_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Handlers run in FastAPI's thread pool.
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine) -> sessionmaker:
    """Create missing tables and return a session factory bound to ``engine``."""
    Base.metadata.create_all(engine)
    logger.info("Database ready url=%s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, expire_on_commit=False)
