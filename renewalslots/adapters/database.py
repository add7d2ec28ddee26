"""
SQLAlchemy engine, session factory and the slot table.
"""

from sqlalchemy import Column, Integer, Text, create_engine, func, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class SlotRecord(Base):
    """One daily slot row; times are canonical ``HH:MM:SS`` text."""
    __tablename__ = "customer_time_slots"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Text, nullable=False, index=True)
    slot_name = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    created_at = Column(Text, server_default=text("CURRENT_TIMESTAMP"))
    updated_at = Column(
        Text,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=func.current_timestamp(),
    )


def create_slot_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the slot database.

    SQLite engines may be shared across threads.
    """
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory used by the slot store."""
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


def init_schema(engine: Engine) -> None:
    """Create the slot table if it does not exist yet."""
    Base.metadata.create_all(engine)
