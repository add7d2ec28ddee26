"""
Adapters layer - Slot persistence (SQLAlchemy and in-memory).
"""

from .database import SlotRecord, create_session_factory, create_slot_engine, init_schema
from .memory_store import InMemorySlotStore
from .sql_store import SqlSlotStore

__all__ = [
    "SlotRecord",
    "create_session_factory",
    "create_slot_engine",
    "init_schema",
    "InMemorySlotStore",
    "SqlSlotStore",
]
