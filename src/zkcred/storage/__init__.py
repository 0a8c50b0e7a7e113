"""Storage layer for persistent data."""

from zkcred.storage.database import (
    DatabaseManager,
    DatabaseEventSink,
    CredRecord,
    MemberEvent,
    MemberEventType,
    Nullifier,
    Base,
    get_db_manager,
    reset_db_manager,
)

__all__ = [
    "DatabaseManager",
    "DatabaseEventSink",
    "CredRecord",
    "MemberEvent",
    "MemberEventType",
    "Nullifier",
    "Base",
    "get_db_manager",
    "reset_db_manager",
]
