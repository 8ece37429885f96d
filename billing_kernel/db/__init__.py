"""Database layer - engine, base classes and types."""

from billing_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from billing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
)

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
]
