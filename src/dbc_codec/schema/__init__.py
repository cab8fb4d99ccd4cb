"""Schema model and loaders."""

from dbc_codec.schema.model import ByteOrder, Database, MessageSchema, SignalSchema
from dbc_codec.schema.loader import from_cantools, load_database

__all__ = [
    "ByteOrder",
    "Database",
    "MessageSchema",
    "SignalSchema",
    "from_cantools",
    "load_database",
]
