"""dbc_codec - CAN message codecs generated from a signal schema."""

__version__ = "0.1.0"

from dbc_codec.config import CodegenConfig
from dbc_codec.errors import (
    CodegenError,
    LengthMismatch,
    NameCollision,
    SchemaMismatch,
    UnsupportedLayout,
)
from dbc_codec.schema import ByteOrder, Database, MessageSchema, SignalSchema, load_database
from dbc_codec.codegen import CodeGenerator, MessageSelection, build_messages
from dbc_codec.frame import CANFrame
from dbc_codec.dispatch import FrameDecoder

__all__ = [
    "CodegenConfig",
    "CodegenError",
    "LengthMismatch",
    "NameCollision",
    "SchemaMismatch",
    "UnsupportedLayout",
    "ByteOrder",
    "Database",
    "MessageSchema",
    "SignalSchema",
    "load_database",
    "CodeGenerator",
    "MessageSelection",
    "build_messages",
    "CANFrame",
    "FrameDecoder",
]
