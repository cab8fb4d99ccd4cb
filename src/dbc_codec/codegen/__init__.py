"""Signal layout analysis and code generation."""

from dbc_codec.codegen.types import NativeType, TypeKind, select_types, storage_width
from dbc_codec.codegen.layout import Layout, SignalLayout, analyze, classify
from dbc_codec.codegen.signal import SignalCodec
from dbc_codec.codegen.values import ValueConstant, constant_name, value_constants
from dbc_codec.codegen.message import MessageAssembler, MessageSelection
from dbc_codec.codegen.generator import CodeGenerator, build_messages

__all__ = [
    "NativeType",
    "TypeKind",
    "select_types",
    "storage_width",
    "Layout",
    "SignalLayout",
    "analyze",
    "classify",
    "SignalCodec",
    "ValueConstant",
    "constant_name",
    "value_constants",
    "MessageAssembler",
    "MessageSelection",
    "CodeGenerator",
    "build_messages",
]
