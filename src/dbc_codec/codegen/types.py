"""Native storage types for signal values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from dbc_codec.schema.model import SignalSchema


class TypeKind(Enum):
    """Families of native value types."""

    BOOL = "bool"
    UNSIGNED = "u"
    SIGNED = "i"
    FLOAT = "f"


@dataclass(frozen=True)
class NativeType:
    """A fixed-width value type, named the way firmware engineers write it."""

    kind: TypeKind
    width: int

    @property
    def name(self) -> str:
        if self.kind is TypeKind.BOOL:
            return "bool"
        return f"{self.kind.value}{self.width}"

    @property
    def python_type(self) -> str:
        if self.kind is TypeKind.BOOL:
            return "bool"
        if self.kind is TypeKind.FLOAT:
            return "float"
        return "int"

    @property
    def default(self) -> str:
        """Source text of the zero value."""
        return {"bool": "False", "float": "0.0", "int": "0"}[self.python_type]

    @property
    def is_float(self) -> bool:
        return self.kind is TypeKind.FLOAT

    @property
    def is_signed(self) -> bool:
        return self.kind in (TypeKind.SIGNED, TypeKind.FLOAT)

    def __str__(self) -> str:
        return self.name


BOOL = NativeType(TypeKind.BOOL, 1)
FLOAT32 = NativeType(TypeKind.FLOAT, 32)


def storage_width(bit_length: int) -> int:
    """Smallest container width in {1, 8, 16, 32, 64} holding ``bit_length`` bits."""
    if bit_length == 1:
        return 1
    if bit_length <= 8:
        return 8
    if bit_length <= 16:
        return 16
    if bit_length <= 32:
        return 32
    return 64


def select_types(signal: SignalSchema) -> Tuple[NativeType, NativeType]:
    """Return ``(storage, native)`` types for a signal.

    Only a scale other than 1.0 makes a signal floating point; an offset
    on its own leaves the integer type in place.
    """
    width = storage_width(signal.bit_length)
    if width == 1:
        return BOOL, BOOL

    kind = TypeKind.SIGNED if signal.is_signed else TypeKind.UNSIGNED
    storage = NativeType(kind, width)
    native = FLOAT32 if signal.scale != 1.0 else storage
    return storage, native
