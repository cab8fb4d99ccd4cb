"""Named constants for value-table entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from dbc_codec.codegen.layout import SignalLayout
from dbc_codec.codegen.types import TypeKind


@dataclass(frozen=True)
class ValueConstant:
    """A class-level constant standing for one value-table entry."""

    name: str
    value: str  # source literal, typed like the signal's field
    raw: int
    description: str
    signal: str


def constant_name(signal_name: str, description: str) -> str:
    """Build ``SIGNAL_DESCRIPTION``, upper-cased, keeping only [A-Za-z0-9_]."""
    text = f"{signal_name}_{description}".upper()
    return "".join(c for c in text if c.isalnum() or c == "_")


def constant_literal(layout: SignalLayout, raw: int) -> str:
    """Source text of ``raw`` converted to the signal's native type."""
    native = layout.native
    if native.kind is TypeKind.BOOL:
        return repr(raw != 0)
    if native.is_float:
        signal = layout.signal
        return repr(raw * signal.scale + signal.offset)
    return str(raw)


def value_constants(layout: SignalLayout) -> List[ValueConstant]:
    """Constants for a signal's value table, in schema order."""
    return [
        ValueConstant(
            name=constant_name(layout.signal.name, description),
            value=constant_literal(layout, raw),
            raw=raw,
            description=description,
            signal=layout.signal.name,
        )
        for raw, description in layout.signal.value_table
    ]
