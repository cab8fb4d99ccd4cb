"""Classification of signal bit placement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from dbc_codec.codegen.types import NativeType, select_types
from dbc_codec.errors import UnsupportedLayout
from dbc_codec.schema.model import MessageSchema, SignalSchema


logger = logging.getLogger(__name__)

MAX_SIGNAL_BITS = 64


class Layout(Enum):
    """Which extraction/insertion algorithm a signal needs."""

    SINGLE_BIT = "single-bit"
    ALIGNED_LE = "aligned-le"
    ALIGNED_BE = "aligned-be"
    UNALIGNED_LE = "unaligned-le"
    UNALIGNED_BE = "unaligned-be"

    @property
    def is_aligned(self) -> bool:
        return self in (Layout.ALIGNED_LE, Layout.ALIGNED_BE)


def classify(signal: SignalSchema, storage: NativeType) -> Layout:
    """Pick the layout case for a signal stored in ``storage``.

    A big-endian field is aligned when it starts at the MSB of a byte
    (bit 7 of that byte) and spans whole bytes.
    """
    if signal.bit_length == 1:
        return Layout.SINGLE_BIT

    full_width = signal.bit_length == storage.width
    if signal.is_little_endian:
        if full_width and signal.start_bit % 8 == 0:
            return Layout.ALIGNED_LE
        return Layout.UNALIGNED_LE

    if full_width and signal.start_bit % 8 == 7:
        return Layout.ALIGNED_BE
    return Layout.UNALIGNED_BE


def byte_span(signal: SignalSchema) -> tuple[int, int]:
    """Return the first and last byte index a signal touches."""
    low = signal.start_bit // 8
    if signal.is_little_endian:
        return low, (signal.start_bit + signal.bit_length - 1) // 8

    # Big-endian: the bits left in the first byte run from start%8 down to 0
    first = signal.start_bit % 8 + 1
    if signal.bit_length <= first:
        return low, low
    return low, low + (signal.bit_length - first + 7) // 8


@dataclass(frozen=True)
class SignalLayout:
    """Everything about a signal's placement that its codec depends on."""

    signal: SignalSchema
    storage: NativeType
    native: NativeType
    layout: Layout
    low: int
    high: int

    @property
    def byte_count(self) -> int:
        return self.high - self.low + 1


def analyze(signal: SignalSchema, message: MessageSchema) -> SignalLayout:
    """Select types for a signal and classify it, validating its bounds."""
    if not (1 <= signal.bit_length <= MAX_SIGNAL_BITS):
        raise UnsupportedLayout(
            f"{message.name}.{signal.name}: bit length must be 1-{MAX_SIGNAL_BITS}, "
            f"got {signal.bit_length}"
        )
    if signal.start_bit < 0:
        raise UnsupportedLayout(
            f"{message.name}.{signal.name}: negative start bit {signal.start_bit}"
        )
    if signal.scale == 0.0:
        raise UnsupportedLayout(f"{message.name}.{signal.name}: scale must be non-zero")

    low, high = byte_span(signal)
    if high >= message.dlc:
        raise UnsupportedLayout(
            f"{message.name}.{signal.name}: occupies bytes {low}-{high}, "
            f"beyond DLC {message.dlc}"
        )

    storage, native = select_types(signal)
    layout = classify(signal, storage)
    logger.debug(
        "%s.%s: %s, storage %s, native %s, bytes %d-%d",
        message.name, signal.name, layout.value, storage, native, low, high,
    )
    return SignalLayout(
        signal=signal,
        storage=storage,
        native=native,
        layout=layout,
        low=low,
        high=high,
    )
