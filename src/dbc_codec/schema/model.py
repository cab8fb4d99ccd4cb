"""Message and signal schema definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


# -----------------------------
# Constants (Classic CAN)
# -----------------------------
CAN_STD_ID_MAX = 0x7FF          # 11-bit
CAN_EXT_ID_MAX = 0x1FFFFFFF     # 29-bit


class ByteOrder(Enum):
    """Byte ordering (and bit numbering) of a signal."""

    LITTLE_ENDIAN = "little"
    BIG_ENDIAN = "big"


ValueTable = Tuple[Tuple[int, str], ...]


@dataclass(frozen=True)
class SignalSchema:
    """Schema definition for a single signal within a CAN message.

    For little-endian signals ``start_bit`` is the position of the LSB,
    counting bit 0 of byte 0 upwards. For big-endian signals it is the
    position of the MSB in the DBC "sawtooth" numbering: bit 7 is the
    MSB of byte 0 and the field continues into bit 15 of the next byte.
    """

    name: str
    start_bit: int
    bit_length: int
    byte_order: ByteOrder = ByteOrder.LITTLE_ENDIAN
    is_signed: bool = False
    scale: float = 1.0
    offset: float = 0.0
    value_table: ValueTable = ()
    unit: str = ""

    @property
    def is_little_endian(self) -> bool:
        return self.byte_order is ByteOrder.LITTLE_ENDIAN

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "start_bit": self.start_bit,
            "bit_length": self.bit_length,
            "byte_order": self.byte_order.value,
            "is_signed": self.is_signed,
            "scale": self.scale,
            "offset": self.offset,
        }
        if self.value_table:
            d["value_table"] = [[raw, desc] for raw, desc in self.value_table]
        if self.unit:
            d["unit"] = self.unit
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SignalSchema":
        return SignalSchema(
            name=str(d["name"]),
            start_bit=int(d["start_bit"]),
            bit_length=int(d["bit_length"]),
            byte_order=ByteOrder(d.get("byte_order", "little")),
            is_signed=bool(d.get("is_signed", False)),
            scale=float(d.get("scale", 1.0)),
            offset=float(d.get("offset", 0.0)),
            value_table=tuple(
                (int(raw), str(desc)) for raw, desc in d.get("value_table", [])
            ),
            unit=str(d.get("unit", "")),
        )


@dataclass(frozen=True)
class MessageSchema:
    """Schema definition for a complete CAN message.

    Signals keep the order in which the schema declares them; decode and
    encode visit them in that order.
    """

    arbitration_id: int
    name: str
    dlc: int
    signals: Tuple[SignalSchema, ...] = ()
    is_extended_id: bool = False
    cycle_time: Optional[int] = None

    def __post_init__(self) -> None:
        limit = CAN_EXT_ID_MAX if self.is_extended_id else CAN_STD_ID_MAX
        if not (0 <= self.arbitration_id <= limit):
            kind = "Extended" if self.is_extended_id else "Standard"
            raise ValueError(
                f"{kind} arbitration ID out of range for {self.name}: "
                f"{self.arbitration_id:#x}"
            )
        if self.dlc < 0:
            raise ValueError(f"dlc must be non-negative, got {self.dlc}")
        # Accept lists from callers; store an immutable tuple
        object.__setattr__(self, "signals", tuple(self.signals))

    def get_signal(self, name: str) -> Optional[SignalSchema]:
        """Get a signal by name."""
        for signal in self.signals:
            if signal.name == name:
                return signal
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "arbitration_id": self.arbitration_id,
            "name": self.name,
            "dlc": self.dlc,
            "is_extended_id": self.is_extended_id,
            "signals": [s.to_dict() for s in self.signals],
        }
        if self.cycle_time is not None:
            d["cycle_time"] = self.cycle_time
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MessageSchema":
        cycle_time = d.get("cycle_time")
        return MessageSchema(
            arbitration_id=int(d["arbitration_id"]),
            name=str(d["name"]),
            dlc=int(d["dlc"]),
            signals=tuple(SignalSchema.from_dict(s) for s in d.get("signals", [])),
            is_extended_id=bool(d.get("is_extended_id", False)),
            cycle_time=int(cycle_time) if cycle_time is not None else None,
        )


@dataclass(frozen=True)
class Database:
    """Read-only schema context shared by every message generated from it."""

    messages: Tuple[MessageSchema, ...] = ()
    source: str = ""
    _by_name: Dict[str, MessageSchema] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        for message in self.messages:
            if message.name in self._by_name:
                raise ValueError(f"Duplicate message name: {message.name}")
            self._by_name[message.name] = message

    def __iter__(self) -> Iterator[MessageSchema]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def get_message(self, name: str) -> Optional[MessageSchema]:
        """Get a message by name."""
        return self._by_name.get(name)

    def get_message_by_id(
        self,
        arbitration_id: int,
        is_extended_id: bool = False,
    ) -> Optional[MessageSchema]:
        """Get a message by arbitration ID and ID space."""
        for message in self.messages:
            if (message.arbitration_id == arbitration_id
                    and message.is_extended_id == is_extended_id):
                return message
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"messages": [m.to_dict() for m in self.messages]}

    @staticmethod
    def from_dict(d: Dict[str, Any], source: str = "") -> "Database":
        return Database(
            messages=tuple(MessageSchema.from_dict(m) for m in d.get("messages", [])),
            source=source,
        )
