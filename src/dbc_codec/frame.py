"""CAN frame representation."""

from __future__ import annotations

from dataclasses import dataclass, field

from dbc_codec.schema.model import CAN_EXT_ID_MAX, CAN_STD_ID_MAX


@dataclass(frozen=True)
class CANFrame:
    """A received or to-be-sent CAN frame.

    Attributes:
        arbitration_id: 11-bit (standard) or 29-bit (extended) identifier.
        data: Payload bytes.
        is_extended_id: True if using the 29-bit identifier space.
    """

    arbitration_id: int
    data: bytes = field(default_factory=bytes)
    is_extended_id: bool = False

    def __post_init__(self) -> None:
        limit = CAN_EXT_ID_MAX if self.is_extended_id else CAN_STD_ID_MAX
        if not (0 <= self.arbitration_id <= limit):
            kind = "Extended" if self.is_extended_id else "Standard"
            raise ValueError(
                f"{kind} arbitration ID must be 0-{limit:#x}, got {self.arbitration_id:#x}"
            )
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def dlc(self) -> int:
        return len(self.data)

    @classmethod
    def from_hex(
        cls,
        arbitration_id: int,
        hex_data: str,
        is_extended_id: bool = False,
    ) -> "CANFrame":
        """Build a frame from a hex payload such as ``"DE AD BE EF"``."""
        s = "".join(hex_data.split()).lower()
        if s.startswith("0x"):
            s = s[2:]
        if len(s) % 2 != 0:
            raise ValueError(f"Hex string must have even length, got {len(s)}")
        return cls(arbitration_id, bytes.fromhex(s), is_extended_id)

    def hex_data(self) -> str:
        return self.data.hex().upper()

    def __repr__(self) -> str:
        id_str = f"{self.arbitration_id:#010x}" if self.is_extended_id else f"{self.arbitration_id:#05x}"
        return f"CANFrame(id={id_str}, data={self.hex_data()}, dlc={self.dlc})"
