"""Assembly of one generated class per CAN message."""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from dbc_codec.codegen.layout import SignalLayout, analyze
from dbc_codec.codegen.signal import SignalCodec
from dbc_codec.codegen.values import ValueConstant, value_constants
from dbc_codec.config import CodegenConfig
from dbc_codec.errors import NameCollision, SchemaMismatch
from dbc_codec.schema.model import MessageSchema, SignalSchema


logger = logging.getLogger(__name__)

INDENT = "    "

# Names the generated class defines itself
RESERVED_NAMES = frozenset({
    "ID", "DLC", "EXTENDED", "CYCLE_TIME",
    "decode", "encode", "from_bytes", "to_bytes",
})


@dataclass(frozen=True)
class MessageSelection:
    """Which message to generate, and optionally which of its signals.

    An empty ``signals`` tuple selects every signal of the message.
    """

    message: str
    signals: Tuple[str, ...] = ()

    def includes(self, signal_name: str) -> bool:
        return not self.signals or signal_name in self.signals

    @classmethod
    def parse(cls, text: str) -> "MessageSelection":
        """Parse ``Name`` or ``Name:SignalA,SignalB``."""
        name, _, signal_list = text.partition(":")
        signals = tuple(s.strip() for s in signal_list.split(",") if s.strip())
        return cls(message=name.strip(), signals=signals)


def _check_identifier(name: str, what: str) -> None:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise NameCollision(f"{what} {name!r} is not a valid Python identifier")


class MessageAssembler:
    """Builds the source of the class representing one message."""

    def __init__(
        self,
        message: MessageSchema,
        selection: Optional[MessageSelection] = None,
        config: Optional[CodegenConfig] = None,
    ) -> None:
        self.message = message
        self.selection = selection or MessageSelection(message.name)
        self.config = config or CodegenConfig()

        _check_identifier(message.name, "Message name")
        self.codecs: List[SignalCodec] = [
            SignalCodec(analyze(signal, message)) for signal in self._selected_signals()
        ]
        self.constants: List[ValueConstant] = self._collect_constants()

    @property
    def name(self) -> str:
        return self.message.name

    @property
    def layouts(self) -> List[SignalLayout]:
        return [codec.layout for codec in self.codecs]

    def _selected_signals(self) -> List[SignalSchema]:
        for name in self.selection.signals:
            if self.message.get_signal(name) is None:
                raise SchemaMismatch(f"Unknown signal {name!r} in message {self.message.name}")

        signals = [s for s in self.message.signals if self.selection.includes(s.name)]
        for signal in signals:
            _check_identifier(signal.name, f"Signal name in {self.message.name}:")
            if signal.name in RESERVED_NAMES:
                raise NameCollision(
                    f"Signal {self.message.name}.{signal.name} clashes with a generated member"
                )
            if signal.scale == 1.0 and signal.offset != 0.0:
                logger.warning(
                    "%s.%s: offset %r ignored on an unscaled signal",
                    self.message.name, signal.name, signal.offset,
                )
        return signals

    def _collect_constants(self) -> List[ValueConstant]:
        taken = RESERVED_NAMES | {codec.name for codec in self.codecs}
        constants: Dict[str, ValueConstant] = {}

        for codec in self.codecs:
            for constant in value_constants(codec.layout):
                _check_identifier(constant.name, f"Value constant of {self.message.name}:")
                if constant.name in taken:
                    raise NameCollision(
                        f"{self.message.name}.{constant.name} clashes with a generated member"
                    )
                previous = constants.get(constant.name)
                if previous is not None:
                    if self.config.on_name_collision == "error":
                        raise NameCollision(
                            f"{self.message.name}.{constant.name}: {previous.description!r} "
                            f"and {constant.description!r} map to the same name"
                        )
                    logger.warning(
                        "%s.%s: %r overrides %r",
                        self.message.name, constant.name,
                        constant.description, previous.description,
                    )
                    # keep first-seen position, take the later value
                constants[constant.name] = constant

        return list(constants.values())

    # -----------------------------
    # Rendering
    # -----------------------------
    def docstring(self) -> str:
        message = self.message
        kind = "Extended" if message.is_extended_id else "Standard"
        doc = f"{message.name}: {kind} ID {message.arbitration_id} (0x{message.arbitration_id:X})"
        if message.cycle_time is not None:
            doc += f", cycle time {message.cycle_time}ms"
        return doc

    @staticmethod
    def _field_comment(layout: SignalLayout) -> str:
        signal = layout.signal
        order = "little-endian" if signal.is_little_endian else "big-endian"
        plural = "" if signal.bit_length == 1 else "s"
        scale = f", scale factor {signal.scale!r}" if layout.native.is_float else ""
        if layout.native.is_float and signal.offset:
            scale += f", offset {signal.offset!r}"
        comment = (
            f"# Wire format: {signal.bit_length} bit{plural} starting at bit "
            f"{signal.start_bit}{scale} ({order}), {layout.native}"
        )
        if signal.unit:
            comment += f", unit {signal.unit!r}"
        return comment

    def render(self) -> str:
        """Return the source of the message's dataclass."""
        message = self.message
        dlc = message.dlc
        out: List[str] = [
            "@dataclass(slots=True)",
            f"class {message.name}:",
            f'{INDENT}"""{self.docstring()}"""',
            "",
            f"{INDENT}ID: ClassVar[int] = {_id_literal(message.arbitration_id)}",
            f"{INDENT}DLC: ClassVar[int] = {dlc}",
            f"{INDENT}EXTENDED: ClassVar[bool] = {message.is_extended_id}",
        ]
        if message.cycle_time is not None:
            out.append(f"{INDENT}CYCLE_TIME: ClassVar[int] = {message.cycle_time}")

        if self.constants:
            out.append("")
            types = {codec.name: codec.layout.native.python_type for codec in self.codecs}
            for constant in self.constants:
                out.append(
                    f"{INDENT}{constant.name}: ClassVar[{types[constant.signal]}] = {constant.value}"
                )

        for codec in self.codecs:
            native = codec.layout.native
            out.append("")
            out.append(INDENT + self._field_comment(codec.layout))
            out.append(f"{INDENT}{codec.name}: {native.python_type} = {native.default}")

        out.extend(self._render_method(
            "def decode(self, pdu) -> bool:",
            [line for codec in self.codecs for line in codec.decode_lines(f"self.{codec.name}")],
        ))
        out.extend(self._render_method(
            "def encode(self, pdu) -> bool:",
            [line for codec in self.codecs for line in codec.encode_lines(f"self.{codec.name}")],
        ))

        out.extend([
            "",
            f"{INDENT}@classmethod",
            f'{INDENT}def from_bytes(cls, data) -> "{message.name}":',
            f"{INDENT * 2}message = cls()",
            f"{INDENT * 2}if not message.decode(data):",
            f"{INDENT * 3}raise LengthMismatch({message.name!r}, cls.DLC, len(data))",
            f"{INDENT * 2}return message",
            "",
            f"{INDENT}def to_bytes(self) -> bytes:",
            f"{INDENT * 2}pdu = bytearray({dlc})",
            f"{INDENT * 2}self.encode(pdu)",
            f"{INDENT * 2}return bytes(pdu)",
        ])
        return "\n".join(out) + "\n"

    def _render_method(self, signature: str, body: List[str]) -> List[str]:
        lines = [
            "",
            INDENT + signature,
            f"{INDENT * 2}if len(pdu) != {self.message.dlc}:",
            f"{INDENT * 3}return False",
        ]
        lines.extend(INDENT * 2 + line for line in body)
        lines.append(f"{INDENT * 2}return True")
        return lines


def _id_literal(arbitration_id: int) -> str:
    return f"0x{arbitration_id:X}"
