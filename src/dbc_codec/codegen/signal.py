"""Per-signal decode/encode code generation.

Each signal's extraction and insertion logic is unrolled into Python
statements with every byte index, shift and mask resolved to a constant.
The statements operate on a buffer named ``pdu`` and a scratch integer
``v``; the message assembler splices them into ``decode``/``encode``.
"""

from __future__ import annotations

from typing import Any, Callable, List, Tuple

from dbc_codec.codegen.layout import Layout, SignalLayout
from dbc_codec.schema.model import SignalSchema


def _mask(bits: int) -> int:
    return (1 << bits) - 1


def _hex(value: int) -> str:
    return f"0x{value:X}"


def _shifted(expr: str, shift: int, direction: str) -> str:
    if shift == 0:
        return expr
    return f"{expr} {direction} {shift}"


def sign_extend_lines(bit_length: int) -> List[str]:
    """Statements turning the ``bit_length``-bit pattern in ``v`` into a signed int."""
    return [
        f"if v & {_hex(1 << (bit_length - 1))}:",
        f"    v -= {_hex(1 << bit_length)}",
    ]


class SignalCodec:
    """Generates the decode and encode statements for one signal."""

    def __init__(self, layout: SignalLayout) -> None:
        self.layout = layout

    @property
    def signal(self) -> SignalSchema:
        return self.layout.signal

    @property
    def name(self) -> str:
        return self.layout.signal.name

    # -----------------------------
    # Decoding
    # -----------------------------
    def decode_lines(self, target: str) -> List[str]:
        """Statements that decode the signal from ``pdu`` into ``target``."""
        signal = self.signal
        if self.layout.layout is Layout.SINGLE_BIT:
            byte, bit = divmod(signal.start_bit, 8)
            return [f"{target} = (pdu[{byte}] & {_hex(1 << bit)}) != 0"]

        lines, expr = self._extract()
        if self.layout.native.is_float:
            lines.append(f"{target} = {expr} * {signal.scale!r} + {signal.offset!r}")
        else:
            lines.append(f"{target} = {expr}")
        return lines

    def _extract(self) -> Tuple[List[str], str]:
        kind = self.layout.layout
        if kind is Layout.ALIGNED_LE:
            return [], self._aligned_read("little")
        if kind is Layout.ALIGNED_BE:
            return [], self._aligned_read("big")

        if kind is Layout.UNALIGNED_LE:
            lines = self._extract_unaligned_le()
        else:
            lines = self._extract_unaligned_be()
        if self.signal.is_signed:
            lines.extend(sign_extend_lines(self.signal.bit_length))
        return lines, "v"

    def _aligned_read(self, order: str) -> str:
        low = self.layout.low
        end = low + self.signal.bit_length // 8
        signed = ", signed=True" if self.signal.is_signed else ""
        return f'int.from_bytes(pdu[{low}:{end}], "{order}"{signed})'

    def _extract_unaligned_le(self) -> List[str]:
        start = self.signal.start_bit
        width = self.signal.bit_length
        low, left = divmod(start, 8)
        high = (start + width - 1) // 8
        right = (start + width) % 8
        count = high - low

        first = _shifted(f"pdu[{low}]", left, ">>")
        if count == 0:
            if left:
                first = f"({first})"
            return [f"v = {first} & {_hex(_mask(width))}"]

        lines = [f"v = {first}"]
        for o in range(1, count + 1):
            byte = low + o
            term = f"pdu[{byte}]"
            if o == count and right != 0:
                term = f"({term} & {_hex(_mask(right))})"
            lines.append(f"v |= {_shifted(term, o * 8 - left, '<<')}")
        return lines

    def _extract_unaligned_be(self) -> List[str]:
        start = self.signal.start_bit
        width = self.signal.bit_length
        low = start // 8
        # bits available in the first byte, from bit start%8 down to bit 0
        avail = start % 8 + 1

        if width <= avail:
            shift = avail - width
            first = _shifted(f"pdu[{low}]", shift, ">>")
            if shift:
                first = f"({first})"
            return [f"v = {first} & {_hex(_mask(width))}"]

        rem = width - avail
        first = f"pdu[{low}]"
        if avail < 8:
            first = f"({first} & {_hex(_mask(avail))})"
        lines = [f"v = {_shifted(first, rem, '<<')}"]

        byte = low + 1
        while rem > 0:
            if rem < 8:
                # last byte: take its top bits
                lines.append(f"v |= pdu[{byte}] >> {8 - rem}")
                rem = 0
            else:
                rem -= 8
                lines.append(f"v |= {_shifted(f'pdu[{byte}]', rem, '<<')}")
            byte += 1
        return lines

    # -----------------------------
    # Encoding
    # -----------------------------
    def encode_lines(self, source: str) -> List[str]:
        """Statements that encode ``source`` into ``pdu``.

        Bytes shared with other signals are updated read-modify-write so
        that only this signal's bits change.
        """
        signal = self.signal
        kind = self.layout.layout
        if kind is Layout.SINGLE_BIT:
            byte, bit = divmod(signal.start_bit, 8)
            mask = 1 << bit
            return [
                f"if {source}:",
                f"    pdu[{byte}] |= {_hex(mask)}",
                "else:",
                f"    pdu[{byte}] &= {_hex(0xFF ^ mask)}",
            ]

        if self.layout.native.is_float:
            lines = self._raw_from_physical(source)
            lines.append(f"v &= {_hex(_mask(signal.bit_length))}")
        else:
            lines = [f"v = {source} & {_hex(_mask(signal.bit_length))}"]

        if kind is Layout.ALIGNED_LE:
            lines.append(self._aligned_write("little"))
        elif kind is Layout.ALIGNED_BE:
            lines.append(self._aligned_write("big"))
        elif kind is Layout.UNALIGNED_LE:
            lines.extend(self._insert_unaligned_le())
        else:
            lines.extend(self._insert_unaligned_be())
        return lines

    def _raw_from_physical(self, source: str) -> List[str]:
        """Statements converting a physical value in ``source`` to a raw int in ``v``.

        The quotient is truncated toward zero and saturated to the storage
        type's range; NaN encodes as 0. Truncation means a decoded value may
        re-encode one raw step lower when ``raw * scale`` is not exact in
        binary floating point.
        """
        signal = self.signal
        width = self.layout.storage.width
        if self.layout.storage.is_signed:
            lowest, highest = -(1 << (width - 1)), (1 << (width - 1)) - 1
        else:
            lowest, highest = 0, _mask(width)
        return [
            f"v = ({source} - {signal.offset!r}) / {signal.scale!r}",
            "if v != v:",
            "    v = 0",
            "else:",
            f"    v = int(min(max(v, {lowest}), {highest}))",
        ]

    def _aligned_write(self, order: str) -> str:
        low = self.layout.low
        size = self.signal.bit_length // 8
        return f'pdu[{low}:{low + size}] = v.to_bytes({size}, "{order}")'

    @staticmethod
    def _merge(byte: int, value: str, mask: int) -> str:
        """Assignment replacing the ``mask`` bits of ``pdu[byte]`` with ``value``."""
        if mask == 0xFF:
            return f"pdu[{byte}] = {value} & 0xFF"
        return (
            f"pdu[{byte}] = (pdu[{byte}] & {_hex(0xFF ^ mask)}) | ({value} & {_hex(mask)})"
        )

    def _insert_unaligned_le(self) -> List[str]:
        low, left = divmod(self.signal.start_bit, 8)
        rem = self.signal.bit_length
        byte = low
        consumed = 0
        lines = []
        while rem > 0:
            chunk = min(8 - left, rem)
            mask = _mask(chunk) << left
            if consumed:
                value = f"(v >> {consumed})"
            else:
                value = "v"
            if left:
                value = f"({value} << {left})"
            lines.append(self._merge(byte, value, mask))
            rem -= chunk
            consumed += chunk
            left = 0
            byte += 1
        return lines

    def _insert_unaligned_be(self) -> List[str]:
        start = self.signal.start_bit
        width = self.signal.bit_length
        low = start // 8
        avail = start % 8 + 1

        if width <= avail:
            shift = avail - width
            value = f"(v << {shift})" if shift else "v"
            return [self._merge(low, value, _mask(width) << shift)]

        rem = width - avail
        lines = [self._merge(low, f"(v >> {rem})", _mask(avail))]
        byte = low + 1
        while rem > 0:
            if rem < 8:
                # last byte: fill its top bits
                shift = 8 - rem
                lines.append(self._merge(byte, f"(v << {shift})", _mask(rem) << shift))
                rem = 0
            else:
                rem -= 8
                value = f"(v >> {rem})" if rem else "v"
                lines.append(self._merge(byte, value, 0xFF))
            byte += 1
        return lines

    # -----------------------------
    # Standalone functions
    # -----------------------------
    def build_decoder(self) -> Callable[[Any], Any]:
        """Compile ``decode(pdu) -> value`` for this signal alone."""
        body = self.decode_lines("value") + ["return value"]
        return _compile_function(f"decode_{self.name}", "pdu", body)

    def build_encoder(self) -> Callable[[Any, Any], None]:
        """Compile ``encode(pdu, value)`` for this signal alone."""
        return _compile_function(f"encode_{self.name}", "pdu, value", self.encode_lines("value"))


def _compile_function(name: str, params: str, body: List[str]) -> Callable[..., Any]:
    source = "\n".join([f"def {name}({params}):"] + [f"    {line}" for line in body])
    namespace: dict[str, Any] = {}
    exec(compile(source, f"<dbc_codec:{name}>", "exec", dont_inherit=True), namespace)
    return namespace[name]
