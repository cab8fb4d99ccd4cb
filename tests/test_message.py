"""Tests for generated message classes."""

import dataclasses
import importlib.util
import logging
from pathlib import Path
from typing import ClassVar

import pytest
from dbc_codec.codegen.generator import CodeGenerator, build_messages
from dbc_codec.codegen.message import MessageAssembler, MessageSelection
from dbc_codec.config import CodegenConfig
from dbc_codec.errors import LengthMismatch, NameCollision, SchemaMismatch, UnsupportedLayout
from dbc_codec.schema.model import ByteOrder, Database, MessageSchema, SignalSchema


LE = ByteOrder.LITTLE_ENDIAN
BE = ByteOrder.BIG_ENDIAN


def _scenario(name: str, arbitration_id: int, order: ByteOrder) -> MessageSchema:
    # Big-endian start bits name each byte's MSB
    msb = 7 if order is BE else 0
    return MessageSchema(
        arbitration_id=arbitration_id,
        name=name,
        dlc=8,
        signals=(
            SignalSchema(name="Signed8", start_bit=0 + msb, bit_length=8, byte_order=order, is_signed=True),
            SignalSchema(name="Unsigned8", start_bit=8 + msb, bit_length=8, byte_order=order),
            SignalSchema(name="Unsigned16", start_bit=16 + msb, bit_length=16, byte_order=order),
            SignalSchema(name="Unsigned32", start_bit=32 + msb, bit_length=32, byte_order=order),
        ),
    )


@pytest.fixture
def database() -> Database:
    """Create a test schema database."""
    return Database(messages=(
        _scenario("AlignedLE", 0x3FF, LE),
        _scenario("AlignedBE", 0x400, BE),
        MessageSchema(
            arbitration_id=0x500,
            name="MiscMessage",
            dlc=2,
            cycle_time=100,
            signals=(
                SignalSchema(
                    name="Bool_A",
                    start_bit=0,
                    bit_length=1,
                    value_table=((1, "On"), (0, "Off")),
                ),
                SignalSchema(name="Bool_B", start_bit=1, bit_length=1),
                SignalSchema(name="Bool_H", start_bit=7, bit_length=1),
                SignalSchema(
                    name="Float_A",
                    start_bit=8,
                    bit_length=8,
                    scale=0.5,
                    offset=0.25,
                    value_table=((10, "Ten"), (0, "Zero (idle)")),
                ),
            ),
        ),
        MessageSchema(
            arbitration_id=0x123456,
            name="Extended1",
            dlc=4,
            is_extended_id=True,
            signals=(
                SignalSchema(
                    name="Mode",
                    start_bit=0,
                    bit_length=4,
                    value_table=((2, "Run"), (3, "Fault")),
                ),
                SignalSchema(name="Counter", start_bit=4, bit_length=20),
                SignalSchema(name="Temp", start_bit=24, bit_length=8, is_signed=True),
            ),
        ),
    ))


@pytest.fixture
def messages(database: Database) -> dict:
    """Build every message in the test database."""
    return build_messages(database)


class TestConstants:
    """Tests for per-message constants."""

    def test_id_dlc_extended(self, messages: dict) -> None:
        """Test ID, DLC and EXTENDED constants."""
        assert messages["AlignedLE"].ID == 0x3FF
        assert messages["AlignedLE"].DLC == 8
        assert not messages["AlignedLE"].EXTENDED
        assert messages["Extended1"].ID == 0x123456
        assert messages["Extended1"].EXTENDED

    def test_cycle_time(self, messages: dict) -> None:
        """Test CYCLE_TIME is only present when the schema has one."""
        assert messages["MiscMessage"].CYCLE_TIME == 100
        assert not hasattr(messages["AlignedLE"], "CYCLE_TIME")

    def test_constants_are_not_fields(self, messages: dict) -> None:
        """Test constants stay out of the instance fields."""
        names = [f.name for f in dataclasses.fields(messages["MiscMessage"])]

        assert names == ["Bool_A", "Bool_B", "Bool_H", "Float_A"]


class TestDecodeEncode:
    """Tests for decode() and encode()."""

    def test_little_endian_scenario(self, messages: dict) -> None:
        """Test decoding and encoding aligned little-endian fields."""
        m = messages["AlignedLE"]()

        assert m.decode(bytes([0xFE, 0x55, 0x01, 0x20, 0x34, 0x56, 0x78, 0x9A]))
        assert m.Signed8 == -2
        assert m.Unsigned8 == 0x55
        assert m.Unsigned16 == 0x2001
        assert m.Unsigned32 == 0x9A78_5634

        m.Signed8 = -99
        m.Unsigned8 = 0x33
        m.Unsigned16 = 0x78BC
        m.Unsigned32 = 0
        pdu = bytearray(8)
        assert m.encode(pdu)
        assert pdu == bytearray([0x9D, 0x33, 0xBC, 0x78, 0, 0, 0, 0])

    def test_big_endian_scenario(self, messages: dict) -> None:
        """Test decoding and encoding aligned big-endian fields."""
        m = messages["AlignedBE"]()

        assert m.decode(bytes([0xAA, 0x55, 0x01, 0x20, 0x34, 0x56, 0x78, 0x9A]))
        assert m.Signed8 == -86
        assert m.Unsigned8 == 0x55
        assert m.Unsigned16 == 0x0120
        assert m.Unsigned32 == 0x3456_789A

        m = messages["AlignedBE"](Signed8=12, Unsigned8=0x77, Unsigned16=0x78BC, Unsigned32=0x1234_FEDC)
        pdu = bytearray(8)
        assert m.encode(pdu)
        assert pdu == bytearray([0x0C, 0x77, 0x78, 0xBC, 0x12, 0x34, 0xFE, 0xDC])

    def test_bools_and_float(self, messages: dict) -> None:
        """Test bit fields next to a scaled field."""
        m = messages["MiscMessage"]()

        assert m.decode(bytes([0x82, 0x20]))
        assert m.Bool_A is False
        assert m.Bool_B is True
        assert m.Bool_H is True
        assert m.Float_A == 16.25

        m.Bool_A = True
        m.Bool_B = False
        m.Float_A = 20.75
        pdu = bytearray(2)
        assert m.encode(pdu)
        assert pdu == bytearray([0x81, 0x29])

    @pytest.mark.parametrize("value, expected", [(float("inf"), 0xFF), (float("nan"), 0x00)])
    def test_encode_non_finite(self, messages: dict, value: float, expected: int) -> None:
        """Test a non-finite float field still encodes the whole message."""
        m = messages["MiscMessage"](Bool_A=True, Float_A=value)
        pdu = bytearray([0xFE, 0xAA])

        assert m.encode(pdu)
        assert pdu == bytearray([0x7D, expected])

    def test_shared_bytes(self, messages: dict) -> None:
        """Test fields sharing a byte do not overwrite each other."""
        cls = messages["Extended1"]
        m = cls(Mode=cls.MODE_FAULT, Counter=0xABCDE, Temp=-5)

        pdu = bytearray(4)
        assert m.encode(pdu)
        assert pdu == bytearray([0xE3, 0xCD, 0xAB, 0xFB])

        decoded = cls()
        assert decoded.decode(pdu)
        assert decoded == m

    def test_encode_memoryview(self, messages: dict) -> None:
        """Test encoding into a writable slice of a larger buffer."""
        frame = bytearray(10)
        m = messages["Extended1"](Mode=2, Counter=1, Temp=1)

        assert m.encode(memoryview(frame)[2:6])
        assert frame[2:6] == bytearray([0x12, 0, 0, 0x01])


class TestLengthGuard:
    """Tests for the DLC length check."""

    def test_decode_wrong_length(self, messages: dict) -> None:
        """Test a short payload is refused and fields stay untouched."""
        m = messages["AlignedLE"](Signed8=7)

        assert not m.decode(bytes([0x00]))
        assert not m.decode(bytes(9))
        assert m.Signed8 == 7
        assert m.Unsigned32 == 0

    def test_encode_wrong_length(self, messages: dict) -> None:
        """Test encode refuses a buffer of the wrong size without writing."""
        m = messages["MiscMessage"](Bool_A=True, Float_A=3.25)
        pdu = bytearray([0x55, 0x55, 0x55])

        assert not m.encode(pdu)
        assert pdu == bytearray([0x55, 0x55, 0x55])

    def test_from_bytes(self, messages: dict) -> None:
        """Test the fallible constructor."""
        cls = messages["MiscMessage"]

        m = cls.from_bytes(bytes([0x01, 0x00]))
        assert m.Bool_A is True
        assert m.Float_A == 0.25

        with pytest.raises(LengthMismatch) as excinfo:
            cls.from_bytes(bytes([0x01, 0x00, 0x00]))
        assert excinfo.value.expected == 2
        assert excinfo.value.actual == 3

    def test_to_bytes(self, messages: dict) -> None:
        """Test encoding into a fresh buffer."""
        m = messages["AlignedLE"](Signed8=-1, Unsigned32=1)

        assert m.to_bytes() == bytes([0xFF, 0, 0, 0, 0x01, 0, 0, 0])


class TestValueTables:
    """Tests for value-table constants."""

    def test_constants(self, messages: dict) -> None:
        """Test constants carry the field's type and scaling."""
        cls = messages["MiscMessage"]

        assert cls.BOOL_A_ON is True
        assert cls.BOOL_A_OFF is False
        assert cls.FLOAT_A_TEN == 5.25
        assert cls.FLOAT_A_ZEROIDLE == 0.25
        assert messages["Extended1"].MODE_RUN == 2

    def test_constant_matches_decoded_value(self, messages: dict) -> None:
        """Test a decoded value compares equal to its constant."""
        cls = messages["MiscMessage"]

        assert cls.from_bytes(bytes([0, 10])).Float_A == cls.FLOAT_A_TEN

    def test_collision_is_an_error(self) -> None:
        """Test descriptions sanitizing to the same name abort generation."""
        message = MessageSchema(
            arbitration_id=0x10,
            name="Status",
            dlc=1,
            signals=(SignalSchema(
                name="Mode",
                start_bit=0,
                bit_length=2,
                value_table=((0, "Off"), (1, "OFF!")),
            ),),
        )

        with pytest.raises(NameCollision, match="MODE_OFF"):
            MessageAssembler(message)

    def test_collision_override(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the override policy keeps the later entry."""
        database = Database(messages=(MessageSchema(
            arbitration_id=0x10,
            name="Status",
            dlc=1,
            signals=(SignalSchema(
                name="Mode",
                start_bit=0,
                bit_length=2,
                value_table=((0, "Off"), (1, "OFF!")),
            ),),
        ),))

        with caplog.at_level(logging.WARNING):
            cls = build_messages(database, config=CodegenConfig(on_name_collision="override"))["Status"]

        assert cls.MODE_OFF == 1
        assert "overrides" in caplog.text


class TestSelection:
    """Tests for message and signal selection."""

    def test_parse(self) -> None:
        """Test parsing the Name:SigA,SigB form."""
        assert MessageSelection.parse("Misc") == MessageSelection("Misc")
        assert MessageSelection.parse("Misc: A, B") == MessageSelection("Misc", ("A", "B"))

    def test_signal_subset(self, database: Database) -> None:
        """Test only the selected signals become fields."""
        cls = CodeGenerator(database).build(["MiscMessage:Bool_A,Bool_H,Float_A"])["MiscMessage"]
        names = [f.name for f in dataclasses.fields(cls)]

        assert names == ["Bool_A", "Bool_H", "Float_A"]

        m = cls()
        pdu = bytearray([0x02, 0x00])
        m.Bool_H = True
        assert m.encode(pdu)
        assert pdu[0] == 0x82

    def test_message_subset(self, database: Database) -> None:
        """Test only the selected messages are built."""
        built = CodeGenerator(database).build([MessageSelection("Extended1")])

        assert list(built) == ["Extended1"]

    def test_unknown_message(self, database: Database) -> None:
        """Test an unknown message name is fatal."""
        with pytest.raises(SchemaMismatch, match="Unknown message"):
            CodeGenerator(database).build(["NoSuchMessage"])

    def test_unknown_signal(self, database: Database) -> None:
        """Test an unknown signal name is fatal."""
        with pytest.raises(SchemaMismatch, match="Unknown signal"):
            CodeGenerator(database).build(["MiscMessage:Bool_Z"])

    def test_duplicate_selection(self, database: Database) -> None:
        """Test selecting the same message twice is refused."""
        with pytest.raises(SchemaMismatch, match="more than once"):
            CodeGenerator(database).build(["AlignedLE", "AlignedLE"])


class TestGenerationErrors:
    """Tests for schema problems caught before code is produced."""

    def test_signal_beyond_dlc(self) -> None:
        """Test a signal outside the payload aborts generation."""
        database = Database(messages=(MessageSchema(
            arbitration_id=0x10,
            name="Short",
            dlc=1,
            signals=(SignalSchema(name="Wide", start_bit=0, bit_length=16),),
        ),))

        with pytest.raises(UnsupportedLayout):
            build_messages(database)

    @pytest.mark.parametrize("name", ["ID", "encode", "1st", "class"])
    def test_unusable_signal_name(self, name: str) -> None:
        """Test reserved or invalid signal names are refused."""
        message = MessageSchema(
            arbitration_id=0x10,
            name="Bad",
            dlc=1,
            signals=(SignalSchema(name=name, start_bit=0, bit_length=8),),
        )

        with pytest.raises(NameCollision):
            MessageAssembler(message)

    def test_offset_without_scale_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an unscaled offset is reported and left unapplied."""
        database = Database(messages=(MessageSchema(
            arbitration_id=0x10,
            name="Temps",
            dlc=1,
            signals=(SignalSchema(name="Temp", start_bit=0, bit_length=8, offset=-40.0),),
        ),))

        with caplog.at_level(logging.WARNING):
            cls = build_messages(database)["Temps"]

        assert "offset" in caplog.text
        assert cls.from_bytes(bytes([100])).Temp == 100


class TestRenderedModule:
    """Tests for writing generated code to disk."""

    def test_source(self, database: Database) -> None:
        """Test the rendered source reads like a normal module."""
        source = CodeGenerator(database).render(["MiscMessage"])

        assert "class MiscMessage:" in source
        assert "CYCLE_TIME: ClassVar[int] = 100" in source
        assert "# Wire format: 8 bits starting at bit 8, scale factor 0.5" in source
        assert "__all__ = ['MiscMessage']" in source

    def test_built_annotations_are_evaluated(self, database: Database) -> None:
        """Test in-memory classes carry real annotations, not deferred strings."""
        cls = CodeGenerator(database).build(["MiscMessage"])["MiscMessage"]

        assert cls.__annotations__["ID"] == ClassVar[int]
        assert cls.__annotations__["Float_A"] is float
        assert cls.__module__ == "dbc_codec.generated"

    def test_written_module_imports(self, database: Database, tmp_path: Path) -> None:
        """Test a written module imports and decodes like the in-memory build."""
        path = tmp_path / "can_messages.py"
        written = CodeGenerator(database).write(path)

        assert [a.name for a in written] == [m.name for m in database]
        spec = importlib.util.spec_from_file_location("can_messages", path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        m = module.AlignedBE.from_bytes(bytes([0xAA, 0x55, 0x01, 0x20, 0x34, 0x56, 0x78, 0x9A]))
        assert m.Unsigned32 == 0x3456_789A
        assert module.MiscMessage.BOOL_A_ON is True
