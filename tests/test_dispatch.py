"""Tests for routing frames to message classes."""

import logging

import pytest
from dbc_codec.codegen.generator import build_messages
from dbc_codec.dispatch import FrameDecoder
from dbc_codec.frame import CANFrame
from dbc_codec.schema.model import Database, MessageSchema, SignalSchema


@pytest.fixture
def messages() -> dict:
    """Build two messages sharing an ID in different ID spaces."""
    database = Database(messages=(
        MessageSchema(
            arbitration_id=0x100,
            name="EngineStatus",
            dlc=3,
            signals=(
                SignalSchema(name="RPM", start_bit=0, bit_length=16),
                SignalSchema(name="Temp", start_bit=16, bit_length=8, scale=1.5, offset=-40.0),
            ),
        ),
        MessageSchema(
            arbitration_id=0x100,
            name="Diagnostics",
            dlc=1,
            is_extended_id=True,
            signals=(SignalSchema(name="Code", start_bit=0, bit_length=8),),
        ),
    ))
    return build_messages(database)


@pytest.fixture
def decoder(messages: dict) -> FrameDecoder:
    """Create a decoder with every message registered."""
    return FrameDecoder(messages.values())


class TestFrameDecoder:
    """Tests for FrameDecoder class."""

    def test_registered_ids(self, decoder: FrameDecoder) -> None:
        """Test both ID spaces are registered separately."""
        assert decoder.registered_ids == {(0x100, False), (0x100, True)}

    def test_decode_frame(self, decoder: FrameDecoder) -> None:
        """Test decoding a frame into its message class."""
        message = decoder.decode(CANFrame(arbitration_id=0x100, data=bytes([0xE8, 0x03, 0x50])))

        assert type(message).__name__ == "EngineStatus"
        assert message.RPM == 1000
        assert message.Temp == 80.0

    def test_extended_id_routes_separately(self, decoder: FrameDecoder) -> None:
        """Test the extended flag picks the other message."""
        message = decoder.decode(CANFrame(arbitration_id=0x100, data=bytes([0x07]), is_extended_id=True))

        assert type(message).__name__ == "Diagnostics"
        assert message.Code == 7

    def test_unknown_id(self, decoder: FrameDecoder) -> None:
        """Test an unknown ID yields None and is tracked."""
        assert decoder.decode(CANFrame(arbitration_id=0x500)) is None
        assert (0x500, False) in decoder.unknown_ids

    def test_length_mismatch_is_counted(
        self,
        decoder: FrameDecoder,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a wrong-length frame is dropped, counted and logged."""
        with caplog.at_level(logging.WARNING):
            assert decoder.decode(CANFrame(arbitration_id=0x100, data=bytes(8))) is None

        assert decoder.length_errors == {(0x100, False): 1}
        assert "EngineStatus" in caplog.text

    def test_decode_batch(self, decoder: FrameDecoder) -> None:
        """Test batch decoding skips frames that cannot be decoded."""
        frames = [
            CANFrame(arbitration_id=0x100, data=bytes([0, 0, 0])),
            CANFrame(arbitration_id=0x500),
            CANFrame(arbitration_id=0x100, data=bytes([1])),
            CANFrame(arbitration_id=0x100, data=bytes([1]), is_extended_id=True),
        ]

        assert len(decoder.decode_batch(frames)) == 2

    def test_clear_stats(self, decoder: FrameDecoder) -> None:
        """Test clearing unknown IDs and error counts."""
        decoder.decode(CANFrame(arbitration_id=0x500))
        decoder.decode(CANFrame(arbitration_id=0x100, data=bytes([1])))
        decoder.clear_stats()

        assert not decoder.unknown_ids
        assert not decoder.length_errors

    def test_register_conflict(self, messages: dict) -> None:
        """Test two classes cannot claim the same ID."""
        decoder = FrameDecoder([messages["EngineStatus"]])
        other = type("Clash", (), {"ID": 0x100, "EXTENDED": False})

        with pytest.raises(ValueError, match="already registered"):
            decoder.register(other)

    def test_unregister(self, decoder: FrameDecoder, messages: dict) -> None:
        """Test unregistering a class."""
        decoder.unregister(messages["Diagnostics"])

        assert decoder.get_type(0x100, is_extended_id=True) is None
        assert decoder.get_type(0x100) is messages["EngineStatus"]
