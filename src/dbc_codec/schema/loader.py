"""Loading schemas from files.

JSON files use the layout produced by ``Database.to_dict()``. Every
other supported format is parsed by cantools and adapted here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

import cantools

from dbc_codec.schema.model import ByteOrder, Database, MessageSchema, SignalSchema


logger = logging.getLogger(__name__)

CANTOOLS_SUFFIXES = {".dbc", ".kcd", ".sym", ".arxml"}


def load_database(path: Union[str, Path]) -> Database:
    """Load a schema file, choosing the parser from its suffix."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        database = Database.from_dict(data, source=str(path))
    elif suffix in CANTOOLS_SUFFIXES:
        try:
            db = cantools.database.load_file(str(path))
        except cantools.database.UnsupportedDatabaseFormatError as e:
            raise ValueError(f"Could not parse {path.name}: {e}") from e
        database = from_cantools(db, source=str(path))
    else:
        raise ValueError(f"Unsupported schema file type: {path.name}")

    logger.debug("Loaded %d messages from %s", len(database), path)
    return database


def from_cantools(db: Any, source: str = "") -> Database:
    """Adapt a cantools CAN database.

    cantools keeps DBC start bits as written in the file, so big-endian
    signals already use the MSB/sawtooth numbering SignalSchema expects.
    """
    messages = []
    for message in db.messages:
        signals = []
        for signal in message.signals:
            choices = signal.choices or {}
            signals.append(SignalSchema(
                name=signal.name,
                start_bit=signal.start,
                bit_length=signal.length,
                byte_order=(
                    ByteOrder.LITTLE_ENDIAN
                    if signal.byte_order == "little_endian"
                    else ByteOrder.BIG_ENDIAN
                ),
                is_signed=signal.is_signed,
                scale=float(signal.scale),
                offset=float(signal.offset),
                value_table=tuple((int(raw), str(desc)) for raw, desc in choices.items()),
                unit=signal.unit or "",
            ))

        messages.append(MessageSchema(
            arbitration_id=message.frame_id,
            name=message.name,
            dlc=message.length,
            signals=tuple(signals),
            is_extended_id=message.is_extended_frame,
            cycle_time=message.cycle_time or None,
        ))

    return Database(messages=tuple(messages), source=source)
