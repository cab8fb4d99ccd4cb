"""Routing received frames to generated message classes."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dbc_codec.frame import CANFrame


logger = logging.getLogger(__name__)

FrameKey = Tuple[int, bool]


class FrameDecoder:
    """Decodes CAN frames with the generated class registered for their ID.

    Frames with unknown IDs or a payload length that does not match the
    message's DLC are skipped (``decode`` returns None) so that a receive
    loop can carry on with the next frame.
    """

    def __init__(self, message_types: Iterable[type] = ()) -> None:
        self._types: Dict[FrameKey, type] = {}
        self._unknown_ids: set[FrameKey] = set()
        self._length_errors: Dict[FrameKey, int] = {}
        for message_type in message_types:
            self.register(message_type)

    @property
    def registered_ids(self) -> set[FrameKey]:
        """``(arbitration_id, is_extended_id)`` pairs with registered types."""
        return set(self._types.keys())

    @property
    def unknown_ids(self) -> set[FrameKey]:
        """IDs seen without a registered type."""
        return self._unknown_ids.copy()

    @property
    def length_errors(self) -> Dict[FrameKey, int]:
        """Count of frames dropped for a DLC mismatch, per ID."""
        return dict(self._length_errors)

    def register(self, message_type: type) -> None:
        """Register a generated message class."""
        key = (message_type.ID, message_type.EXTENDED)
        existing = self._types.get(key)
        if existing is not None and existing is not message_type:
            raise ValueError(
                f"ID {key[0]:#x} already registered to {existing.__name__}"
            )
        self._types[key] = message_type

    def unregister(self, message_type: type) -> None:
        self._types.pop((message_type.ID, message_type.EXTENDED), None)

    def get_type(self, arbitration_id: int, is_extended_id: bool = False) -> Optional[type]:
        return self._types.get((arbitration_id, is_extended_id))

    def decode(self, frame: CANFrame) -> Optional[Any]:
        """Decode a frame into a new message instance."""
        key = (frame.arbitration_id, frame.is_extended_id)
        message_type = self._types.get(key)
        if message_type is None:
            self._unknown_ids.add(key)
            return None

        message = message_type()
        if not message.decode(frame.data):
            self._length_errors[key] = self._length_errors.get(key, 0) + 1
            logger.warning(
                "Dropping %s frame: DLC %d, expected %d",
                message_type.__name__, frame.dlc, message_type.DLC,
            )
            return None
        return message

    def decode_batch(self, frames: Iterable[CANFrame]) -> List[Any]:
        """Decode multiple frames, skipping those that cannot be decoded."""
        results = []
        for frame in frames:
            message = self.decode(frame)
            if message is not None:
                results.append(message)
        return results

    def clear_stats(self) -> None:
        """Forget unknown IDs and length error counts."""
        self._unknown_ids.clear()
        self._length_errors.clear()
