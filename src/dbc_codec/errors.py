"""Exceptions raised while generating or using message codecs."""


class CodegenError(Exception):
    """Base class for errors detected before any codec is produced."""


class SchemaMismatch(CodegenError):
    """A requested message or signal has no entry in the schema."""


class UnsupportedLayout(CodegenError):
    """A signal's bit layout cannot be turned into a correct codec."""


class NameCollision(CodegenError):
    """Two generated names clash, or a name is not a usable identifier."""


class LengthMismatch(ValueError):
    """A payload's length differs from the message's declared DLC."""

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{message}: expected {expected} bytes, got {actual}"
        )
        self.message = message
        self.expected = expected
        self.actual = actual
