"""Code generation settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


CollisionPolicy = Literal["error", "override"]


@dataclass(frozen=True)
class CodegenConfig:
    """Options controlling how message classes are generated.

    Attributes:
        on_name_collision: What to do when two value-table constants of a
            message sanitize to the same name. "error" aborts generation;
            "override" keeps the later definition and logs a warning.
        module_name: ``__name__`` given to the generated module.
    """

    on_name_collision: CollisionPolicy = "error"
    module_name: str = "dbc_codec.generated"

    def __post_init__(self) -> None:
        if self.on_name_collision not in ("error", "override"):
            raise ValueError(
                f"on_name_collision must be 'error' or 'override', got {self.on_name_collision!r}"
            )
        if not all(part.isidentifier() for part in self.module_name.split(".")):
            raise ValueError(f"Invalid module name: {self.module_name!r}")
