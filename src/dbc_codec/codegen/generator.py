"""Module-level code generation from a schema database."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from dbc_codec.codegen.message import MessageAssembler, MessageSelection
from dbc_codec.config import CodegenConfig
from dbc_codec.errors import SchemaMismatch
from dbc_codec.schema.model import Database


logger = logging.getLogger(__name__)

MODULE_HEADER = '''\
"""Message codecs generated by dbc_codec{source}."""
# Do not edit: regenerate with `dbc-codec generate`.

from dataclasses import dataclass
from typing import ClassVar

from dbc_codec.errors import LengthMismatch
'''


class CodeGenerator:
    """Turns a schema database into message classes.

    ``render`` returns module source for writing to disk; ``build``
    executes that same source and returns the classes directly.
    """

    def __init__(self, database: Database, config: Optional[CodegenConfig] = None) -> None:
        self.database = database
        self.config = config or CodegenConfig()

    def assemblers(
        self,
        selections: Iterable[Union[MessageSelection, str]] = (),
    ) -> List[MessageAssembler]:
        """Resolve selections against the database.

        With no selections every message is generated with all signals.
        """
        resolved = [
            MessageSelection.parse(s) if isinstance(s, str) else s for s in selections
        ]
        if not resolved:
            resolved = [MessageSelection(m.name) for m in self.database]

        assemblers: List[MessageAssembler] = []
        seen: set[str] = set()
        for selection in resolved:
            message = self.database.get_message(selection.message)
            if message is None:
                raise SchemaMismatch(f"Unknown message {selection.message!r}")
            if selection.message in seen:
                raise SchemaMismatch(f"Message {selection.message!r} selected more than once")
            seen.add(selection.message)
            assemblers.append(MessageAssembler(message, selection, self.config))
            logger.debug(
                "Assembled %s with %d signals", message.name, len(assemblers[-1].codecs)
            )
        return assemblers

    def render(self, selections: Iterable[Union[MessageSelection, str]] = ()) -> str:
        """Return the source of a module defining the selected messages."""
        return self._render_module(self.assemblers(selections))

    def _render_module(self, assemblers: List[MessageAssembler]) -> str:
        source = f" from {Path(self.database.source).name}" if self.database.source else ""
        parts = [MODULE_HEADER.format(source=source)]
        names = ", ".join(repr(a.name) for a in assemblers)
        parts.append(f"__all__ = [{names}]\n")
        for assembler in assemblers:
            parts.append("\n" + assembler.render())
        return "\n".join(parts)

    def build(self, selections: Iterable[Union[MessageSelection, str]] = ()) -> Dict[str, type]:
        """Generate and compile the selected messages in memory."""
        source = self.render(selections)
        namespace: Dict[str, Any] = {"__name__": self.config.module_name}
        # The generated module must not pick up this file's __future__ flags.
        code = compile(source, f"<{self.config.module_name}>", "exec", dont_inherit=True)
        exec(code, namespace)
        return {name: namespace[name] for name in namespace["__all__"]}

    def write(
        self,
        path: Union[str, Path],
        selections: Iterable[Union[MessageSelection, str]] = (),
    ) -> List[MessageAssembler]:
        """Write the generated module to ``path`` and return the messages it defines."""
        path = Path(path)
        assemblers = self.assemblers(selections)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self._render_module(assemblers), encoding="utf-8")
        logger.info("Wrote %d messages to %s", len(assemblers), path)
        return assemblers


def build_messages(
    database: Database,
    selections: Iterable[Union[MessageSelection, str]] = (),
    config: Optional[CodegenConfig] = None,
) -> Dict[str, type]:
    """Shortcut for ``CodeGenerator(database, config).build(selections)``."""
    return CodeGenerator(database, config).build(selections)
