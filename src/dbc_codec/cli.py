"""Command-line interface for dbc_codec."""

import dataclasses
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from dbc_codec import __version__
from dbc_codec.codegen.generator import CodeGenerator
from dbc_codec.codegen.message import MessageSelection
from dbc_codec.config import CodegenConfig
from dbc_codec.errors import CodegenError, LengthMismatch
from dbc_codec.frame import CANFrame
from dbc_codec.schema.loader import load_database


console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _generator(schema: str, on_collision: str = "error") -> CodeGenerator:
    try:
        database = load_database(schema)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    return CodeGenerator(database, CodegenConfig(on_name_collision=on_collision))


schema_argument = click.argument("schema", type=click.Path(exists=True, dir_okay=False))
message_option = click.option(
    "--message",
    "-m",
    "messages",
    multiple=True,
    help="Message to include, optionally with signals: Name[:SigA,SigB]. Repeatable.",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """dbc-codec - generate CAN message codecs from a signal schema."""
    _setup_logging(verbose)


@main.command()
@schema_argument
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False), help="Output module path")
@message_option
@click.option(
    "--on-collision",
    type=click.Choice(["error", "override"]),
    default="error",
    show_default=True,
    help="Handling of value-table constants that sanitize to the same name",
)
def generate(schema: str, output: str, messages: tuple[str, ...], on_collision: str) -> None:
    """Generate a Python module of message classes."""
    generator = _generator(schema, on_collision)
    try:
        assemblers = generator.write(Path(output), messages)
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    console.print(f"[green]Generated {len(assemblers)} message classes[/green] -> {output}")


@main.command()
@schema_argument
@message_option
def layout(schema: str, messages: tuple[str, ...]) -> None:
    """Show how each signal is stored and which codec path it takes."""
    generator = _generator(schema)
    try:
        assemblers = generator.assemblers(messages)
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    for assembler in assemblers:
        table = Table(title=assembler.docstring())
        table.add_column("Signal", style="cyan")
        table.add_column("Start", justify="right")
        table.add_column("Bits", justify="right")
        table.add_column("Order")
        table.add_column("Bytes", justify="right")
        table.add_column("Storage")
        table.add_column("Native")
        table.add_column("Layout", style="green")

        for info in assembler.layouts:
            signal = info.signal
            table.add_row(
                signal.name,
                str(signal.start_bit),
                str(signal.bit_length),
                signal.byte_order.value,
                f"{info.low}-{info.high}",
                str(info.storage),
                str(info.native),
                info.layout.value,
            )
        console.print(table)


@main.command()
@schema_argument
@click.argument("message")
@click.argument("payload")
def decode(schema: str, message: str, payload: str) -> None:
    """Decode a hex PAYLOAD as MESSAGE and print its signals."""
    generator = _generator(schema)
    try:
        selection = MessageSelection.parse(message)
        message_type = generator.build([selection])[selection.message]
        frame = CANFrame.from_hex(message_type.ID, payload, message_type.EXTENDED)
        decoded = message_type.from_bytes(frame.data)
    except (CodegenError, LengthMismatch) as e:
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="PAYLOAD") from e

    table = Table(title=f"{message_type.__name__} {frame!r}")
    table.add_column("Signal", style="cyan")
    table.add_column("Value", justify="right", style="green")
    for field in dataclasses.fields(message_type):
        table.add_row(field.name, _format_value(getattr(decoded, field.name)))
    console.print(table)


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int) and value >= 0:
        return f"{value} ({value:#x})"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


if __name__ == "__main__":
    main()
