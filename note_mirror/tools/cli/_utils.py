"""
Utilities specific to CLI functionality.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from click import Parameter
from rich.console import Console
from rich.logging import RichHandler
from typer import Context, Typer

if TYPE_CHECKING:
    from .main import RootContext


console = Console()

rich_handler = RichHandler(
    console=console,
    rich_tracebacks=True,
    show_level=True,
    show_time=True,
    show_path=False,
)
rich_handler.setFormatter(logging.Formatter("%(message)s"))

logger = logging.getLogger("note-mirror")
logger.setLevel(logging.INFO)
logger.addHandler(rich_handler)
logger.propagate = False


class MainTyper(Typer):
    """
    Typer app with preconfigured settings.
    """

    def __init__(self, name: str, *, help: str):
        return super().__init__(
            name=name,
            help=help,
            rich_markup_mode="markdown",
            no_args_is_help=True,
            add_completion=False,
        )


def get_root_context(ctx: Context) -> RootContext:
    from .main import RootContext

    root_context = ctx.obj
    assert isinstance(root_context, RootContext)
    return root_context


def lookup_param(ctx: Context, name: str) -> Parameter:
    """
    Lookup param by name, searching parent contexts as well.
    """
    current: Context | None = ctx

    while current is not None:
        param = next(
            (p for p in current.command.params if p.name == name), None
        )
        if param:
            return param
        current = current.parent

    raise AssertionError(f"Could not find param with name: {name}")


def format_flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"
