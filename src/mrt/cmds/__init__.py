# mrt - commands
# Copyright (C) 2025  Clyso GmbH
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.

import enum
import errno
import logging
import sys
from collections.abc import Callable
from functools import update_wrapper
from pathlib import Path
from typing import Concatenate, NoReturn

import click
import rich.box
from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.padding import Padding
from rich.table import Table
from rich.theme import Theme

from mrt.config import Config, ConfigError
from mrt.errors import MRTError
from mrt.errors.batch import BatchError
from mrt.logger import logger as root_logger
from mrt.models.report import BatchReport, ItemResult
from mrt.ops.base import MaintenanceOps
from mrt.ops.local import LocalOps
from mrt.store import StateStore

logger = root_logger.getChild("cmds")


class Ctx:
    config_path: Path | None
    ops: MaintenanceOps | None

    def __init__(self, *, ops: MaintenanceOps | None = None) -> None:
        self.config_path = None
        self.ops = ops


pass_ctx = click.make_pass_decorator(Ctx, ensure=True)


def _get_ctx(name: str) -> Ctx:
    curr_ctx = click.get_current_context()
    ctx = curr_ctx.find_object(Ctx)
    if not ctx:
        perror(f"missing context for '{name}'")
        sys.exit(errno.ENOTRECOVERABLE)
    return ctx


def with_config[R, **P](
    f: Callable[Concatenate[Config, P], R],
) -> Callable[P, R]:
    """Pass the loaded configuration to the function."""

    def inner(*args: P.args, **kwargs: P.kwargs) -> R:
        ctx = _get_ctx(f.__name__)
        if not ctx.config_path:
            perror("configuration file path not provided")
            sys.exit(errno.EINVAL)

        try:
            config = Config.load(ctx.config_path)
        except ConfigError as e:
            perror(f"unable to read configuration file: {e}")
            sys.exit(errno.ENOTRECOVERABLE)

        return f(config, *args, **kwargs)

    return update_wrapper(inner, f)


def get_ops(config: Config) -> MaintenanceOps:
    """Obtain the operations to run against, defaulting to the local repositories."""
    ctx = _get_ctx("get_ops")
    if not ctx.ops:
        ctx.ops = LocalOps(config)
    return ctx.ops


def get_store(config: Config) -> StateStore:
    return StateStore(config.state_path)


def exit_on_error(e: MRTError) -> NoReturn:
    perror(str(e))
    sys.exit(e.ec if e.ec else errno.ENOTRECOVERABLE)


class _MRTHighlighter(RegexHighlighter):
    base_style: str = "mrt."
    highlights: list[str] = [  # noqa: RUF012
        r"(?P<sha>[a-f0-9]{40})",
        r"(?P<version>\d+\.\d+\.\d+(-\w+\.\d+)?)",
    ]


_theme = Theme(
    {
        "mrt.sha": "purple",
        "mrt.version": "gold1",
    }
)
console = Console(highlighter=_MRTHighlighter(), theme=_theme)


def perror(s: str) -> None:
    console.print(
        f"[bold][red]error:[/red] {s}[/bold]",
    )


def pinfo(s: str) -> None:
    console.print(s, style="cyan")


def psuccess(s: str) -> None:
    console.print(s, style="bold green")


def pwarn(s: str) -> None:
    console.print(f"[bold yellow]warning:[/bold yellow] {s}")


def rprint(s: str) -> None:
    console.print(s)


def set_debug_logging() -> None:
    root_logger.setLevel(logging.DEBUG)


def set_verbose_logging() -> None:
    root_logger.setLevel(logging.INFO)


class Symbols(enum.StrEnum):
    RIGHT_ARROW = "\u276f"  # '>'
    BULLET = "\u2022"
    CHECK_MARK = "\u2713"
    CROSS_MARK = "\u2717"


_RESULT_MARKS = {
    ItemResult.APPLIED: f"[green]{Symbols.CHECK_MARK}[/green]",
    ItemResult.NEEDS_RETRY: f"[yellow]{Symbols.RIGHT_ARROW}[/yellow]",
    ItemResult.FATAL: f"[red]{Symbols.CROSS_MARK}[/red]",
}


def print_report(report: BatchReport) -> None:
    if not report.entries:
        pinfo("nothing to do")
        return

    table = Table(show_header=True, show_lines=False, box=rich.box.HORIZONTALS)
    table.add_column("", no_wrap=True)
    table.add_column("Branch", justify="left", style="bold cyan", no_wrap=True)
    table.add_column("Item", justify="left", style="magenta", no_wrap=True)
    table.add_column("Result", justify="left", no_wrap=True)
    table.add_column("Detail", justify="left", no_wrap=False)

    for entry in report.entries:
        table.add_row(
            _RESULT_MARKS[entry.result],
            f"{entry.repo} {entry.branch}",
            entry.item,
            str(entry.result),
            entry.detail or "",
        )

    console.print(Padding(table, (1, 0, 1, 0)))


def print_batch_error(e: BatchError) -> NoReturn:
    """Print a failed batch's partial report, then exit."""
    if e.report:
        print_report(e.report)
    perror(str(e))
    if e.__cause__:
        perror(f"caused by: {e.__cause__}")
    pwarn("state has been saved, fix the cause and re-run to resume")
    sys.exit(errno.ENOTRECOVERABLE)
