# mrt - maintenance release tool
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

from pathlib import Path

import click
from rich.logging import RichHandler
from rich.padding import Padding
from rich.table import Table

from mrt.cmds import (
    Ctx,
    campaign,
    config,
    console,
    needed,
    pass_ctx,
    patch,
    set_debug_logging,
    set_verbose_logging,
    status,
)
from mrt.cmds import logger as parent_logger
from mrt.config import DEFAULT_CONFIG_PATH
from mrt.logger import logger_set_handler

logger = parent_logger.getChild("main")


@click.group()
@click.option(
    "-d",
    "--debug",
    is_flag=True,
    default=False,
    required=False,
    envvar="MRT_DEBUG",
    help="Show debug output.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    required=False,
    help="Show verbose output.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    help="Path to configuration file.",
    type=click.Path(
        exists=False,
        dir_okay=False,
        file_okay=True,
        readable=True,
        resolve_path=True,
        path_type=Path,
    ),
    envvar="MRT_CONFIG",
    required=True,
    default=DEFAULT_CONFIG_PATH,
)
@pass_ctx
def cmd_main(ctx: Ctx, debug: bool, verbose: bool, config_path: Path) -> None:
    if verbose:
        set_verbose_logging()

    if debug:
        set_debug_logging()

    rich_handler = RichHandler(rich_tracebacks=True, console=console)
    logger_set_handler(rich_handler)

    ctx.config_path = config_path

    if debug or verbose:
        table = Table(show_header=False, show_lines=False, box=None)
        table.add_column(justify="right", style="cyan", no_wrap=True)
        table.add_column(justify="left", style="magenta", no_wrap=False)
        table.add_row("config", str(ctx.config_path))
        console.print(Padding(table, (1, 0, 1, 0)))


# patch bookkeeping
cmd_main.add_command(patch.cmd_patch)
cmd_main.add_command(needed.cmd_needed)

# status
cmd_main.add_command(status.cmd_list)
cmd_main.add_command(status.cmd_link_list)
cmd_main.add_command(status.cmd_check_branch_status)
cmd_main.add_command(status.cmd_checkout_branch)
cmd_main.add_command(status.cmd_reset)

# campaign batches
cmd_main.add_command(campaign.cmd_apply_patches)
cmd_main.add_command(campaign.cmd_update_dependencies)
cmd_main.add_command(campaign.cmd_deploy_rc)
cmd_main.add_command(campaign.cmd_deploy_production)

cmd_main.add_command(config.cmd_config)


if __name__ == "__main__":
    cmd_main()
