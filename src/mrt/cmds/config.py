# mrt - commands - configuration
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

import errno
import sys
from pathlib import Path
from typing import cast

import click
import yaml

from mrt.cmds import Ctx, console, pass_ctx, perror, psuccess, pwarn
from mrt.config import BuildServerConfig, Config, ConfigError


def config_init_build_server() -> BuildServerConfig | None:
    """Initialize build server config interactively."""
    if not click.confirm("Configure build server?"):
        click.echo("skipping build server configuration")
        return None

    url = cast(str, click.prompt("Build server URL", type=str))
    token = cast(
        str | None,
        click.prompt("Build server token", default="", show_default=False),
    )
    email = cast(
        str | None,
        click.prompt("Notification email", default="", show_default=False),
    )
    return BuildServerConfig(
        url=url,
        token=token if token else None,
        notify_email=email if email else None,
    )


@click.group("config", help="Configuration related operations.")
def cmd_config() -> None:
    pass


@cmd_config.command("init", help="Initialize the configuration file.")
@click.option(
    "--root",
    "root_path",
    type=click.Path(
        exists=True, dir_okay=True, file_okay=False, resolve_path=True, path_type=Path
    ),
    required=False,
    help="Directory holding the repositories' working copies.",
)
@click.option(
    "--active-repos",
    "active_repos_path",
    type=click.Path(
        exists=True, dir_okay=False, file_okay=True, resolve_path=True, path_type=Path
    ),
    required=False,
    help="File listing the maintained repositories.",
)
@click.option(
    "--for-defaults",
    is_flag=True,
    default=False,
    help="Don't prompt, use defaults where possible.",
)
@pass_ctx
def cmd_config_init(
    ctx: Ctx,
    root_path: Path | None,
    active_repos_path: Path | None,
    for_defaults: bool,
) -> None:
    config_path = ctx.config_path
    if not config_path:
        perror("configuration file path not provided")
        sys.exit(errno.EINVAL)

    if config_path.exists() and not click.confirm(
        f"Config path '{config_path}' already exists. Overwrite?"
    ):
        pwarn("not overwriting existing configuration")
        return

    cwd = Path.cwd()
    build_server: BuildServerConfig | None = None

    if not root_path:
        root_path = (
            cwd.parent
            if for_defaults
            else Path(
                cast(str, click.prompt("Repositories root", default=str(cwd.parent)))
            ).resolve()
        )

    if not active_repos_path and not for_defaults:
        entry = cast(
            str,
            click.prompt("Active repos file", default="", show_default=False),
        )
        active_repos_path = Path(entry).resolve() if entry else None

    if not for_defaults:
        build_server = config_init_build_server()

    config = Config(
        root_path=root_path,
        active_repos_path=active_repos_path,
        build_server=build_server,
    )

    try:
        config.store(config_path)
    except ConfigError as e:
        perror(f"unable to write config to '{config_path}': {e}")
        sys.exit(errno.EIO)

    psuccess(f"wrote config to '{config_path}'")


@cmd_config.command("show", help="Show the current configuration.")
@pass_ctx
def cmd_config_show(ctx: Ctx) -> None:
    config_path = ctx.config_path
    if not config_path:
        perror("configuration file path not provided")
        sys.exit(errno.EINVAL)

    try:
        config = Config.load(config_path)
    except ConfigError as e:
        perror(f"unable to read config at '{config_path}': {e}")
        sys.exit(errno.ENOENT)

    console.print(f"[bold]config at '{config_path}'[/bold]\n")
    console.print(
        yaml.safe_dump(config.model_dump(mode="json"), indent=2),
        highlight=False,
    )
