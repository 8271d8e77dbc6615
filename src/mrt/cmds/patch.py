# mrt - commands - patches
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

import click

from mrt.cmds import exit_on_error, get_store, pinfo, psuccess, with_config
from mrt.cmds import logger as parent_logger
from mrt.cmds._common import validate_sha
from mrt.config import Config
from mrt.errors import MRTError

logger = parent_logger.getChild("patch")


@click.group("patch", help="Handle patches.")
def cmd_patch() -> None:
    pass


@cmd_patch.command("create", help="Create a patch for a repository.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("message", type=str, required=True, metavar="MESSAGE")
@with_config
def cmd_patch_create(config: Config, repo: str, message: str) -> None:
    try:
        with get_store(config).session() as state:
            _ = state.create_patch(repo, message)
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"created patch for '{repo}' with message: {message}")


@cmd_patch.command("remove", help="Remove a patch no longer needed by any branch.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@with_config
def cmd_patch_remove(config: Config, repo: str) -> None:
    try:
        with get_store(config).session() as state:
            state.remove_patch(repo)
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"removed patch for '{repo}'")


@cmd_patch.command("add-sha", help="Add a candidate commit to a patch.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_patch_add_sha(config: Config, repo: str, sha: str) -> None:
    try:
        with get_store(config).session() as state:
            state.add_patch_sha(repo, sha)
            patch = state.find_patch(repo)
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"added sha '{sha}' to patch '{repo}'")
    if len(patch.shas) > 1:
        pinfo(f"patch '{repo}' has {len(patch.shas)} candidate shas")


@cmd_patch.command("remove-sha", help="Remove a candidate commit from a patch.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_patch_remove_sha(config: Config, repo: str, sha: str) -> None:
    try:
        with get_store(config).session() as state:
            state.remove_patch_sha(repo, sha)
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"removed sha '{sha}' from patch '{repo}'")
