# mrt - commands - patches needed by release branches
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

import asyncio

import click

from mrt.cmds import (
    Symbols,
    exit_on_error,
    get_ops,
    get_store,
    pinfo,
    psuccess,
    rprint,
    with_config,
)
from mrt.cmds import logger as parent_logger
from mrt.cmds._common import validate_sha
from mrt.config import Config
from mrt.errors import MRTError
from mrt.models.branch import ModifiedBranch

logger = parent_logger.getChild("needed")


def _print_branches(what: str, branches: list[tuple[str, str]]) -> None:
    if not branches:
        pinfo(f"no branches {what}")
        return

    psuccess(f"{len(branches)} branches {what}:")
    for repo, branch in branches:
        rprint(f"  {Symbols.BULLET} {repo} {branch}")


def _keys(branches: list[ModifiedBranch]) -> list[tuple[str, str]]:
    return [b.key for b in branches]


@click.group("needed", help="Handle patches needed by release branches.")
def cmd_needed() -> None:
    pass


@cmd_needed.command("add", help="Mark a patch as needed by a release branch.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("branch", type=str, required=True, metavar="BRANCH")
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@with_config
def cmd_needed_add(config: Config, repo: str, branch: str, patch_repo: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            added = asyncio.run(state.add_needed_patch(ops, repo, branch, patch_repo))
    except MRTError as e:
        exit_on_error(e)

    if added:
        psuccess(f"patch '{patch_repo}' needed by {repo} {branch}")
    else:
        pinfo(f"patch '{patch_repo}' was already needed by {repo} {branch}")


@cmd_needed.command("remove", help="Unmark a patch as needed by a release branch.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("branch", type=str, required=True, metavar="BRANCH")
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@with_config
def cmd_needed_remove(config: Config, repo: str, branch: str, patch_repo: str) -> None:
    try:
        with get_store(config).session() as state:
            state.remove_needed_patch(repo, branch, patch_repo)
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"patch '{patch_repo}' no longer needed by {repo} {branch}")


@cmd_needed.command("add-all", help="Mark a patch as needed by all release branches.")
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@with_config
def cmd_needed_add_all(config: Config, patch_repo: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            added = asyncio.run(state.add_all_needed_patches(ops, patch_repo))
    except MRTError as e:
        exit_on_error(e)

    _print_branches(f"now needing '{patch_repo}'", _keys(added))


@cmd_needed.command(
    "add-before",
    help="Mark a patch as needed by release branches not including a commit.",
)
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_needed_add_before(config: Config, patch_repo: str, sha: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            added = asyncio.run(state.add_needed_patches_before(ops, patch_repo, sha))
    except MRTError as e:
        exit_on_error(e)

    _print_branches(f"now needing '{patch_repo}'", _keys(added))


@cmd_needed.command(
    "add-after",
    help="Mark a patch as needed by release branches including a commit.",
)
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_needed_add_after(config: Config, patch_repo: str, sha: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            added = asyncio.run(state.add_needed_patches_after(ops, patch_repo, sha))
    except MRTError as e:
        exit_on_error(e)

    _print_branches(f"now needing '{patch_repo}'", _keys(added))


@cmd_needed.command(
    "remove-before",
    help="Unmark a patch as needed by branches not including a commit.",
)
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_needed_remove_before(config: Config, patch_repo: str, sha: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            removed = asyncio.run(
                state.remove_needed_patches_before(ops, patch_repo, sha)
            )
    except MRTError as e:
        exit_on_error(e)

    _print_branches(f"no longer needing '{patch_repo}'", removed)


@cmd_needed.command(
    "remove-after",
    help="Unmark a patch as needed by branches including a commit.",
)
@click.argument("patch_repo", type=str, required=True, metavar="PATCH_REPO")
@click.argument("sha", type=str, required=True, metavar="SHA", callback=validate_sha)
@with_config
def cmd_needed_remove_after(config: Config, patch_repo: str, sha: str) -> None:
    ops = get_ops(config)
    try:
        with get_store(config).session() as state:
            removed = asyncio.run(
                state.remove_needed_patches_after(ops, patch_repo, sha)
            )
    except MRTError as e:
        exit_on_error(e)

    _print_branches(f"no longer needing '{patch_repo}'", removed)
