# mrt - commands - maintenance status
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
from rich.padding import Padding

from mrt.cmds import (
    Symbols,
    console,
    exit_on_error,
    get_ops,
    get_store,
    pinfo,
    psuccess,
    pwarn,
    rprint,
    with_config,
)
from mrt.cmds import logger as parent_logger
from mrt.config import Config
from mrt.errors import MRTError
from mrt.status import (
    check_branch_status,
    checkout_branch,
    get_deployed_links,
    render_state,
)

logger = parent_logger.getChild("status")


@click.command("list", help="Show the current maintenance status.")
@with_config
def cmd_list(config: Config) -> None:
    try:
        state = get_store(config).load()
    except MRTError as e:
        exit_on_error(e)

    if not state.patches and not state.modified_branches:
        pinfo("no maintenance in progress")
        return

    console.print(Padding(render_state(state), (1, 0, 1, 0)))

    for violation in state.check_integrity():
        pwarn(violation)


@click.command("link-list", help="Show links to deployed branches.")
@with_config
def cmd_link_list(config: Config) -> None:
    try:
        state = get_store(config).load()
    except MRTError as e:
        exit_on_error(e)

    production, release_candidates = get_deployed_links(state, config.links)
    if not production and not release_candidates:
        pinfo("no deployed branches")
        return

    if production:
        console.print("\n[bold]Production links[/bold]\n")
        for link in production:
            rprint(link)

    if release_candidates:
        console.print("\n[bold]Release Candidate links[/bold]\n")
        for link in release_candidates:
            rprint(link)


@click.command(
    "check-branch-status", help="Check the consistency of all release branches."
)
@with_config
def cmd_check_branch_status(config: Config) -> None:
    ops = get_ops(config)
    try:
        statuses = asyncio.run(check_branch_status(ops))
    except MRTError as e:
        exit_on_error(e)

    num_bad = 0
    for status in statuses:
        if status.is_ok:
            rprint(f"[green]{Symbols.CHECK_MARK}[/green] {status.repo} {status.branch}")
            continue

        num_bad += 1
        rprint(f"[red]{Symbols.CROSS_MARK}[/red] {status.repo} {status.branch}")
        for finding in status.findings:
            rprint(f"    {Symbols.BULLET} {finding}")

    if num_bad:
        pwarn(f"{num_bad} of {len(statuses)} branches with issues")
    else:
        psuccess(f"all {len(statuses)} branches look good")


@click.command("checkout-branch", help="Check out a modified branch for manual work.")
@click.argument("repo", type=str, required=True, metavar="REPO")
@click.argument("branch", type=str, required=True, metavar="BRANCH")
@with_config
def cmd_checkout_branch(config: Config, repo: str, branch: str) -> None:
    ops = get_ops(config)
    try:
        state = get_store(config).load()
        _ = asyncio.run(checkout_branch(state, ops, repo, branch))
    except MRTError as e:
        exit_on_error(e)

    psuccess(f"checked out {repo} {branch}")


@click.command("reset", help="Discard the whole maintenance state.")
@click.option(
    "-y",
    "--yes",
    is_flag=True,
    default=False,
    help="Do not ask for confirmation.",
)
@with_config
def cmd_reset(config: Config, yes: bool) -> None:
    if not yes:
        _ = click.confirm(
            f"Discard maintenance state at '{config.state_path}'?", abort=True
        )

    try:
        _ = get_store(config).reset()
    except MRTError as e:
        exit_on_error(e)

    psuccess("maintenance state reset")
