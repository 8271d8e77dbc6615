# mrt - maintenance status reports
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

import rich.box
from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from mrt.config import LinksConfig
from mrt.errors.ops import OpsError
from mrt.logger import logger as root_logger
from mrt.models.branch import BranchStatus, ModifiedBranch
from mrt.models.state import MaintenanceState
from mrt.ops.base import MaintenanceOps

logger = root_logger.getChild("status")


def _branch_info(modified_branch: ModifiedBranch) -> Table:
    info_table = Table(show_header=False, show_lines=False, box=None)
    info_table.add_column("key", justify="right", style="magenta", no_wrap=True)
    info_table.add_column("value", justify="left", style="white", no_wrap=False)

    info_table.add_row("brands", ",".join(modified_branch.brands))
    if modified_branch.deployed_version:
        info_table.add_row("deployed", str(modified_branch.deployed_version))
    if modified_branch.needed_patches:
        info_table.add_row(
            "needs", ",".join(p.repo for p in modified_branch.needed_patches)
        )
    if modified_branch.messages:
        info_table.add_row("messages", " and ".join(modified_branch.messages))
    for dep, sha in modified_branch.changed_dependencies.items():
        info_table.add_row(f"dep {dep}", sha)

    return info_table


def render_state(state: MaintenanceState) -> RenderableType:
    """Render the modified branches and patches of the maintenance state."""
    branches_table = Table(
        title="Modified Branches",
        show_header=False,
        show_lines=True,
        box=rich.box.HORIZONTALS,
    )
    branches_table.add_column("branch", justify="left", style="bold cyan")
    branches_table.add_column("info", justify="left", no_wrap=False)
    for modified_branch in state.modified_branches:
        branches_table.add_row(
            f"{modified_branch.repo} {modified_branch.branch}",
            _branch_info(modified_branch),
        )

    patches_table = Table(
        title="Patches",
        show_header=True,
        show_lines=True,
        box=rich.box.HORIZONTALS,
    )
    patches_table.add_column("Repo", justify="left", style="bold cyan")
    patches_table.add_column("Message", justify="left", style="magenta")
    patches_table.add_column("SHAs", justify="left", no_wrap=True)
    patches_table.add_column("Needed By", justify="left", no_wrap=True)
    for patch in state.patches.values():
        needed_by = [
            f"{b.repo} {b.branch} {','.join(b.brands)}"
            for b in state.branches_needing(patch)
        ]
        patches_table.add_row(
            patch.repo,
            patch.message,
            "\n".join(patch.shas) or "[dim]none[/dim]",
            "\n".join(needed_by) or "[dim]none[/dim]",
        )

    return Group(branches_table, Text(""), patches_table)


def get_deployed_links(
    state: MaintenanceState, links: LinksConfig
) -> tuple[list[str], list[str]]:
    """Obtain links to deployed branches, as production and release candidates."""
    production: list[str] = []
    release_candidates: list[str] = []

    for modified_branch in state.modified_branches:
        version = modified_branch.deployed_version
        if not version:
            continue

        if version.is_release_candidate:
            release_candidates.append(
                links.release_candidate.format(
                    repo=modified_branch.repo, version=str(version)
                )
            )
        elif version.is_production:
            production.append(
                links.production.format(repo=modified_branch.repo, version=str(version))
            )

    return (production, release_candidates)


async def check_branch_status(ops: MaintenanceOps) -> list[BranchStatus]:
    """Check the consistency of every maintained release branch."""
    statuses: list[BranchStatus] = []

    for release_branch in await ops.get_release_branches():
        logger.info(f"checking {release_branch.repo} {release_branch.branch}")
        try:
            status = await release_branch.get_status(ops)
        except OpsError as e:
            logger.warning(
                f"unable to check {release_branch.repo} {release_branch.branch}: {e}"
            )
            status = BranchStatus(
                repo=release_branch.repo,
                branch=release_branch.branch,
                findings=[f"unable to check branch: {e}"],
            )
        statuses.append(status)

    return statuses


async def checkout_branch(
    state: MaintenanceState, ops: MaintenanceOps, repo: str, branch: str
) -> ModifiedBranch:
    """
    Check out a modified branch for manual work.

    The branch's repository is checked out at the release branch, with its
    dependencies at their declared commits, except for those already patched,
    which are checked out at their patched commit. The state is not changed.
    """
    modified_branch = await state.ensure_modified_branch(
        ops, repo, branch, error_if_missing=True
    )

    await ops.checkout_target(repo, branch, refresh=False)
    for dep, sha in modified_branch.changed_dependencies.items():
        logger.debug(f"checkout patched '{dep}' at '{sha}'")
        await ops.checkout(dep, sha)

    return modified_branch
