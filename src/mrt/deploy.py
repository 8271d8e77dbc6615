# mrt - deploy modified branches
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

from mrt.errors.batch import DeployBranchError
from mrt.logger import logger as root_logger
from mrt.models.branch import ModifiedBranch
from mrt.models.report import DeployReport, ItemResult
from mrt.models.state import MaintenanceState
from mrt.ops.base import MaintenanceOps
from mrt.store import SaveStateCallback, no_save

logger = root_logger.getChild("deploy")


def _is_ready(modified_branch: ModifiedBranch, *, release_candidate: bool) -> bool:
    if release_candidate:
        return modified_branch.is_ready_for_release_candidate
    return modified_branch.is_ready_for_production


async def _deploy(
    state: MaintenanceState,
    ops: MaintenanceOps,
    *,
    release_candidate: bool,
    save: SaveStateCallback,
) -> DeployReport:
    kind = "rc" if release_candidate else "production"
    report = DeployReport(release_candidate=release_candidate)

    for modified_branch in state.modified_branches:
        if not _is_ready(modified_branch, release_candidate=release_candidate):
            continue

        repo, branch = modified_branch.key
        logger.info(f"running {kind} deploy for {repo} {branch}")

        try:
            version = await ops.deploy(
                repo,
                branch,
                modified_branch.brands,
                ", ".join(modified_branch.messages),
                release_candidate=release_candidate,
            )
        except Exception as e:
            msg = f"error on {kind} deploy for {repo} {branch}: {e}"
            logger.error(msg)
            report.add(repo, branch, kind, ItemResult.FATAL, detail=str(e))
            save(state)
            raise DeployBranchError(
                repo, branch, kind, msg=str(e), report=report
            ) from e

        modified_branch.deployed_version = version
        if not release_candidate:
            # shipped
            modified_branch.messages = []

        report.add(repo, branch, kind, ItemResult.APPLIED, detail=str(version))
        save(state)

    save(state)
    logger.info(f"{len(report.entries)} {kind} versions deployed")
    return report


async def deploy_release_candidates(
    state: MaintenanceState,
    ops: MaintenanceOps,
    *,
    save: SaveStateCallback = no_save,
) -> DeployReport:
    """Deploy a release candidate of every branch ready for one."""
    return await _deploy(state, ops, release_candidate=True, save=save)


async def deploy_production(
    state: MaintenanceState,
    ops: MaintenanceOps,
    *,
    save: SaveStateCallback = no_save,
) -> DeployReport:
    """
    Deploy to production every branch with a release candidate deployed.

    Successfully deployed branches have their change log messages cleared.
    """
    return await _deploy(state, ops, release_candidate=False, save=save)
