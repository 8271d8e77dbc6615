# mrt - propagate patched dependencies to release branches
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

from mrt.errors.batch import UpdateDependenciesError
from mrt.logger import logger as root_logger
from mrt.models.branch import ModifiedBranch
from mrt.models.patch import SHA
from mrt.models.report import ItemResult, UpdateReport
from mrt.models.state import MaintenanceState
from mrt.ops.base import MaintenanceOps
from mrt.store import SaveStateCallback, no_save

logger = root_logger.getChild("dependencies")


async def _propagate(
    ops: MaintenanceOps, modified_branch: ModifiedBranch, dependency: str, sha: SHA
) -> str:
    """Publish `sha` on the dependency branch of `modified_branch`."""
    dependency_branch = modified_branch.dependency_branch

    if dependency_branch in await ops.get_branches(dependency):
        logger.debug(f"branch '{dependency_branch}' exists in '{dependency}'")
        await ops.checkout(dependency, dependency_branch)
        await ops.pull(dependency)
        current = await ops.rev_parse(dependency, "HEAD")
        if current == sha:
            return f"'{dependency_branch}' already at '{sha}'"

        logger.info(f"merging '{sha}' into {dependency} '{dependency_branch}'")
        await ops.merge(dependency, sha)
        await ops.push(dependency, dependency_branch)
        return f"merged '{sha}' into '{dependency_branch}'"

    logger.info(f"creating branch '{dependency_branch}' in '{dependency}'")
    await ops.checkout(dependency, sha)
    await ops.create_branch(dependency, dependency_branch)
    await ops.push(dependency, dependency_branch)
    return f"created '{dependency_branch}' at '{sha}'"


async def _update_branch(
    state: MaintenanceState,
    ops: MaintenanceOps,
    modified_branch: ModifiedBranch,
    report: UpdateReport,
    *,
    build_tool_repo: str | None,
    save: SaveStateCallback,
) -> None:
    repo, branch = modified_branch.key
    changed = list(modified_branch.changed_dependencies.items())
    step = "checkout"

    try:
        await ops.checkout_target(repo, branch, refresh=True)
        logger.info(f"checked out {repo} {branch}")

        for dependency, sha in changed:
            step = f"propagate '{dependency}'"
            detail = await _propagate(ops, modified_branch, dependency, sha)
            modified_branch.record_propagated(dependency)
            report.add(repo, branch, dependency, ItemResult.APPLIED, detail=detail)
            save(state)

        if build_tool_repo and build_tool_repo in dict(changed):
            step = f"refresh '{build_tool_repo}'"
            await ops.refresh(build_tool_repo)

        step = "build"
        await ops.build(repo, modified_branch.brands)

        step = "write dependencies"
        await ops.write_dependency_descriptor(
            repo,
            modified_branch.brands,
            " and ".join(modified_branch.messages),
            branch,
        )

        step = "restore mainline"
        await ops.checkout_mainline(repo, refresh=True)

    except Exception as e:
        msg = f"error updating dependencies of {repo} {branch} during {step}: {e}"
        logger.error(msg)
        report.add(repo, branch, step, ItemResult.FATAL, detail=str(e))
        try:
            save(state)
        finally:
            if step != "restore mainline":
                try:
                    await ops.checkout_mainline(repo, refresh=True)
                except Exception as restore_e:
                    logger.error(
                        f"unable to restore '{repo}' to mainline: {restore_e}"
                    )

        raise UpdateDependenciesError(
            repo, branch, step, msg=str(e), report=report
        ) from e


async def update_dependencies(
    state: MaintenanceState,
    ops: MaintenanceOps,
    *,
    build_tool_repo: str | None = None,
    save: SaveStateCallback = no_save,
) -> UpdateReport:
    """
    Publish each modified branch's changed dependencies, then rebuild it.

    Patched dependency commits are fast-forwarded onto, or used to create, the
    branch's per-release dependency branch in each dependency repository.
    Once all are published, the branch is rebuilt and its dependency
    descriptor committed. Branches processed before a failure remain
    propagated.
    """
    report = UpdateReport()

    for modified_branch in state.modified_branches:
        if not modified_branch.changed_dependencies:
            continue

        await _update_branch(
            state,
            ops,
            modified_branch,
            report,
            build_tool_repo=build_tool_repo,
            save=save,
        )

    save(state)
    logger.info(f"{report.applied} dependencies updated")
    return report
