# mrt - apply needed patches to modified branches
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

from mrt.errors.batch import ApplyPatchesError, BatchError
from mrt.logger import logger as root_logger
from mrt.models.branch import ModifiedBranch
from mrt.models.patch import SHA, Patch
from mrt.models.report import ApplyReport, ItemResult
from mrt.models.state import MaintenanceState
from mrt.ops.base import MaintenanceOps
from mrt.store import SaveStateCallback, no_save

logger = root_logger.getChild("apply")


async def _get_base(
    ops: MaintenanceOps, modified_branch: ModifiedBranch, patch: Patch
) -> SHA | None:
    # resume from a previous partial application
    if patch.repo in modified_branch.changed_dependencies:
        return modified_branch.changed_dependencies[patch.repo]

    dependencies = await modified_branch.release_branch.get_dependencies(ops)
    return dependencies.get(patch.repo)


async def _apply_patch(
    ops: MaintenanceOps,
    modified_branch: ModifiedBranch,
    patch: Patch,
    touched: list[str],
) -> tuple[ItemResult, str]:
    repo, branch = modified_branch.key

    base = await _get_base(ops, modified_branch, patch)
    if not base:
        msg = f"{repo} {branch} does not depend on '{patch.repo}'"
        logger.warning(msg)
        return (ItemResult.NEEDS_RETRY, msg)

    await ops.checkout(patch.repo, base)
    if patch.repo not in touched:
        touched.append(patch.repo)
    logger.info(f"checked out {patch.repo} at '{base}' for {repo} {branch}")

    for sha in patch.shas:
        if not await ops.cherry_pick(patch.repo, sha):
            logger.info(f"could not cherry-pick '{sha}' onto {patch.repo}")
            continue

        head = await ops.rev_parse(patch.repo, "HEAD")
        logger.info(f"cherry-picked '{sha}' onto {patch.repo}, result is '{head}'")
        modified_branch.record_applied(patch, head)
        return (ItemResult.APPLIED, f"'{sha}' applied as '{head}'")

    msg = f"no candidate of patch '{patch.repo}' applies to {repo} {branch}"
    logger.warning(msg)
    return (ItemResult.NEEDS_RETRY, msg)


async def _try_restore(ops: MaintenanceOps, repos: list[str]) -> None:
    for repo in repos:
        try:
            await ops.checkout(repo, ops.mainline)
        except Exception as e:
            logger.error(f"unable to restore '{repo}' to mainline: {e}")


async def _apply_branch(
    state: MaintenanceState,
    ops: MaintenanceOps,
    modified_branch: ModifiedBranch,
    report: ApplyReport,
    touched: list[str],
    save: SaveStateCallback,
) -> None:
    repo, branch = modified_branch.key

    # applied patches are removed from the branch while iterating
    for patch in list(modified_branch.needed_patches):
        if not patch.shas:
            logger.info(f"patch '{patch.repo}' has no candidate shas, skip")
            report.add(
                repo,
                branch,
                patch.repo,
                ItemResult.NEEDS_RETRY,
                detail="no candidate shas",
            )
            continue

        try:
            result, detail = await _apply_patch(ops, modified_branch, patch, touched)
        except Exception as e:
            msg = f"error applying patch '{patch.repo}' to {repo} {branch}: {e}"
            logger.error(msg)
            report.add(repo, branch, patch.repo, ItemResult.FATAL, detail=str(e))
            save(state)
            raise ApplyPatchesError(
                repo, branch, patch.repo, msg=str(e), report=report
            ) from e

        report.add(repo, branch, patch.repo, result, detail=detail)
        save(state)


async def apply_patches(
    state: MaintenanceState,
    ops: MaintenanceOps,
    *,
    save: SaveStateCallback = no_save,
) -> ApplyReport:
    """
    Cherry-pick each modified branch's needed patches onto its dependencies.

    A patch's candidate shas are alternatives: they are tried in order, and
    the first one applying cleanly is the one recorded. Patches with no
    applicable candidate remain needed. Any other failure aborts the whole
    operation, once the state has been saved and the checked out repositories
    have been returned to mainline.
    """
    report = ApplyReport()

    for modified_branch in state.modified_branches:
        if not modified_branch.needed_patches:
            continue

        repo, branch = modified_branch.key
        touched: list[str] = []

        try:
            await _apply_branch(state, ops, modified_branch, report, touched, save)
        except Exception:
            await _try_restore(ops, touched)
            raise

        for touched_repo in touched:
            try:
                await ops.checkout(touched_repo, ops.mainline)
            except Exception as e:
                msg = f"unable to restore '{touched_repo}' to mainline: {e}"
                logger.error(msg)
                save(state)
                raise BatchError(
                    repo,
                    branch,
                    f"restore '{touched_repo}'",
                    msg=str(e),
                    report=report,
                ) from e

    save(state)
    logger.info(f"{report.applied} patches applied")
    return report
