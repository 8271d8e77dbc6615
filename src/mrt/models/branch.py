# mrt - models - release and modified branches
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

from __future__ import annotations

from typing import TYPE_CHECKING, override

import pydantic

from mrt.models import logger as parent_logger
from mrt.models.patch import SHA, Patch
from mrt.models.version import SimVersion

if TYPE_CHECKING:
    from mrt.ops.base import MaintenanceOps

logger = parent_logger.getChild("branch")


class BranchStatus(pydantic.BaseModel):
    repo: str
    branch: str
    findings: list[str] = pydantic.Field(default=[])

    @property
    def is_ok(self) -> bool:
        return not self.findings


class ReleaseBranch(pydantic.BaseModel):
    """
    A deployed release branch of a repository.

    `dependencies` maps each dependency repository to the commit declared in
    the branch's dependency descriptor at its HEAD. It is only populated when
    the release branch is obtained from the live repositories; branches
    restored from the persisted state carry `None` and look it up on demand.
    """

    repo: str
    branch: str
    brands: list[str] = pydantic.Field(default=[])
    dependencies: dict[str, SHA] | None = pydantic.Field(default=None)

    @property
    def key(self) -> tuple[str, str]:
        return (self.repo, self.branch)

    async def get_dependencies(self, ops: MaintenanceOps) -> dict[str, SHA]:
        if self.dependencies is None:
            self.dependencies = await ops.get_branch_dependencies(
                self.repo, self.branch
            )
        return self.dependencies

    async def includes_sha(self, ops: MaintenanceOps, repo: str, sha: SHA) -> bool:
        """Check whether `sha` is an ancestor of the commit `repo` is pinned to."""
        dependencies = await self.get_dependencies(ops)
        if repo not in dependencies:
            logger.debug(f"{self.repo} {self.branch} does not depend on '{repo}'")
            return False

        return await ops.is_ancestor(repo, sha, dependencies[repo])

    async def missing_sha(self, ops: MaintenanceOps, repo: str, sha: SHA) -> bool:
        """Check whether `repo` is a dependency pinned to a commit lacking `sha`."""
        dependencies = await self.get_dependencies(ops)
        if repo not in dependencies:
            return False

        return not await ops.is_ancestor(repo, sha, dependencies[repo])

    async def get_status(self, ops: MaintenanceOps) -> BranchStatus:
        """Run consistency checks on this release branch."""
        status = BranchStatus(repo=self.repo, branch=self.branch)
        findings = status.findings

        dependencies = await self.get_dependencies(ops)
        if not dependencies:
            findings.append("missing or empty dependency descriptor")
            return status

        head = await ops.get_branch_head(self.repo, self.branch)
        own = dependencies.get(self.repo)
        if own is None:
            findings.append(f"dependency descriptor does not list '{self.repo}'")
        elif own != head:
            findings.append(
                f"dependency descriptor lists {self.repo} at '{own}', "
                + f"branch HEAD is '{head}'"
            )

        dependency_branch = f"{self.repo}-{self.branch}"
        for dep_repo, dep_sha in sorted(dependencies.items()):
            if dep_repo == self.repo:
                continue

            branches = await ops.get_branches(dep_repo)
            if dependency_branch not in branches:
                continue

            dep_head = await ops.get_branch_head(dep_repo, dependency_branch)
            if not await ops.is_ancestor(dep_repo, dep_sha, dep_head):
                findings.append(
                    f"{dep_repo} at '{dep_sha}' is not included in "
                    + f"'{dependency_branch}' ('{dep_head}')"
                )

        return status


class ModifiedBranch:
    """
    A release branch under maintenance.

    Tracks the patches the branch still needs, the dependency repositories
    that have been patched locally but not yet published to the branch's
    dependency branches, and the change log messages for its next deploy.
    """

    release_branch: ReleaseBranch
    needed_patches: list[Patch]
    changed_dependencies: dict[str, SHA]
    messages: list[str]
    deployed_version: SimVersion | None

    def __init__(
        self,
        release_branch: ReleaseBranch,
        *,
        needed_patches: list[Patch] | None = None,
        changed_dependencies: dict[str, SHA] | None = None,
        messages: list[str] | None = None,
        deployed_version: SimVersion | None = None,
    ) -> None:
        self.release_branch = release_branch
        self.needed_patches = needed_patches if needed_patches is not None else []
        self.changed_dependencies = (
            changed_dependencies if changed_dependencies is not None else {}
        )
        self.messages = messages if messages is not None else []
        self.deployed_version = deployed_version

    @property
    def repo(self) -> str:
        return self.release_branch.repo

    @property
    def branch(self) -> str:
        return self.release_branch.branch

    @property
    def brands(self) -> list[str]:
        return self.release_branch.brands

    @property
    def key(self) -> tuple[str, str]:
        return self.release_branch.key

    @property
    def dependency_branch(self) -> str:
        """Name of the per-release branch holding patched dependency commits."""
        return f"{self.repo}-{self.branch}"

    @property
    def is_unused(self) -> bool:
        return not self.needed_patches and not self.changed_dependencies

    @property
    def _is_deployable(self) -> bool:
        return (
            not self.needed_patches
            and not self.changed_dependencies
            and len(self.messages) > 0
        )

    @property
    def is_ready_for_release_candidate(self) -> bool:
        return self._is_deployable and self.deployed_version is None

    @property
    def is_ready_for_production(self) -> bool:
        return (
            self._is_deployable
            and self.deployed_version is not None
            and self.deployed_version.is_release_candidate
        )

    def needs_patch(self, patch: Patch) -> bool:
        return any(p is patch for p in self.needed_patches)

    def add_needed_patch(self, patch: Patch) -> bool:
        """Mark `patch` as needed, returning `False` if it already was."""
        if self.needs_patch(patch):
            return False
        self.needed_patches.append(patch)
        return True

    def remove_needed_patch(self, patch: Patch) -> bool:
        for idx, p in enumerate(self.needed_patches):
            if p is patch:
                del self.needed_patches[idx]
                return True
        return False

    def record_applied(self, patch: Patch, sha: SHA) -> None:
        """Record a successful cherry-pick of `patch`, resulting in `sha`."""
        self.changed_dependencies[patch.repo] = sha
        _ = self.remove_needed_patch(patch)

        # several patches may address the same issue
        if patch.message not in self.messages:
            self.messages.append(patch.message)

    def record_propagated(self, dependency: str) -> None:
        del self.changed_dependencies[dependency]
        self.deployed_version = None

    @override
    def __repr__(self) -> str:
        return f"ModifiedBranch({self.repo!r}, {self.branch!r})"
