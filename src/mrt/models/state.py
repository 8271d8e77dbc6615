# mrt - models - maintenance state
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

from collections.abc import Awaitable, Callable
from typing import Annotated, ClassVar

import pydantic

from mrt.errors.state import (
    MalformedStateError,
    NoSuchModifiedBranchError,
    NoSuchPatchError,
    NoSuchPatchSHAError,
    NoSuchReleaseBranchError,
    PatchExistsError,
    PatchInUseError,
    PatchNotNeededError,
)
from mrt.models import logger as parent_logger
from mrt.models.branch import ModifiedBranch, ReleaseBranch
from mrt.models.patch import SHA, Patch
from mrt.models.version import MalformedVersionError, SimVersion
from mrt.ops.base import MaintenanceOps

logger = parent_logger.getChild("state")


ReleaseBranchPredicate = Callable[[ReleaseBranch], Awaitable[bool]]


class PatchDoc(pydantic.BaseModel):
    repo: str
    message: str
    shas: list[SHA] = pydantic.Field(default=[])


class ModifiedBranchDoc(pydantic.BaseModel):
    model_config: ClassVar[pydantic.ConfigDict] = pydantic.ConfigDict(
        validate_by_alias=True,
        validate_by_name=True,
        serialize_by_alias=True,
    )

    repo: str
    branch: str
    brands: list[str] = pydantic.Field(default=[])
    needed_patches: Annotated[
        list[str], pydantic.Field(alias="neededPatches", default=[])
    ]
    changed_dependencies: Annotated[
        dict[str, SHA], pydantic.Field(alias="changedDependencies", default={})
    ]
    messages: list[str] = pydantic.Field(default=[])
    deployed_version: Annotated[
        str | None, pydantic.Field(alias="deployedVersion", default=None)
    ]


class MaintenanceDoc(pydantic.BaseModel):
    """Persisted form of the maintenance state."""

    model_config: ClassVar[pydantic.ConfigDict] = pydantic.ConfigDict(
        validate_by_alias=True,
        validate_by_name=True,
        serialize_by_alias=True,
    )

    patches: list[PatchDoc] = pydantic.Field(default=[])
    modified_branches: Annotated[
        list[ModifiedBranchDoc], pydantic.Field(alias="modifiedBranches", default=[])
    ]


def patch_to_doc(patch: Patch) -> PatchDoc:
    return PatchDoc(repo=patch.repo, message=patch.message, shas=list(patch.shas))


def patch_from_doc(doc: PatchDoc) -> Patch:
    return Patch(repo=doc.repo, message=doc.message, shas=list(doc.shas))


def modified_branch_to_doc(modified_branch: ModifiedBranch) -> ModifiedBranchDoc:
    return ModifiedBranchDoc(
        repo=modified_branch.repo,
        branch=modified_branch.branch,
        brands=list(modified_branch.brands),
        needed_patches=[p.repo for p in modified_branch.needed_patches],
        changed_dependencies=dict(modified_branch.changed_dependencies),
        messages=list(modified_branch.messages),
        deployed_version=(
            str(modified_branch.deployed_version)
            if modified_branch.deployed_version
            else None
        ),
    )


def modified_branch_from_doc(
    doc: ModifiedBranchDoc, patches: dict[str, Patch]
) -> ModifiedBranch:
    """
    Build a modified branch from its persisted form.

    Needed patches are linked to the provided `patches` by repository, so that
    all branches needing a patch share the same `Patch` instance.
    """
    needed: list[Patch] = []
    for patch_repo in doc.needed_patches:
        patch = patches.get(patch_repo)
        if not patch:
            msg = f"{doc.repo} {doc.branch} needs unknown patch '{patch_repo}'"
            logger.error(msg)
            raise MalformedStateError(msg=msg)
        if any(p is patch for p in needed):
            logger.warning(
                f"duplicate needed patch '{patch_repo}' on {doc.repo} {doc.branch}"
            )
            continue
        needed.append(patch)

    deployed_version: SimVersion | None = None
    if doc.deployed_version:
        try:
            deployed_version = SimVersion.parse(doc.deployed_version)
        except MalformedVersionError as e:
            msg = f"{doc.repo} {doc.branch}: {e}"
            logger.error(msg)
            raise MalformedStateError(msg=msg) from e

    return ModifiedBranch(
        ReleaseBranch(repo=doc.repo, branch=doc.branch, brands=list(doc.brands)),
        needed_patches=needed,
        changed_dependencies=dict(doc.changed_dependencies),
        messages=list(doc.messages),
        deployed_version=deployed_version,
    )


class MaintenanceState:
    """
    The full state of a maintenance campaign.

    Holds every tracked patch, keyed by the repository it applies to, and
    every release branch with outstanding maintenance work. Every patch
    needed by a modified branch is one of `patches`.
    """

    patches: dict[str, Patch]
    modified_branches: list[ModifiedBranch]

    def __init__(
        self,
        patches: list[Patch] | None = None,
        modified_branches: list[ModifiedBranch] | None = None,
    ) -> None:
        self.patches = {p.repo: p for p in (patches or [])}
        self.modified_branches = modified_branches or []

    def to_document(self) -> MaintenanceDoc:
        return MaintenanceDoc(
            patches=[patch_to_doc(p) for p in self.patches.values()],
            modified_branches=[
                modified_branch_to_doc(b) for b in self.modified_branches
            ],
        )

    @classmethod
    def from_document(cls, doc: MaintenanceDoc) -> MaintenanceState:
        patches: dict[str, Patch] = {}
        for patch_doc in doc.patches:
            if patch_doc.repo in patches:
                msg = f"multiple patches for repo '{patch_doc.repo}'"
                logger.error(msg)
                raise MalformedStateError(msg=msg)
            patches[patch_doc.repo] = patch_from_doc(patch_doc)

        branches: list[ModifiedBranch] = []
        seen: set[tuple[str, str]] = set()
        for branch_doc in doc.modified_branches:
            branch = modified_branch_from_doc(branch_doc, patches)
            if branch.key in seen:
                msg = f"multiple modified branches for {branch.repo} {branch.branch}"
                logger.error(msg)
                raise MalformedStateError(msg=msg)
            seen.add(branch.key)
            branches.append(branch)

        return MaintenanceState(list(patches.values()), branches)

    def check_integrity(self) -> list[str]:
        """Check every needed patch is a tracked patch, returning violations."""
        violations: list[str] = []
        for branch in self.modified_branches:
            for patch in branch.needed_patches:
                if self.patches.get(patch.repo) is not patch:
                    violations.append(
                        f"{branch.repo} {branch.branch} needs untracked "
                        + f"patch '{patch.repo}'"
                    )
        return violations

    # patches
    #

    def find_patch(self, repo: str) -> Patch:
        patch = self.patches.get(repo)
        if not patch:
            raise NoSuchPatchError(repo)
        return patch

    def create_patch(self, repo: str, message: str) -> Patch:
        if repo in self.patches:
            raise PatchExistsError(repo)

        patch = Patch(repo=repo, message=message)
        self.patches[repo] = patch
        logger.info(f"created patch for '{repo}' with message: {message}")
        return patch

    def branches_needing(self, patch: Patch) -> list[ModifiedBranch]:
        return [b for b in self.modified_branches if b.needs_patch(patch)]

    def remove_patch(self, repo: str) -> None:
        patch = self.find_patch(repo)

        needed_by = self.branches_needing(patch)
        if needed_by:
            raise PatchInUseError(repo, [b.key for b in needed_by])

        del self.patches[repo]
        logger.info(f"removed patch for '{repo}'")

    def add_patch_sha(self, repo: str, sha: SHA) -> None:
        patch = self.find_patch(repo)
        patch.add_sha(sha)
        logger.info(f"added sha '{sha}' to patch '{repo}'")

    def remove_patch_sha(self, repo: str, sha: SHA) -> None:
        patch = self.find_patch(repo)
        if not patch.remove_sha(sha):
            raise NoSuchPatchSHAError(repo, sha)
        logger.info(f"removed sha '{sha}' from patch '{repo}'")

    # modified branches
    #

    def find_modified_branch(self, repo: str, branch: str) -> ModifiedBranch | None:
        for modified_branch in self.modified_branches:
            if modified_branch.key == (repo, branch):
                return modified_branch
        return None

    async def ensure_modified_branch(
        self,
        ops: MaintenanceOps,
        repo: str,
        branch: str,
        *,
        error_if_missing: bool = False,
    ) -> ModifiedBranch:
        """
        Obtain the tracked modified branch for `repo` and `branch`.

        If not yet tracked, and `error_if_missing` is not set, start tracking it
        for the matching maintained release branch.
        """
        modified_branch = self.find_modified_branch(repo, branch)
        if modified_branch:
            return modified_branch

        if error_if_missing:
            raise NoSuchModifiedBranchError(repo, branch)

        release_branch = next(
            (
                rb
                for rb in await ops.get_release_branches()
                if rb.key == (repo, branch)
            ),
            None,
        )
        if not release_branch:
            raise NoSuchReleaseBranchError(repo, branch)

        modified_branch = ModifiedBranch(release_branch)
        self.modified_branches.append(modified_branch)
        logger.debug(f"tracking modified branch {repo} {branch}")
        return modified_branch

    def try_removing_modified_branch(self, modified_branch: ModifiedBranch) -> bool:
        """Stop tracking `modified_branch` if there is nothing left to do on it."""
        if not modified_branch.is_unused:
            return False

        self.modified_branches = [
            b for b in self.modified_branches if b is not modified_branch
        ]
        logger.debug(
            f"no longer tracking {modified_branch.repo} {modified_branch.branch}"
        )
        return True

    # needed patches
    #

    async def add_needed_patch(
        self, ops: MaintenanceOps, repo: str, branch: str, patch_repo: str
    ) -> bool:
        """Mark a patch as needed by a branch, `False` if it already was."""
        patch = self.find_patch(patch_repo)
        modified_branch = await self.ensure_modified_branch(ops, repo, branch)
        if not modified_branch.add_needed_patch(patch):
            logger.info(f"patch '{patch_repo}' already needed by {repo} {branch}")
            return False

        logger.info(f"added patch '{patch_repo}' as needed for {repo} {branch}")
        return True

    async def add_needed_patches(
        self,
        ops: MaintenanceOps,
        patch_repo: str,
        predicate: ReleaseBranchPredicate,
    ) -> list[ModifiedBranch]:
        """
        Mark a patch as needed by every release branch matching `predicate`.

        Returns the branches the patch was newly added to.
        """
        patch = self.find_patch(patch_repo)
        added: list[ModifiedBranch] = []

        for release_branch in await ops.get_release_branches():
            if not await predicate(release_branch):
                logger.debug(
                    f"skipping {release_branch.repo} {release_branch.branch}"
                )
                continue

            modified_branch = await self.ensure_modified_branch(
                ops, release_branch.repo, release_branch.branch
            )
            if modified_branch.add_needed_patch(patch):
                logger.info(
                    f"added needed patch '{patch_repo}' to "
                    + f"{release_branch.repo} {release_branch.branch}"
                )
                added.append(modified_branch)
            else:
                logger.info(
                    f"patch '{patch_repo}' already included in "
                    + f"{release_branch.repo} {release_branch.branch}"
                )

        return added

    async def add_all_needed_patches(
        self, ops: MaintenanceOps, patch_repo: str
    ) -> list[ModifiedBranch]:
        async def _all(_: ReleaseBranch) -> bool:
            return True

        return await self.add_needed_patches(ops, patch_repo, _all)

    async def add_needed_patches_before(
        self, ops: MaintenanceOps, patch_repo: str, sha: SHA
    ) -> list[ModifiedBranch]:
        """Add a needed patch to release branches NOT including `sha` of the repo."""

        async def _missing(release_branch: ReleaseBranch) -> bool:
            return await release_branch.missing_sha(ops, patch_repo, sha)

        return await self.add_needed_patches(ops, patch_repo, _missing)

    async def add_needed_patches_after(
        self, ops: MaintenanceOps, patch_repo: str, sha: SHA
    ) -> list[ModifiedBranch]:
        """Add a needed patch to release branches including `sha` of the repo."""

        async def _includes(release_branch: ReleaseBranch) -> bool:
            return await release_branch.includes_sha(ops, patch_repo, sha)

        return await self.add_needed_patches(ops, patch_repo, _includes)

    def remove_needed_patch(self, repo: str, branch: str, patch_repo: str) -> None:
        patch = self.find_patch(patch_repo)
        modified_branch = self.find_modified_branch(repo, branch)
        if not modified_branch:
            raise NoSuchModifiedBranchError(repo, branch)

        if not modified_branch.remove_needed_patch(patch):
            raise PatchNotNeededError(patch_repo, repo, branch)

        _ = self.try_removing_modified_branch(modified_branch)
        logger.info(f"removed patch '{patch_repo}' from {repo} {branch}")

    async def remove_needed_patches(
        self, patch_repo: str, predicate: ReleaseBranchPredicate
    ) -> list[tuple[str, str]]:
        """
        Unmark a patch as needed from every tracked branch matching `predicate`.

        Returns the (repo, branch) pairs the patch was removed from.
        """
        patch = self.find_patch(patch_repo)
        removed: list[tuple[str, str]] = []

        # tracked branches may be dropped while iterating
        for modified_branch in list(self.modified_branches):
            if not modified_branch.needs_patch(patch):
                continue

            if not await predicate(modified_branch.release_branch):
                logger.debug(
                    f"skipping {modified_branch.repo} {modified_branch.branch}"
                )
                continue

            _ = modified_branch.remove_needed_patch(patch)
            _ = self.try_removing_modified_branch(modified_branch)
            removed.append(modified_branch.key)
            logger.info(
                f"removed needed patch '{patch_repo}' from "
                + f"{modified_branch.repo} {modified_branch.branch}"
            )

        return removed

    async def remove_needed_patches_before(
        self, ops: MaintenanceOps, patch_repo: str, sha: SHA
    ) -> list[tuple[str, str]]:
        async def _missing(release_branch: ReleaseBranch) -> bool:
            return await release_branch.missing_sha(ops, patch_repo, sha)

        return await self.remove_needed_patches(patch_repo, _missing)

    async def remove_needed_patches_after(
        self, ops: MaintenanceOps, patch_repo: str, sha: SHA
    ) -> list[tuple[str, str]]:
        async def _includes(release_branch: ReleaseBranch) -> bool:
            return await release_branch.includes_sha(ops, patch_repo, sha)

        return await self.remove_needed_patches(patch_repo, _includes)
