# mrt - ops - collaborator contract
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

import abc

from mrt.models.branch import ReleaseBranch
from mrt.models.patch import SHA
from mrt.models.version import SimVersion


class MaintenanceOps(abc.ABC):
    """
    External operations a maintenance campaign relies on.

    Version control, building and deploying are consumed as atomic operations.
    Every operation either succeeds or raises an `OpsError`, with the
    exception of `cherry_pick()`, whose conflicts are an expected outcome and
    reported through its return value.

    Each repository has a single working copy. Callers must restore it to its
    mainline once done with it, see `checkout_mainline()`.
    """

    @property
    @abc.abstractmethod
    def mainline(self) -> str:
        pass

    @abc.abstractmethod
    async def get_release_branches(self) -> list[ReleaseBranch]:
        """Obtain all currently maintained release branches."""
        pass

    @abc.abstractmethod
    async def checkout(self, repo: str, ref: str) -> None:
        pass

    @abc.abstractmethod
    async def checkout_target(self, repo: str, branch: str, *, refresh: bool) -> None:
        """
        Check out `branch` of `repo`, and its dependencies at their declared commits.

        If `refresh` is set, refresh the repository's package dependencies.
        """
        pass

    @abc.abstractmethod
    async def checkout_mainline(self, repo: str, *, refresh: bool = False) -> None:
        pass

    @abc.abstractmethod
    async def pull(self, repo: str) -> None:
        pass

    @abc.abstractmethod
    async def cherry_pick(self, repo: str, sha: SHA) -> bool:
        """Cherry-pick `sha` onto the current HEAD of `repo`, `False` on conflict."""
        pass

    @abc.abstractmethod
    async def merge(self, repo: str, sha: SHA) -> None:
        """Fast-forward the checked out branch of `repo` to `sha`."""
        pass

    @abc.abstractmethod
    async def create_branch(self, repo: str, name: str) -> None:
        pass

    @abc.abstractmethod
    async def push(self, repo: str, name: str) -> None:
        pass

    @abc.abstractmethod
    async def rev_parse(self, repo: str, ref: str) -> SHA:
        pass

    @abc.abstractmethod
    async def is_ancestor(self, repo: str, ancestor: SHA, commit: SHA) -> bool:
        pass

    @abc.abstractmethod
    async def get_dependencies(self, repo: str) -> dict[str, SHA]:
        """Read the dependency descriptor of the checked out `repo`."""
        pass

    @abc.abstractmethod
    async def get_branch_dependencies(self, repo: str, branch: str) -> dict[str, SHA]:
        """Read the dependency descriptor at the HEAD of `branch` of `repo`."""
        pass

    @abc.abstractmethod
    async def get_branch_head(self, repo: str, branch: str) -> SHA:
        pass

    @abc.abstractmethod
    async def get_branches(self, repo: str) -> set[str]:
        """Obtain the names of the upstream branches of `repo`."""
        pass

    @abc.abstractmethod
    async def refresh(self, repo: str) -> None:
        """Refresh the package dependencies of the checked out `repo`."""
        pass

    @abc.abstractmethod
    async def build(self, repo: str, brands: list[str]) -> None:
        pass

    @abc.abstractmethod
    async def write_dependency_descriptor(
        self, repo: str, brands: list[str], message: str, branch: str
    ) -> None:
        """Commit and push the built dependency descriptor of `repo` on `branch`."""
        pass

    @abc.abstractmethod
    async def deploy(
        self,
        repo: str,
        branch: str,
        brands: list[str],
        message: str,
        *,
        release_candidate: bool,
    ) -> SimVersion:
        """Deploy `branch` of `repo`, returning the deployed version."""
        pass
