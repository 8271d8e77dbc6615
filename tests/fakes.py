# mrt - tests - fake maintenance operations
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

from typing import override

from mrt.errors.ops import OpsError
from mrt.models.branch import ReleaseBranch
from mrt.models.patch import SHA
from mrt.models.version import SimVersion
from mrt.ops.base import MaintenanceOps


def sha_of(c: str) -> SHA:
    """Build a full-length sha out of a single hex character."""
    return c * 40


class FakeOps(MaintenanceOps):
    """
    In-memory operations.

    Cherry-picks succeed only for the shas in `applicable`, the resulting
    commit being the picked sha itself. Any operation named in `fail_on`
    raises the associated error. Every call is recorded in `calls`.
    """

    release_branches: list[ReleaseBranch]
    applicable: set[SHA]
    ancestors: set[tuple[str, SHA, SHA]]
    branches: dict[str, set[str]]
    branch_heads: dict[tuple[str, str], SHA]
    versions: dict[tuple[str, str], SimVersion]
    fail_on: dict[str, Exception]

    checked_out: dict[str, str]
    heads: dict[str, SHA]
    calls: list[tuple[str, ...]]

    def __init__(
        self,
        release_branches: list[ReleaseBranch] | None = None,
        *,
        applicable: set[SHA] | None = None,
    ) -> None:
        self.release_branches = release_branches or []
        self.applicable = applicable or set()
        self.ancestors = set()
        self.branches = {}
        self.branch_heads = {}
        self.versions = {}
        self.fail_on = {}
        self.checked_out = {}
        self.heads = {}
        self.calls = []

    def _call(self, op: str, *args: str) -> None:
        self.calls.append((op, *args))
        if op in self.fail_on:
            raise self.fail_on[op]

    def calls_to(self, op: str) -> list[tuple[str, ...]]:
        return [c[1:] for c in self.calls if c[0] == op]

    def _release_branch(self, repo: str, branch: str) -> ReleaseBranch:
        for rb in self.release_branches:
            if rb.key == (repo, branch):
                return rb
        raise OpsError(f"no release branch {repo} {branch}")

    @property
    @override
    def mainline(self) -> str:
        return "main"

    @override
    async def get_release_branches(self) -> list[ReleaseBranch]:
        self._call("get_release_branches")
        return self.release_branches

    @override
    async def checkout(self, repo: str, ref: str) -> None:
        self._call("checkout", repo, ref)
        self.checked_out[repo] = ref
        self.heads[repo] = self.branch_heads.get((repo, ref), ref)

    @override
    async def checkout_target(self, repo: str, branch: str, *, refresh: bool) -> None:
        self._call("checkout_target", repo, branch)
        self.checked_out[repo] = branch

    @override
    async def checkout_mainline(self, repo: str, *, refresh: bool = False) -> None:
        self._call("checkout_mainline", repo)
        self.checked_out[repo] = self.mainline

    @override
    async def pull(self, repo: str) -> None:
        self._call("pull", repo)

    @override
    async def cherry_pick(self, repo: str, sha: SHA) -> bool:
        self._call("cherry_pick", repo, sha)
        if sha not in self.applicable:
            return False
        self.heads[repo] = sha
        return True

    @override
    async def merge(self, repo: str, sha: SHA) -> None:
        self._call("merge", repo, sha)
        self.heads[repo] = sha
        self.branch_heads[(repo, self.checked_out[repo])] = sha

    @override
    async def create_branch(self, repo: str, name: str) -> None:
        self._call("create_branch", repo, name)
        self.branches.setdefault(repo, set()).add(name)
        self.branch_heads[(repo, name)] = self.heads[repo]
        self.checked_out[repo] = name

    @override
    async def push(self, repo: str, name: str) -> None:
        self._call("push", repo, name)

    @override
    async def rev_parse(self, repo: str, ref: str) -> SHA:
        self._call("rev_parse", repo, ref)
        if ref == "HEAD":
            return self.heads[repo]
        return self.branch_heads.get((repo, ref), ref)

    @override
    async def is_ancestor(self, repo: str, ancestor: SHA, commit: SHA) -> bool:
        self._call("is_ancestor", repo, ancestor, commit)
        return ancestor == commit or (repo, ancestor, commit) in self.ancestors

    @override
    async def get_dependencies(self, repo: str) -> dict[str, SHA]:
        self._call("get_dependencies", repo)
        return await self.get_branch_dependencies(repo, self.checked_out[repo])

    @override
    async def get_branch_dependencies(self, repo: str, branch: str) -> dict[str, SHA]:
        self._call("get_branch_dependencies", repo, branch)
        return dict(self._release_branch(repo, branch).dependencies or {})

    @override
    async def get_branch_head(self, repo: str, branch: str) -> SHA:
        self._call("get_branch_head", repo, branch)
        return self.branch_heads[(repo, branch)]

    @override
    async def get_branches(self, repo: str) -> set[str]:
        self._call("get_branches", repo)
        return set(self.branches.get(repo, set()))

    @override
    async def refresh(self, repo: str) -> None:
        self._call("refresh", repo)

    @override
    async def build(self, repo: str, brands: list[str]) -> None:
        self._call("build", repo, ",".join(brands))

    @override
    async def write_dependency_descriptor(
        self, repo: str, brands: list[str], message: str, branch: str
    ) -> None:
        self._call("write_dependency_descriptor", repo, message, branch)

    @override
    async def deploy(
        self,
        repo: str,
        branch: str,
        brands: list[str],
        message: str,
        *,
        release_candidate: bool,
    ) -> SimVersion:
        self._call("deploy", repo, branch, message)

        current = self.versions.get((repo, branch), SimVersion.parse(f"{branch}.0"))
        if release_candidate:
            version = current.next_release_candidate()
        else:
            version = current.production()
        self.versions[(repo, branch)] = version
        return version
