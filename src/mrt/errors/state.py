# mrt - errors - maintenance state
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

import errno
from pathlib import Path
from typing import override

from mrt.errors import MRTError


class StateError(MRTError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("state error")


class MalformedStateError(StateError):
    path: Path | None

    def __init__(self, path: Path | None = None, *, msg: str | None = None) -> None:
        super().__init__(msg, ec=errno.EINVAL)
        self.path = path

    @override
    def __str__(self) -> str:
        where = f" at '{self.path}'" if self.path else ""
        return self.with_maybe_msg(f"malformed maintenance state{where}")


class NoSuchPatchError(StateError):
    repo: str

    def __init__(self, repo: str) -> None:
        super().__init__(f"repo '{repo}'", ec=errno.ENOENT)
        self.repo = repo

    @override
    def __str__(self) -> str:
        return f"patch not found: {self.msg}"


class PatchExistsError(StateError):
    repo: str

    def __init__(self, repo: str) -> None:
        super().__init__(f"repo '{repo}'", ec=errno.EEXIST)
        self.repo = repo

    @override
    def __str__(self) -> str:
        return f"patch already exists: {self.msg}"


class PatchInUseError(StateError):
    repo: str
    branches: list[tuple[str, str]]

    def __init__(self, repo: str, branches: list[tuple[str, str]]) -> None:
        super().__init__(f"repo '{repo}'", ec=errno.EBUSY)
        self.repo = repo
        self.branches = branches

    @override
    def __str__(self) -> str:
        needed_by = ", ".join(f"{r} {b}" for r, b in self.branches)
        return f"patch {self.msg} is still needed by: {needed_by}"


class NoSuchPatchSHAError(StateError):
    repo: str
    sha: str

    def __init__(self, repo: str, sha: str) -> None:
        super().__init__(f"sha '{sha}' on patch '{repo}'", ec=errno.ENOENT)
        self.repo = repo
        self.sha = sha

    @override
    def __str__(self) -> str:
        return f"sha not found: {self.msg}"


class NoSuchModifiedBranchError(StateError):
    repo: str
    branch: str

    def __init__(self, repo: str, branch: str) -> None:
        super().__init__(f"repo '{repo}' branch '{branch}'", ec=errno.ENOENT)
        self.repo = repo
        self.branch = branch

    @override
    def __str__(self) -> str:
        return f"no tracked modified branch: {self.msg}"


class NoSuchReleaseBranchError(StateError):
    repo: str
    branch: str

    def __init__(self, repo: str, branch: str) -> None:
        super().__init__(f"repo '{repo}' branch '{branch}'", ec=errno.ENOENT)
        self.repo = repo
        self.branch = branch

    @override
    def __str__(self) -> str:
        return f"no such release branch: {self.msg}"


class PatchNotNeededError(StateError):
    def __init__(self, patch_repo: str, repo: str, branch: str) -> None:
        super().__init__(
            f"patch '{patch_repo}' on repo '{repo}' branch '{branch}'",
            ec=errno.ENOENT,
        )

    @override
    def __str__(self) -> str:
        return f"patch not needed: {self.msg}"
