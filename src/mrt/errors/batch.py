# mrt - errors - batch operations
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

from mrt.errors import MRTError

if TYPE_CHECKING:
    from mrt.models.report import BatchReport


class BatchError(MRTError):
    """
    A fatal failure while processing a batch over modified branches.

    Raised only once the maintenance state has been persisted; the original
    failure is chained as the cause.
    """

    repo: str
    branch: str
    operation: str
    report: BatchReport | None

    def __init__(
        self,
        repo: str,
        branch: str,
        operation: str,
        *,
        msg: str | None = None,
        report: BatchReport | None = None,
    ) -> None:
        super().__init__(msg)
        self.repo = repo
        self.branch = branch
        self.operation = operation
        self.report = report

    @property
    def what(self) -> str:
        return f"{self.operation} on '{self.repo}' branch '{self.branch}'"

    @override
    def __str__(self) -> str:
        return self.with_maybe_msg(f"failure during {self.what}")


class ApplyPatchesError(BatchError):
    patch_repo: str

    def __init__(
        self,
        repo: str,
        branch: str,
        patch_repo: str,
        *,
        msg: str | None = None,
        report: BatchReport | None = None,
    ) -> None:
        super().__init__(
            repo, branch, f"apply patch '{patch_repo}'", msg=msg, report=report
        )
        self.patch_repo = patch_repo


class UpdateDependenciesError(BatchError):
    pass


class DeployBranchError(BatchError):
    def __init__(
        self,
        repo: str,
        branch: str,
        kind: str,
        *,
        msg: str | None = None,
        report: BatchReport | None = None,
    ) -> None:
        super().__init__(repo, branch, f"{kind} deploy", msg=msg, report=report)
