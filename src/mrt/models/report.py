# mrt - models - batch reports
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

import enum

import pydantic


class ItemResult(enum.StrEnum):
    APPLIED = "applied"
    NEEDS_RETRY = "needs-retry"
    FATAL = "fatal"


class ReportEntry(pydantic.BaseModel):
    repo: str
    branch: str
    item: str
    result: ItemResult
    detail: str | None = None


class BatchReport(pydantic.BaseModel):
    """Outcome of each item processed by a batch, in processing order."""

    entries: list[ReportEntry] = pydantic.Field(default=[])

    def add(
        self,
        repo: str,
        branch: str,
        item: str,
        result: ItemResult,
        *,
        detail: str | None = None,
    ) -> None:
        self.entries.append(
            ReportEntry(
                repo=repo, branch=branch, item=item, result=result, detail=detail
            )
        )

    def count(self, result: ItemResult) -> int:
        return len([e for e in self.entries if e.result == result])

    @property
    def applied(self) -> int:
        return self.count(ItemResult.APPLIED)

    @property
    def needs_retry(self) -> int:
        return self.count(ItemResult.NEEDS_RETRY)

    @property
    def failed(self) -> bool:
        return self.count(ItemResult.FATAL) > 0


class ApplyReport(BatchReport):
    pass


class UpdateReport(BatchReport):
    pass


class DeployReport(BatchReport):
    release_candidate: bool
