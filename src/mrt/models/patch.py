# mrt - models - patch
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

from typing import override

import pydantic

SHA = str


class Patch(pydantic.BaseModel):
    """
    A fix to be cherry-picked onto the dependencies of release branches.

    A patch is identified by the repository it modifies; at most one patch per
    repository is tracked at a time. `shas` holds alternative candidate
    commits for the same logical change, tried in order until one applies.
    """

    repo: str
    message: str
    shas: list[SHA] = pydantic.Field(default=[])

    # identity semantics, patches are shared between modified branches
    @override
    def __eq__(self, other: object) -> bool:
        return self is other

    @override
    def __hash__(self) -> int:
        return id(self)

    def add_sha(self, sha: SHA) -> None:
        self.shas.append(sha)

    def remove_sha(self, sha: SHA) -> bool:
        try:
            self.shas.remove(sha)
        except ValueError:
            return False
        return True
