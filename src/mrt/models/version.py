# mrt - models - deployed versions
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

import re
from typing import cast, override

import pydantic

from mrt.errors import MRTError

RC_TEST_TYPE = "rc"


class MalformedVersionError(MRTError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("malformed version")


_version_re = re.compile(
    r"""
    ^
    (?P<major>\d+)
    \.(?P<minor>\d+)
    \.(?P<maintenance>\d+)
    (?:-(?P<test_type>[a-z]+)\.(?P<test_number>\d+))?   # optional test suffix
    $
    """,
    re.VERBOSE,
)


class SimVersion(pydantic.BaseModel):
    """
    A deployed version of a release branch.

    Written as 'MAJOR.MINOR.MAINTENANCE', with an optional test suffix
    ('-rc.2'). A version without a test suffix is a production version.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    major: int
    minor: int
    maintenance: int
    test_type: str | None = None
    test_number: int | None = None

    @classmethod
    def parse(cls, value: str) -> SimVersion:
        m = _version_re.match(value.strip())
        if not m:
            raise MalformedVersionError(f"'{value}'")

        test_number = cast(str | None, m.group("test_number"))
        return SimVersion(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            maintenance=int(m.group("maintenance")),
            test_type=cast(str | None, m.group("test_type")),
            test_number=int(test_number) if test_number is not None else None,
        )

    @property
    def is_release_candidate(self) -> bool:
        return self.test_type == RC_TEST_TYPE

    @property
    def is_production(self) -> bool:
        return self.test_type is None

    @property
    def branch(self) -> str:
        return f"{self.major}.{self.minor}"

    def next_release_candidate(self) -> SimVersion:
        """Obtain the release candidate version following this one."""
        if self.is_release_candidate:
            assert self.test_number is not None
            return self.model_copy(update={"test_number": self.test_number + 1})

        return SimVersion(
            major=self.major,
            minor=self.minor,
            maintenance=self.maintenance + 1,
            test_type=RC_TEST_TYPE,
            test_number=1,
        )

    def production(self) -> SimVersion:
        """Obtain the production version this version would be released as."""
        return SimVersion(
            major=self.major, minor=self.minor, maintenance=self.maintenance
        )

    @override
    def __str__(self) -> str:
        res = f"{self.major}.{self.minor}.{self.maintenance}"
        if self.test_type is not None:
            res += f"-{self.test_type}.{self.test_number}"
        return res
