# mrt - errors - external operations
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

from mrt.errors import MRTError


class OpsError(MRTError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("operation error")


class CommandError(OpsError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("command error")


class GitError(OpsError):
    retcode: int

    def __init__(self, retcode: int, msg: str) -> None:
        super().__init__(msg)
        self.retcode = retcode

    @override
    def __str__(self) -> str:
        return f"git error: {self.msg} (retcode: {self.retcode})"


class BuildError(OpsError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("build error")


class DeployError(OpsError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("deploy error")


class BuildServerError(DeployError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("build server error")


class DependencyDescriptorError(OpsError):
    @override
    def __str__(self) -> str:
        return self.with_maybe_msg("dependency descriptor error")
