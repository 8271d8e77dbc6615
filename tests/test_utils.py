# mrt - tests - command helpers
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

import asyncio
from pathlib import Path

import pytest

from mrt.errors.ops import CommandError
from mrt.utils import async_run_cmd, run_checked


def test_run_checked(tmp_path: Path) -> None:
    out = asyncio.run(run_checked(["sh", "-c", "pwd -P; echo done"], cwd=tmp_path))
    assert out.splitlines() == [str(tmp_path.resolve()), "done"]


def test_run_checked_failure() -> None:
    with pytest.raises(CommandError) as exc:
        _ = asyncio.run(run_checked(["sh", "-c", "echo oops >&2; exit 3"]))
    assert "retcode 3" in str(exc.value)
    assert "oops" in str(exc.value)


def test_run_missing_command() -> None:
    with pytest.raises(CommandError):
        _ = asyncio.run(async_run_cmd(["mrt-no-such-command"]))


def test_run_collects_output() -> None:
    rc, stdout, stderr = asyncio.run(
        async_run_cmd(["sh", "-c", "echo a; echo b; echo c >&2; exit 1"])
    )
    assert rc == 1
    assert stdout.splitlines() == ["a", "b"]
    assert stderr.strip() == "c"
