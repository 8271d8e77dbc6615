# mrt - tests - status reports
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

import pytest
from rich.console import Console

from mrt.config import LinksConfig
from mrt.errors.state import NoSuchModifiedBranchError
from mrt.models.branch import ModifiedBranch, ReleaseBranch
from mrt.models.state import MaintenanceState
from mrt.models.version import SimVersion
from mrt.status import (
    check_branch_status,
    checkout_branch,
    get_deployed_links,
    render_state,
)
from tests.fakes import FakeOps, sha_of


def _deployed(repo: str, branch: str, version: str) -> ModifiedBranch:
    return ModifiedBranch(
        ReleaseBranch(repo=repo, branch=branch),
        deployed_version=SimVersion.parse(version),
    )


def test_deployed_links() -> None:
    state = MaintenanceState(
        modified_branches=[
            _deployed("sim-a", "1.2", "1.2.3"),
            _deployed("sim-b", "1.0", "1.0.4-rc.2"),
            ModifiedBranch(ReleaseBranch(repo="sim-c", branch="2.1")),
        ]
    )
    links = LinksConfig(
        production="https://prod/{repo}/{version}",
        release_candidate="https://dev/{repo}/{version}",
    )

    production, release_candidates = get_deployed_links(state, links)
    assert production == ["https://prod/sim-a/1.2.3"]
    assert release_candidates == ["https://dev/sim-b/1.0.4-rc.2"]


def test_check_branch_status() -> None:
    ops = FakeOps(
        [
            ReleaseBranch(repo="sim-a", branch="1.2", dependencies={}),
            ReleaseBranch(
                repo="sim-b",
                branch="1.0",
                dependencies={"sim-b": sha_of("2"), "joist": sha_of("a")},
            ),
            ReleaseBranch(
                repo="sim-c",
                branch="2.1",
                dependencies={"sim-c": sha_of("3"), "joist": sha_of("b")},
            ),
        ]
    )
    ops.branch_heads[("sim-b", "1.0")] = sha_of("9")
    ops.branch_heads[("sim-c", "2.1")] = sha_of("3")
    ops.branches["joist"] = {"main", "sim-c-2.1"}
    ops.branch_heads[("joist", "sim-c-2.1")] = sha_of("c")

    statuses = asyncio.run(check_branch_status(ops))

    sim_a, sim_b, sim_c = statuses
    assert sim_a.findings == ["missing or empty dependency descriptor"]
    assert len(sim_b.findings) == 1
    assert "branch HEAD" in sim_b.findings[0]
    assert len(sim_c.findings) == 1
    assert "sim-c-2.1" in sim_c.findings[0]

    ops.ancestors.add(("joist", sha_of("b"), sha_of("c")))
    statuses = asyncio.run(check_branch_status(ops))
    assert statuses[2].is_ok


def test_checkout_branch() -> None:
    ops = FakeOps([ReleaseBranch(repo="sim-a", branch="1.2")])
    state = MaintenanceState(
        modified_branches=[
            ModifiedBranch(
                ReleaseBranch(repo="sim-a", branch="1.2"),
                changed_dependencies={"joist": sha_of("d")},
            )
        ]
    )

    _ = asyncio.run(checkout_branch(state, ops, "sim-a", "1.2"))

    assert ops.checked_out == {"sim-a": "1.2", "joist": sha_of("d")}


def test_checkout_untracked_branch() -> None:
    ops = FakeOps([ReleaseBranch(repo="sim-a", branch="1.2")])
    with pytest.raises(NoSuchModifiedBranchError):
        _ = asyncio.run(checkout_branch(MaintenanceState(), ops, "sim-a", "1.2"))
    assert ops.checked_out == {}


def test_render_state() -> None:
    state = MaintenanceState()
    patch = state.create_patch("joist", "fix crash")
    patch.add_sha(sha_of("a"))
    state.modified_branches.append(
        ModifiedBranch(
            ReleaseBranch(repo="sim-a", branch="1.2", brands=["phet"]),
            needed_patches=[patch],
        )
    )

    console = Console(record=True, width=200)
    console.print(render_state(state))
    out = console.export_text()

    assert "sim-a 1.2" in out
    assert "fix crash" in out
    assert sha_of("a") in out
