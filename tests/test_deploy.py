# mrt - tests - deploying branches
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

from mrt.deploy import deploy_production, deploy_release_candidates
from mrt.errors.batch import DeployBranchError
from mrt.errors.ops import DeployError
from mrt.models.branch import ModifiedBranch, ReleaseBranch
from mrt.models.patch import Patch
from mrt.models.state import MaintenanceState
from mrt.models.version import SimVersion
from tests.fakes import FakeOps, sha_of


def _branch(
    repo: str, branch: str, messages: list[str], **kwargs: object
) -> ModifiedBranch:
    return ModifiedBranch(
        ReleaseBranch(repo=repo, branch=branch, brands=["phet"]),
        messages=messages,
        **kwargs,  # pyright: ignore[reportArgumentType]
    )


def test_release_candidate_keeps_messages() -> None:
    ops = FakeOps()
    state = MaintenanceState(
        modified_branches=[_branch("sim-a", "1.2", ["fix crash", "fix layout"])]
    )

    report = asyncio.run(deploy_release_candidates(state, ops))

    mb = state.modified_branches[0]
    assert mb.deployed_version == SimVersion.parse("1.2.1-rc.1")
    assert mb.messages == ["fix crash", "fix layout"]
    assert ops.calls_to("deploy") == [("sim-a", "1.2", "fix crash, fix layout")]
    assert report.applied == 1


def test_production_clears_messages() -> None:
    ops = FakeOps()
    state = MaintenanceState(
        modified_branches=[_branch("sim-a", "1.2", ["fix crash"])]
    )

    _ = asyncio.run(deploy_release_candidates(state, ops))
    _ = asyncio.run(deploy_production(state, ops))

    mb = state.modified_branches[0]
    assert mb.deployed_version == SimVersion.parse("1.2.1")
    assert mb.messages == []


def test_deploy_readiness() -> None:
    """Only branches with nothing outstanding are deployed."""
    ops = FakeOps()
    patch = Patch(repo="joist", message="fix crash")
    state = MaintenanceState(
        patches=[patch],
        modified_branches=[
            _branch("sim-a", "1.2", ["fix crash"], needed_patches=[patch]),
            _branch(
                "sim-b",
                "1.0",
                ["fix crash"],
                changed_dependencies={"joist": sha_of("d")},
            ),
            _branch("sim-c", "2.1", []),
            _branch(
                "sim-d",
                "3.0",
                ["fix crash"],
                deployed_version=SimVersion.parse("3.0.1"),
            ),
            _branch(
                "sim-e",
                "1.1",
                ["fix crash"],
                deployed_version=SimVersion.parse("1.1.2-rc.1"),
            ),
            _branch("sim-f", "1.5", ["fix crash"]),
        ],
    )

    _ = asyncio.run(deploy_release_candidates(state, ops))
    assert [c[0] for c in ops.calls_to("deploy")] == ["sim-f"]

    ops.calls.clear()
    _ = asyncio.run(deploy_production(state, ops))
    assert [c[0] for c in ops.calls_to("deploy")] == ["sim-e", "sim-f"]


def test_deploy_failure_saves_and_aborts() -> None:
    ops = FakeOps()
    ops.fail_on["deploy"] = DeployError("build server unreachable")
    state = MaintenanceState(
        modified_branches=[
            _branch("sim-a", "1.2", ["fix crash"]),
            _branch("sim-b", "1.0", ["fix crash"]),
        ]
    )
    saved: list[MaintenanceState] = []

    with pytest.raises(DeployBranchError) as exc:
        _ = asyncio.run(deploy_release_candidates(state, ops, save=saved.append))

    assert exc.value.repo == "sim-a"
    assert exc.value.operation == "rc deploy"
    assert saved
    assert len(ops.calls_to("deploy")) == 1
    for mb in state.modified_branches:
        assert mb.deployed_version is None
