# mrt - tests - maintenance state persistence
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

import json
from pathlib import Path

import pytest

from mrt.errors.state import MalformedStateError, NoSuchPatchError, StateError
from mrt.models.branch import ModifiedBranch, ReleaseBranch
from mrt.models.state import MaintenanceState
from mrt.models.version import SimVersion
from mrt.store import StateStore
from tests.fakes import sha_of


def _state() -> MaintenanceState:
    state = MaintenanceState()
    joist = state.create_patch("joist", "fix crash")
    joist.add_sha(sha_of("a"))
    sun = state.create_patch("sun", "fix layout")

    state.modified_branches = [
        ModifiedBranch(
            ReleaseBranch(repo="sim-a", branch="1.2", brands=["phet"]),
            needed_patches=[joist, sun],
            messages=["fix overlap"],
        ),
        ModifiedBranch(
            ReleaseBranch(repo="sim-b", branch="1.0", brands=["phet", "phet-io"]),
            needed_patches=[joist],
            changed_dependencies={"scenery": sha_of("c")},
            deployed_version=SimVersion.parse("1.0.3-rc.2"),
        ),
    ]
    return state


def test_load_missing_is_empty(tmp_path: Path) -> None:
    state = StateStore(tmp_path / "state.json").load()
    assert state.patches == {}
    assert state.modified_branches == []


def test_round_trip(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "state.json")
    store.save(_state())

    state = store.load()
    assert list(state.patches) == ["joist", "sun"]
    assert state.find_patch("joist").shas == [sha_of("a")]

    sim_a, sim_b = state.modified_branches
    assert sim_a.key == ("sim-a", "1.2")
    assert [p.repo for p in sim_a.needed_patches] == ["joist", "sun"]
    assert sim_a.messages == ["fix overlap"]
    assert sim_a.deployed_version is None
    assert sim_b.brands == ["phet", "phet-io"]
    assert sim_b.changed_dependencies == {"scenery": sha_of("c")}
    assert sim_b.deployed_version == SimVersion.parse("1.0.3-rc.2")


def test_round_trip_shares_patches(tmp_path: Path) -> None:
    """Loaded branches reference the loaded patches, not copies."""
    store = StateStore(tmp_path / "state.json")
    store.save(_state())

    state = store.load()
    joist = state.find_patch("joist")
    sim_a, sim_b = state.modified_branches
    assert sim_a.needed_patches[0] is joist
    assert sim_b.needed_patches[0] is joist

    joist.add_sha(sha_of("b"))
    assert sim_a.needed_patches[0].shas == [sha_of("a"), sha_of("b")]
    assert sim_b.needed_patches[0].shas == [sha_of("a"), sha_of("b")]


def test_document_format(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    StateStore(path).save(_state())

    raw = json.loads(path.read_text())
    assert raw["patches"][0] == {
        "repo": "joist",
        "message": "fix crash",
        "shas": [sha_of("a")],
    }
    sim_b = raw["modifiedBranches"][1]
    assert sim_b["neededPatches"] == ["joist"]
    assert sim_b["changedDependencies"] == {"scenery": sha_of("c")}
    assert sim_b["deployedVersion"] == "1.0.3-rc.2"


def test_save_overwrites(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "state.json")
    store.save(_state())
    store.save(MaintenanceState())

    state = store.load()
    assert state.patches == {}
    assert state.modified_branches == []


def test_load_unknown_patch(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    _ = path.write_text(
        json.dumps(
            {
                "patches": [],
                "modifiedBranches": [
                    {"repo": "sim-a", "branch": "1.2", "neededPatches": ["joist"]}
                ],
            }
        )
    )

    with pytest.raises(MalformedStateError) as exc:
        _ = StateStore(path).load()
    assert exc.value.path == path


def test_load_malformed(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    _ = path.write_text('{"patches": [{"repo": "joist"}]}')
    with pytest.raises(MalformedStateError):
        _ = StateStore(path).load()

    _ = path.write_text("not json")
    with pytest.raises(MalformedStateError):
        _ = StateStore(path).load()


def test_load_malformed_version(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    _ = path.write_text(
        json.dumps(
            {
                "patches": [],
                "modifiedBranches": [
                    {"repo": "sim-a", "branch": "1.2", "deployedVersion": "1.2"}
                ],
            }
        )
    )
    with pytest.raises(MalformedStateError):
        _ = StateStore(path).load()


def test_reset(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "state.json")
    store.save(_state())

    _ = store.reset()
    assert store.load().patches == {}


def test_session_saves_on_failure(tmp_path: Path) -> None:
    """State mutated before a failure is persisted."""
    store = StateStore(tmp_path / "state.json")

    with pytest.raises(NoSuchPatchError), store.session() as state:
        _ = state.create_patch("joist", "fix crash")
        state.add_patch_sha("sun", sha_of("a"))

    assert "joist" in store.load().patches


def test_session_save_failure_keeps_error(tmp_path: Path) -> None:
    """A failing save does not hide the error that ended the session."""
    store = StateStore(tmp_path / "missing" / "state.json")

    with pytest.raises(NoSuchPatchError), store.session() as state:
        state.add_patch_sha("sun", sha_of("a"))


def test_session_save_failure(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "missing" / "state.json")

    with pytest.raises(StateError), store.session() as state:
        _ = state.create_patch("joist", "fix crash")
