# mrt - tests - local operations helpers
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

import pytest

from mrt.buildserver import dependencies_with_head
from mrt.errors.ops import DependencyDescriptorError
from mrt.ops.local import get_brands, parse_dependency_descriptor
from tests.fakes import sha_of


def test_parse_dependency_descriptor() -> None:
    raw = json.dumps(
        {
            "comment": "[2024-01-01] fix crash",
            "joist": {"sha": sha_of("a"), "branch": "main"},
            "sim-a": {"sha": sha_of("1"), "branch": "1.2"},
        }
    )
    assert parse_dependency_descriptor(raw) == {
        "joist": sha_of("a"),
        "sim-a": sha_of("1"),
    }


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        json.dumps({"joist": {"sha": "abc"}}),
        json.dumps({"joist": {"branch": "main"}}),
    ],
)
def test_parse_dependency_descriptor_malformed(raw: str) -> None:
    with pytest.raises(DependencyDescriptorError):
        _ = parse_dependency_descriptor(raw)


def test_get_brands() -> None:
    raw = json.dumps({"phet": {"supportedBrands": ["phet", "phet-io"]}})
    assert get_brands(raw, ["phet"]) == ["phet", "phet-io"]

    assert get_brands(json.dumps({"name": "sim-a"}), ["phet"]) == ["phet"]
    assert get_brands("not json", ["adapted-from-phet"]) == ["adapted-from-phet"]


def test_dependencies_with_head() -> None:
    descriptor = {
        "comment": "fix crash",
        "sim-a": {"sha": sha_of("1"), "branch": "1.2"},
    }
    res = dependencies_with_head(descriptor, "sim-a", sha_of("2"))

    assert res["sim-a"] == {"sha": sha_of("2"), "branch": "1.2"}
    assert res["comment"] == "fix crash"
    assert descriptor["sim-a"] == {"sha": sha_of("1"), "branch": "1.2"}
