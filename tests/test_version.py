# mrt - tests - versions
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

import pytest

from mrt.models.version import MalformedVersionError, SimVersion


def test_parse_production() -> None:
    v = SimVersion.parse("1.2.3")
    assert (v.major, v.minor, v.maintenance) == (1, 2, 3)
    assert v.is_production
    assert not v.is_release_candidate
    assert v.branch == "1.2"
    assert str(v) == "1.2.3"


def test_parse_release_candidate() -> None:
    v = SimVersion.parse("1.2.4-rc.2")
    assert v.test_type == "rc"
    assert v.test_number == 2
    assert v.is_release_candidate
    assert not v.is_production
    assert str(v) == "1.2.4-rc.2"


@pytest.mark.parametrize("value", ["1.2", "1.2.3-rc", "v1.2.3", "1.2.3-rc.x", ""])
def test_parse_malformed(value: str) -> None:
    with pytest.raises(MalformedVersionError):
        _ = SimVersion.parse(value)


def test_next_release_candidate() -> None:
    assert str(SimVersion.parse("1.2.3").next_release_candidate()) == "1.2.4-rc.1"
    assert str(SimVersion.parse("1.2.4-rc.1").next_release_candidate()) == "1.2.4-rc.2"


def test_production() -> None:
    assert str(SimVersion.parse("1.2.4-rc.3").production()) == "1.2.4"
