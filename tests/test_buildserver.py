# mrt - tests - build server client
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
import json
from typing import Any

import httpx
import pytest

from mrt.buildserver import DEPLOY_ENDPOINT, BuildServerClient
from mrt.config import BuildServerConfig
from mrt.errors.ops import BuildServerError
from mrt.models.version import SimVersion


def _client(
    requests: list[httpx.Request], status_code: int = 200
) -> BuildServerClient:
    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code)

    return BuildServerClient(
        BuildServerConfig(
            url="https://build.example.com",
            token="secret",
            notify_email="dev@example.com",
        ),
        transport=httpx.MockTransport(_handler),
    )


def test_deploy_request() -> None:
    requests: list[httpx.Request] = []
    client = _client(requests)
    deps: dict[str, Any] = {"sim-a": {"sha": "a" * 40}}

    asyncio.run(
        client.deploy(
            "sim-a", SimVersion.parse("1.2.4-rc.1"), deps, ["phet"], ["dev"]
        )
    )

    assert len(requests) == 1
    assert requests[0].url.path == DEPLOY_ENDPOINT
    body = json.loads(requests[0].content)
    assert body["simName"] == "sim-a"
    assert body["version"] == "1.2.4-rc.1"
    assert body["servers"] == ["dev"]
    assert body["brands"] == ["phet"]
    assert body["authorizationCode"] == "secret"
    assert body["email"] == "dev@example.com"
    assert json.loads(body["dependencies"]) == deps


def test_deploy_failure_status() -> None:
    requests: list[httpx.Request] = []
    client = _client(requests, status_code=500)

    with pytest.raises(BuildServerError):
        asyncio.run(
            client.deploy(
                "sim-a", SimVersion.parse("1.2.4"), {}, ["phet"], ["production"]
            )
        )


def test_deploy_unknown_server() -> None:
    requests: list[httpx.Request] = []
    client = _client(requests)

    with pytest.raises(BuildServerError):
        asyncio.run(
            client.deploy("sim-a", SimVersion.parse("1.2.4"), {}, ["phet"], ["staging"])
        )
    assert requests == []
