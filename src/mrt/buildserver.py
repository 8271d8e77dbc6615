# mrt - build server client
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
from typing import Any

import httpx

from mrt.config import BuildServerConfig
from mrt.errors.ops import BuildServerError
from mrt.logger import logger as root_logger
from mrt.models.patch import SHA
from mrt.models.version import SimVersion

logger = root_logger.getChild("buildserver")

BUILD_SERVER_API = "2.0"
DEPLOY_ENDPOINT = "/deploy-html-simulation"


class BuildServerClient:
    """Sends deploy requests to the build server."""

    _config: BuildServerConfig
    _transport: httpx.AsyncBaseTransport | None

    def __init__(
        self,
        config: BuildServerConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _get_request(
        self,
        repo: str,
        version: SimVersion,
        dependencies: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        brands: list[str],
        servers: list[str],
    ) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        req: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
            "api": BUILD_SERVER_API,
            "dependencies": json.dumps(dependencies),
            "simName": repo,
            "version": str(version),
            "locales": "*",
            "servers": servers,
            "brands": brands,
        }
        if self._config.token:
            req["authorizationCode"] = self._config.token
        if self._config.notify_email:
            req["email"] = self._config.notify_email
        return req

    async def deploy(
        self,
        repo: str,
        version: SimVersion,
        dependencies: dict[str, Any],  # pyright: ignore[reportExplicitAny]
        brands: list[str],
        servers: list[str],
    ) -> None:
        for server in servers:
            if server not in self._config.servers:
                msg = f"unknown server '{server}'"
                logger.error(msg)
                raise BuildServerError(msg)

        logger.info(
            f"sending build request for {repo} {version}, "
            + f"brands {brands}, servers {servers}"
        )
        req = self._get_request(repo, version, dependencies, brands, servers)

        try:
            async with httpx.AsyncClient(
                base_url=self._config.url, transport=self._transport
            ) as client:
                res = await client.post(DEPLOY_ENDPOINT, json=req)
        except httpx.ConnectError as e:
            msg = f"error connecting to '{self._config.url}': {e}"
            logger.error(msg)
            raise BuildServerError(msg) from e
        except httpx.HTTPError as e:
            msg = f"error sending build request for {repo} {version}: {e}"
            logger.error(msg)
            raise BuildServerError(msg) from e

        if res.status_code != httpx.codes.OK:
            msg = (
                f"build request for {repo} {version} failed "
                + f"with status code {res.status_code}"
            )
            logger.error(msg)
            raise BuildServerError(msg)

        logger.info(f"build request for {repo} {version} sent successfully")


def dependencies_with_head(
    descriptor: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    repo: str,
    sha: SHA,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Obtain a copy of a raw dependency descriptor, pinning `repo` to `sha`."""
    res = dict(descriptor)
    entry = res.get(repo)
    res[repo] = {**entry, "sha": sha} if isinstance(entry, dict) else {"sha": sha}
    return res
