# mrt - config
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

import json
import re
from pathlib import Path
from typing import Annotated, ClassVar

import pydantic
import yaml

from mrt.errors import MRTError
from mrt.logger import logger as root_logger

logger = root_logger.getChild("config")


DEFAULT_CONFIG_PATH = "mrt.config.yaml"
DEFAULT_STATE_PATH = ".maintenance.json"

_PRODUCTION_LINK = (
    "https://phet.colorado.edu/sims/html/{repo}/{version}/{repo}_all.html"
)
_RC_LINK = (
    "https://phet-dev.colorado.edu/html/{repo}/{version}/phet/{repo}_all_phet.html"
)


class ConfigError(MRTError):
    pass


class BuildServerConfig(pydantic.BaseModel):
    model_config: ClassVar[pydantic.ConfigDict] = pydantic.ConfigDict(
        validate_by_alias=True,
        validate_by_name=True,
        serialize_by_alias=True,
    )

    url: str
    token: str | None = None
    notify_email: Annotated[
        str | None, pydantic.Field(alias="notify-email", default=None)
    ]
    servers: list[str] = pydantic.Field(default=["dev", "production"])


class LinksConfig(pydantic.BaseModel):
    model_config: ClassVar[pydantic.ConfigDict] = pydantic.ConfigDict(
        validate_by_alias=True,
        validate_by_name=True,
        serialize_by_alias=True,
    )

    production: str = _PRODUCTION_LINK
    release_candidate: Annotated[
        str,
        pydantic.Field(alias="release-candidate", default=_RC_LINK),
    ]


class Config(pydantic.BaseModel):
    model_config: ClassVar[pydantic.ConfigDict] = pydantic.ConfigDict(
        validate_by_alias=True,
        validate_by_name=True,
        serialize_by_alias=True,
    )

    root_path: Annotated[Path, pydantic.Field(alias="root-path")]
    state_path: Annotated[
        Path, pydantic.Field(alias="state-path", default=Path(DEFAULT_STATE_PATH))
    ]
    active_repos_path: Annotated[
        Path | None, pydantic.Field(alias="active-repos-path", default=None)
    ]
    mainline: str = "main"
    remote: str = "origin"
    release_branch_pattern: Annotated[
        str, pydantic.Field(alias="release-branch-pattern", default=r"^\d+\.\d+$")
    ]
    default_brands: Annotated[
        list[str], pydantic.Field(alias="default-brands", default=["phet"])
    ]
    refresh_cmd: Annotated[
        list[str] | None, pydantic.Field(alias="refresh-cmd", default=None)
    ]
    build_cmd: Annotated[
        list[str],
        pydantic.Field(
            alias="build-cmd", default=["grunt", "--brands={brands}", "--lint=false"]
        ),
    ]
    build_tool_repo: Annotated[
        str, pydantic.Field(alias="build-tool-repo", default="chipper")
    ]
    build_server: Annotated[
        BuildServerConfig | None, pydantic.Field(alias="build-server", default=None)
    ]
    links: LinksConfig = pydantic.Field(default_factory=LinksConfig)

    @pydantic.field_validator("release_branch_pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            _ = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid release branch pattern '{value}': {e}") from e
        return value

    @classmethod
    def load(cls, path: Path) -> Config:
        if not path.exists() or not path.is_file():
            raise ConfigError(f"config file '{path}' does not exist or is not a file")

        try:
            raw_data = path.read_text()
            if path.suffix.lower() in (".yaml", ".yml"):
                config = Config.model_validate(yaml.safe_load(raw_data))
            else:
                config = Config.model_validate_json(raw_data)

        except (yaml.YAMLError, pydantic.ValidationError) as e:
            msg = f"error loading config at '{path}': {e}"
            logger.error(msg)
            raise ConfigError(msg) from e
        except Exception as e:
            msg = f"unexpected error loading config at '{path}': {e}"
            logger.error(msg)
            raise ConfigError(msg) from e

        return config

    def store(self, path: Path) -> None:
        """Store config to specified path in YAML format."""
        try:
            # Path objects must go through pydantic's JSON serializer first.
            json_dict = json.loads(self.model_dump_json())  # pyright: ignore[reportAny]
            raw_data = yaml.safe_dump(json_dict, indent=2)
            _ = path.write_text(raw_data)
        except Exception as e:
            msg = f"error storing config to '{path}': {e}"
            logger.error(msg)
            raise ConfigError(msg) from e

    def repo_path(self, repo: str) -> Path:
        return self.root_path.joinpath(repo)

    def get_active_repos(self) -> list[str]:
        """Obtain the maintained repositories, as listed in the active repos file."""
        if not self.active_repos_path:
            msg = "active repos file not configured"
            logger.error(msg)
            raise ConfigError(msg)

        try:
            raw = self.active_repos_path.read_text()
        except OSError as e:
            msg = f"unable to read active repos at '{self.active_repos_path}': {e}"
            logger.error(msg)
            raise ConfigError(msg) from e

        return [ln.strip() for ln in raw.splitlines() if ln.strip()]
