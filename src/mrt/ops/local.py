# mrt - ops - local working copies
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
import re
from pathlib import Path
from typing import Any, cast, override

from mrt.buildserver import BuildServerClient, dependencies_with_head
from mrt.config import Config
from mrt.errors.ops import (
    BuildError,
    CommandError,
    DependencyDescriptorError,
    DeployError,
    GitError,
)
from mrt.models.branch import ReleaseBranch
from mrt.models.patch import SHA
from mrt.models.version import MalformedVersionError, SimVersion
from mrt.ops import logger as parent_logger
from mrt.ops.base import MaintenanceOps
from mrt.utils import run_checked
from mrt.utils.git import (
    git_checkout,
    git_cherry_pick,
    git_commit,
    git_create_branch,
    git_fetch,
    git_is_ancestor,
    git_merge_ff_only,
    git_pull,
    git_push,
    git_remote_branches,
    git_revparse,
    git_show_file,
)

logger = parent_logger.getChild("local")

DEPENDENCIES_FILE = "dependencies.json"
PACKAGE_FILE = "package.json"


def parse_dependency_descriptor(raw: str) -> dict[str, SHA]:
    """
    Parse a dependency descriptor into a mapping of repository to commit.

    A descriptor maps repository names to `{"sha": ..., "branch": ...}`
    entries; any other top-level entry (e.g. 'comment') is ignored.
    """
    try:
        data = cast(object, json.loads(raw))
    except json.JSONDecodeError as e:
        raise DependencyDescriptorError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DependencyDescriptorError("expected a JSON object")

    deps: dict[str, SHA] = {}
    for name, entry in cast(dict[str, object], data).items():
        if not isinstance(entry, dict):
            continue
        sha = cast(dict[str, object], entry).get("sha")
        if not isinstance(sha, str) or not re.match(r"^[a-f0-9]{40}$", sha):
            raise DependencyDescriptorError(f"invalid sha for '{name}'")
        deps[name] = sha

    return deps


def get_brands(raw_package: str, default: list[str]) -> list[str]:
    """Obtain the supported brands declared in a package file."""
    try:
        data = cast(dict[str, Any], json.loads(raw_package))  # pyright: ignore[reportExplicitAny]
    except json.JSONDecodeError:
        logger.warning("malformed package file, using default brands")
        return list(default)

    phet = data.get("phet")  # pyright: ignore[reportAny]
    if isinstance(phet, dict):
        brands = cast(dict[str, Any], phet).get("supportedBrands")  # pyright: ignore[reportExplicitAny]
        if isinstance(brands, list) and brands:
            return [str(b) for b in cast(list[object], brands)]

    return list(default)


class LocalOps(MaintenanceOps):
    """Operations over sibling git working copies under the configured root."""

    _config: Config
    _build_server: BuildServerClient | None
    _release_branches: list[ReleaseBranch] | None

    def __init__(
        self, config: Config, *, build_server: BuildServerClient | None = None
    ) -> None:
        self._config = config
        self._build_server = build_server
        if not self._build_server and config.build_server:
            self._build_server = BuildServerClient(config.build_server)
        self._release_branches = None

    def _path(self, repo: str) -> Path:
        return self._config.repo_path(repo)

    @property
    @override
    def mainline(self) -> str:
        return self._config.mainline

    @override
    async def get_release_branches(self) -> list[ReleaseBranch]:
        if self._release_branches is not None:
            return self._release_branches

        branch_re = re.compile(self._config.release_branch_pattern)
        release_branches: list[ReleaseBranch] = []

        for repo in self._config.get_active_repos():
            if not self._path(repo).exists():
                logger.warning(f"repository '{repo}' missing from working copy")
                continue

            await git_fetch(self._path(repo), self._config.remote)
            branches = sorted(
                b for b in await self.get_branches(repo) if branch_re.match(b)
            )
            for branch in branches:
                try:
                    dependencies = await self.get_branch_dependencies(repo, branch)
                except (GitError, DependencyDescriptorError) as e:
                    logger.warning(f"no dependencies for {repo} {branch}: {e}")
                    dependencies = {}

                try:
                    raw_package = await git_show_file(
                        self._path(repo), self._remote_ref(branch), PACKAGE_FILE
                    )
                    brands = get_brands(raw_package, self._config.default_brands)
                except GitError:
                    brands = list(self._config.default_brands)

                release_branches.append(
                    ReleaseBranch(
                        repo=repo,
                        branch=branch,
                        brands=brands,
                        dependencies=dependencies,
                    )
                )

        logger.info(f"found {len(release_branches)} release branches")
        self._release_branches = release_branches
        return release_branches

    def _remote_ref(self, branch: str) -> str:
        return f"{self._config.remote}/{branch}"

    @override
    async def checkout(self, repo: str, ref: str) -> None:
        await git_checkout(self._path(repo), ref)

    @override
    async def checkout_target(self, repo: str, branch: str, *, refresh: bool) -> None:
        await self.checkout(repo, branch)
        await self.pull(repo)

        dependencies = await self.get_dependencies(repo)
        for dep_repo, sha in dependencies.items():
            if dep_repo == repo:
                continue
            if not self._path(dep_repo).exists():
                logger.warning(f"dependency '{dep_repo}' missing from working copy")
                continue
            await self.checkout(dep_repo, sha)

        if refresh:
            await self.refresh(repo)
            if self._config.build_tool_repo in dependencies:
                await self.refresh(self._config.build_tool_repo)

    @override
    async def checkout_mainline(self, repo: str, *, refresh: bool = False) -> None:
        await self.checkout(repo, self.mainline)

        try:
            dependencies = await self.get_dependencies(repo)
        except DependencyDescriptorError as e:
            logger.warning(f"unable to restore dependencies of '{repo}': {e}")
            dependencies = {}

        for dep_repo in dependencies:
            if dep_repo == repo or not self._path(dep_repo).exists():
                continue
            await self.checkout(dep_repo, self.mainline)

        if refresh:
            await self.refresh(repo)

    @override
    async def pull(self, repo: str) -> None:
        await git_pull(self._path(repo))

    @override
    async def cherry_pick(self, repo: str, sha: SHA) -> bool:
        return await git_cherry_pick(self._path(repo), sha)

    @override
    async def merge(self, repo: str, sha: SHA) -> None:
        await git_merge_ff_only(self._path(repo), sha)

    @override
    async def create_branch(self, repo: str, name: str) -> None:
        await git_create_branch(self._path(repo), name)

    @override
    async def push(self, repo: str, name: str) -> None:
        await git_push(self._path(repo), name, self._config.remote)

    @override
    async def rev_parse(self, repo: str, ref: str) -> SHA:
        return await git_revparse(self._path(repo), ref)

    @override
    async def is_ancestor(self, repo: str, ancestor: SHA, commit: SHA) -> bool:
        return await git_is_ancestor(self._path(repo), ancestor, commit)

    @override
    async def get_dependencies(self, repo: str) -> dict[str, SHA]:
        path = self._path(repo).joinpath(DEPENDENCIES_FILE)
        try:
            raw = path.read_text()
        except OSError as e:
            msg = f"unable to read '{path}': {e}"
            logger.error(msg)
            raise DependencyDescriptorError(msg) from e
        return parse_dependency_descriptor(raw)

    @override
    async def get_branch_dependencies(self, repo: str, branch: str) -> dict[str, SHA]:
        raw = await git_show_file(
            self._path(repo), self._remote_ref(branch), DEPENDENCIES_FILE
        )
        return parse_dependency_descriptor(raw)

    @override
    async def get_branch_head(self, repo: str, branch: str) -> SHA:
        return await self.rev_parse(repo, self._remote_ref(branch))

    @override
    async def get_branches(self, repo: str) -> set[str]:
        return await git_remote_branches(self._path(repo), self._config.remote)

    @override
    async def refresh(self, repo: str) -> None:
        if not self._config.refresh_cmd:
            logger.debug(f"no refresh command configured, skip '{repo}'")
            return

        try:
            _ = await run_checked(self._config.refresh_cmd, cwd=self._path(repo))
        except CommandError as e:
            msg = f"unable to refresh '{repo}': {e}"
            logger.error(msg)
            raise CommandError(msg) from e

    @override
    async def build(self, repo: str, brands: list[str]) -> None:
        brands_str = ",".join(brands)
        cmd = [arg.replace("{brands}", brands_str) for arg in self._config.build_cmd]
        logger.info(f"build {repo} for brands {brands_str}")
        try:
            out = await run_checked(cmd, cwd=self._path(repo))
        except CommandError as e:
            msg = f"unable to build '{repo}': {e}"
            logger.error(msg)
            raise BuildError(msg) from e
        logger.debug(out)

    @override
    async def write_dependency_descriptor(
        self, repo: str, brands: list[str], message: str, branch: str
    ) -> None:
        if not brands:
            raise DependencyDescriptorError(f"no brands to read '{repo}' build from")

        repo_path = self._path(repo)
        built = repo_path.joinpath("build").joinpath(brands[0]).joinpath(
            DEPENDENCIES_FILE
        )
        try:
            _ = repo_path.joinpath(DEPENDENCIES_FILE).write_text(built.read_text())
        except OSError as e:
            msg = f"unable to copy built dependencies of '{repo}': {e}"
            logger.error(msg)
            raise DependencyDescriptorError(msg) from e

        await git_commit(repo_path, message, paths=[DEPENDENCIES_FILE])
        await self.push(repo, branch)

    @override
    async def deploy(
        self,
        repo: str,
        branch: str,
        brands: list[str],
        message: str,
        *,
        release_candidate: bool,
    ) -> SimVersion:
        kind = "rc" if release_candidate else "production"
        repo_path = self._path(repo)
        package_path = repo_path.joinpath(PACKAGE_FILE)

        await self.checkout_target(repo, branch, refresh=True)
        try:
            try:
                package = cast(
                    dict[str, Any],  # pyright: ignore[reportExplicitAny]
                    json.loads(package_path.read_text()),
                )
                current = SimVersion.parse(str(package["version"]))  # pyright: ignore[reportAny]
            except (
                OSError,
                KeyError,
                json.JSONDecodeError,
                MalformedVersionError,
            ) as e:
                msg = f"unable to obtain current version of {repo} {branch}: {e}"
                logger.error(msg)
                raise DeployError(msg) from e

            if current.branch != branch:
                msg = f"version '{current}' does not belong to branch '{branch}'"
                logger.error(msg)
                raise DeployError(msg)

            if release_candidate:
                version = current.next_release_candidate()
            elif current.is_release_candidate:
                version = current.production()
            else:
                msg = f"{repo} {branch} is at '{current}', not a release candidate"
                logger.error(msg)
                raise DeployError(msg)

            package["version"] = str(version)
            _ = package_path.write_text(json.dumps(package, indent=2) + "\n")
            await git_commit(
                repo_path,
                f"Bumping version to {version}\n\n{message}",
                paths=[PACKAGE_FILE],
            )
            await self.push(repo, branch)
            head = await self.rev_parse(repo, "HEAD")

            await self.build(repo, brands)

            if self._build_server:
                try:
                    raw = cast(
                        dict[str, Any],  # pyright: ignore[reportExplicitAny]
                        json.loads(repo_path.joinpath(DEPENDENCIES_FILE).read_text()),
                    )
                except (OSError, json.JSONDecodeError) as e:
                    msg = f"unable to read dependencies of {repo} {branch}: {e}"
                    logger.error(msg)
                    raise DeployError(msg) from e

                await self._build_server.deploy(
                    repo,
                    version,
                    dependencies_with_head(raw, repo, head),
                    brands,
                    ["dev"] if release_candidate else ["production"],
                )
            else:
                logger.warning(f"no build server configured, {kind} not sent")
        finally:
            await self.checkout_mainline(repo, refresh=True)

        logger.info(f"deployed {kind} {repo} {branch} as '{version}'")
        return version
