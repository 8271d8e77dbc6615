# mrt - git utilities
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

import errno
from pathlib import Path

from mrt.errors.ops import CommandError, GitError
from mrt.utils import CmdArgs, async_run_cmd
from mrt.utils import logger as parent_logger

logger = parent_logger.getChild("git")

SHA = str


async def run_git(args: CmdArgs, *, path: Path | None = None) -> str:
    """
    Run a git command within the repository.

    If `path` is provided, run the command in `path`. Otherwise, run in the current
    directory.
    """
    cmd: CmdArgs = ["git"]
    if path is not None:
        cmd.extend(["-C", path.resolve().as_posix()])

    cmd.extend(args)
    logger.debug(f"run {cmd}")
    try:
        rc, stdout, stderr = await async_run_cmd(cmd)
    except CommandError as e:
        msg = f"unexpected error running command: {e}"
        logger.error(msg)
        raise GitError(errno.ENOTRECOVERABLE, msg) from e

    if rc != 0:
        logger.error(f"unable to obtain result from git '{args}': {stderr}")
        raise GitError(rc, stderr.strip())

    return stdout


async def git_checkout(repo_path: Path, ref: str) -> None:
    logger.debug(f"checkout '{ref}' in '{repo_path}'")
    try:
        _ = await run_git(["checkout", "--quiet", ref], path=repo_path)
    except GitError as e:
        msg = f"unable to checkout '{ref}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_pull(repo_path: Path) -> None:
    try:
        _ = await run_git(["pull", "--quiet"], path=repo_path)
    except GitError as e:
        msg = f"unable to pull in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_abort_cherry_pick(repo_path: Path) -> None:
    try:
        _ = await run_git(["cherry-pick", "--abort"], path=repo_path)
    except GitError as e:
        logger.error(f"found error aborting cherry-pick: {e}")


async def git_cherry_pick(repo_path: Path, sha: SHA) -> bool:
    """
    Cherry-pick `sha` onto the current HEAD.

    Returns `False` if the cherry-pick did not apply cleanly, in which case it
    has been aborted and the working copy is back at its previous HEAD.
    """
    try:
        _ = await run_git(["cherry-pick", sha], path=repo_path)
    except GitError as e:
        logger.info(f"unable to cherry-pick sha '{sha}' in '{repo_path}': {e}")
        await git_abort_cherry_pick(repo_path)
        return False
    return True


async def git_merge_ff_only(repo_path: Path, sha: SHA) -> None:
    try:
        _ = await run_git(["merge", "--ff-only", sha], path=repo_path)
    except GitError as e:
        msg = f"unable to fast-forward '{repo_path}' to '{sha}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_create_branch(repo_path: Path, name: str) -> None:
    try:
        _ = await run_git(["checkout", "--quiet", "-b", name], path=repo_path)
    except GitError as e:
        msg = f"unable to create branch '{name}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_push(repo_path: Path, branch: str, remote: str) -> None:
    try:
        _ = await run_git(
            ["push", "--quiet", "-u", remote, f"{branch}:{branch}"], path=repo_path
        )
    except GitError as e:
        msg = f"unable to push '{branch}' to '{remote}' from '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_revparse(repo_path: Path, ref: str) -> SHA:
    try:
        res = await run_git(
            ["rev-parse", "--verify", f"{ref}^{{commit}}"], path=repo_path
        )
    except GitError as e:
        msg = f"unable to obtain revision for '{ref}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e

    return res.strip()


async def git_is_ancestor(repo_path: Path, ancestor: SHA, commit: SHA) -> bool:
    """Check whether `ancestor` is an ancestor of (or equal to) `commit`."""
    cmd: CmdArgs = [
        "git",
        "-C",
        repo_path.resolve().as_posix(),
        "merge-base",
        "--is-ancestor",
        ancestor,
        commit,
    ]
    rc, _, stderr = await async_run_cmd(cmd)
    match rc:
        case 0:
            return True
        case 1:
            return False
        case _:
            msg = (
                f"unable to check ancestry of '{ancestor}' and '{commit}' "
                + f"in '{repo_path}': {stderr.strip()}"
            )
            logger.error(msg)
            raise GitError(rc, msg)


async def git_remote_branches(repo_path: Path, remote: str) -> set[str]:
    """Obtain the names of all branches on `remote`."""
    try:
        res = await run_git(["ls-remote", "--heads", remote], path=repo_path)
    except GitError as e:
        msg = f"unable to list branches of '{remote}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e

    branches: set[str] = set()
    for line in res.splitlines():
        parts = line.split()
        if len(parts) != 2 or not parts[1].startswith("refs/heads/"):
            logger.debug(f"unexpected ls-remote entry: '{line}'")
            continue
        branches.add(parts[1].removeprefix("refs/heads/"))

    return branches


async def git_fetch(repo_path: Path, remote: str) -> None:
    try:
        _ = await run_git(["fetch", "--quiet", remote], path=repo_path)
    except GitError as e:
        msg = f"unable to fetch '{remote}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_show_file(repo_path: Path, ref: str, file_path: str) -> str:
    """Obtain the contents of `file_path` at `ref`."""
    try:
        return await run_git(["show", f"{ref}:{file_path}"], path=repo_path)
    except GitError as e:
        msg = f"unable to read '{file_path}' at '{ref}' in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e


async def git_commit(
    repo_path: Path, message: str, *, paths: list[str] | None = None
) -> None:
    """Commit `paths` (or every change, if not provided) with `message`."""
    add_args: CmdArgs = ["add", "--", *paths] if paths else ["add", "--all"]
    try:
        _ = await run_git(add_args, path=repo_path)
        _ = await run_git(["commit", "--quiet", "-m", message], path=repo_path)
    except GitError as e:
        msg = f"unable to commit in '{repo_path}': {e}"
        logger.error(msg)
        raise GitError(e.retcode, msg) from e
