# mrt - utilities
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
from asyncio.streams import StreamReader
from io import StringIO
from pathlib import Path

from mrt.errors.ops import CommandError
from mrt.logger import logger as root_logger

logger = root_logger.getChild("utils")


CmdArgs = list[str]


async def async_run_cmd(
    cmd: CmdArgs,
    *,
    cwd: Path | None = None,
) -> tuple[int, str, str]:
    logger.debug(f"async run '{cmd}', cwd: {cwd}")

    try:
        p = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        msg = f"unable to run '{cmd}': {e}"
        logger.error(msg)
        raise CommandError(msg) from e

    async def read_stream(stream: StreamReader | None) -> str:
        collected = StringIO()

        if not stream:
            return ""

        async for line in stream:
            _ = collected.write(line.decode("utf-8"))

        return collected.getvalue()

    try:
        retcode, stdout, stderr = await asyncio.gather(
            p.wait(),
            read_stream(p.stdout),
            read_stream(p.stderr),
        )
    except asyncio.CancelledError:
        logger.error("async subprocess was cancelled")
        p.kill()
        _ = await p.wait()
        raise

    return retcode, stdout, stderr


async def run_checked(cmd: CmdArgs, *, cwd: Path | None = None) -> str:
    """Run `cmd`, raising `CommandError` on a non-zero return code."""
    rc, stdout, stderr = await async_run_cmd(cmd, cwd=cwd)
    if rc != 0:
        msg = f"'{' '.join(cmd)}' failed with retcode {rc}: {stderr.strip()}"
        logger.error(msg)
        raise CommandError(msg)
    return stdout
