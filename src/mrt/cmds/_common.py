# mrt - commands - common helpers
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

import re

import click


def validate_sha(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not re.match(r"^[\da-f]{7,40}$", value):
        raise click.BadParameter("malformed SHA", ctx, param)  # noqa: TRY003
    return value
