# mrt - commands - maintenance campaign batches
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

import click

from mrt.apply import apply_patches
from mrt.cmds import (
    exit_on_error,
    get_ops,
    get_store,
    print_batch_error,
    print_report,
    psuccess,
    pwarn,
    with_config,
)
from mrt.cmds import logger as parent_logger
from mrt.config import Config
from mrt.dependencies import update_dependencies
from mrt.deploy import deploy_production, deploy_release_candidates
from mrt.errors import MRTError
from mrt.errors.batch import BatchError
from mrt.models.report import DeployReport

logger = parent_logger.getChild("campaign")


@click.command("apply-patches", help="Apply needed patches to release branches.")
@with_config
def cmd_apply_patches(config: Config) -> None:
    ops = get_ops(config)
    store = get_store(config)

    try:
        with store.session() as state:
            report = asyncio.run(apply_patches(state, ops, save=store.save))
    except BatchError as e:
        print_batch_error(e)
    except MRTError as e:
        exit_on_error(e)

    print_report(report)
    psuccess(f"{report.applied} patches applied")
    if report.needs_retry:
        pwarn(f"{report.needs_retry} patches could not be applied")


@click.command(
    "update-dependencies",
    help="Publish patched dependencies and rebuild release branches.",
)
@with_config
def cmd_update_dependencies(config: Config) -> None:
    ops = get_ops(config)
    store = get_store(config)

    try:
        with store.session() as state:
            report = asyncio.run(
                update_dependencies(
                    state,
                    ops,
                    build_tool_repo=config.build_tool_repo,
                    save=store.save,
                )
            )
    except BatchError as e:
        print_batch_error(e)
    except MRTError as e:
        exit_on_error(e)

    print_report(report)
    psuccess("dependencies updated")


def _deploy(config: Config, *, release_candidate: bool) -> DeployReport:
    ops = get_ops(config)
    store = get_store(config)
    deploy_fn = deploy_release_candidates if release_candidate else deploy_production

    try:
        with store.session() as state:
            return asyncio.run(deploy_fn(state, ops, save=store.save))
    except BatchError as e:
        print_batch_error(e)
    except MRTError as e:
        exit_on_error(e)


@click.command("deploy-rc", help="Deploy release candidates of ready branches.")
@with_config
def cmd_deploy_rc(config: Config) -> None:
    report = _deploy(config, release_candidate=True)
    print_report(report)
    psuccess("release candidate versions deployed")


@click.command(
    "deploy-production",
    help="Deploy to production branches with a release candidate deployed.",
)
@with_config
def cmd_deploy_production(config: Config) -> None:
    report = _deploy(config, release_candidate=False)
    print_report(report)
    psuccess("production versions deployed")
