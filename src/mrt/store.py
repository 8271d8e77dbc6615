# mrt - maintenance state persistence
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

from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path

import pydantic

from mrt.errors.state import MalformedStateError, StateError
from mrt.logger import logger as root_logger
from mrt.models.state import MaintenanceDoc, MaintenanceState

logger = root_logger.getChild("store")


SaveStateCallback = Callable[[MaintenanceState], None]


def no_save(_: MaintenanceState) -> None:
    pass


class StateStore:
    """
    Durable record of the maintenance state, as a single JSON document.

    The document is always fully overwritten on save. Concurrent writers are
    not guarded against.
    """

    path: Path

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> MaintenanceState:
        if not self.path.exists():
            logger.debug(f"no state at '{self.path}', starting empty")
            return MaintenanceState()

        try:
            raw = self.path.read_text()
        except OSError as e:
            msg = f"unable to read state at '{self.path}': {e}"
            logger.error(msg)
            raise StateError(msg) from e

        try:
            doc = MaintenanceDoc.model_validate_json(raw)
        except pydantic.ValidationError as e:
            msg = f"unable to parse state: {e}"
            logger.error(msg)
            raise MalformedStateError(self.path, msg=msg) from e

        try:
            return MaintenanceState.from_document(doc)
        except MalformedStateError as e:
            raise MalformedStateError(self.path, msg=e.msg) from e

    def save(self, state: MaintenanceState) -> None:
        raw = state.to_document().model_dump_json(indent=2)
        try:
            _ = self.path.write_text(raw + "\n")
        except OSError as e:
            msg = f"unable to write state to '{self.path}': {e}"
            logger.error(msg)
            raise StateError(msg) from e
        logger.debug(f"saved state to '{self.path}'")

    def reset(self) -> MaintenanceState:
        state = MaintenanceState()
        self.save(state)
        logger.info(f"reset state at '{self.path}'")
        return state

    @contextmanager
    def session(self) -> Generator[MaintenanceState]:
        """
        Load the state, yielding it for mutation.

        The state is saved once the block finishes, whether it succeeds or not.
        A failure to save after the block failed is logged, and the block's
        own error propagates.
        """
        state = self.load()
        try:
            yield state
        except BaseException:
            try:
                self.save(state)
            except StateError as e:
                logger.error(f"unable to save state after failure: {e}")
            raise

        self.save(state)
