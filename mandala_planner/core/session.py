from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from mandala_planner.core.grid.store import DEFAULT_TAGLINE, Grid, GridStore
from mandala_planner.core.io.state_codec import state_to_dict
from mandala_planner.core.io.storage import STORAGE_KEY, KeyValueStorage
from mandala_planner.core.model import Cell
from mandala_planner.core.validate.validate_state import validate_state


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpResult:
    changed: bool
    persisted: bool


class GridSession:
    """A GridStore bound to a key/value storage.

    State is read once at construction; a missing or malformed document falls
    back to a fresh store. Every mutating call writes the full state back.
    A failed write is reported through OpResult.persisted and leaves the
    in-memory state as is.
    """

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key
        self.restored = False
        self.store = self._restore()

    def _restore(self) -> GridStore:
        payload = self.storage.load(self.key)
        if payload is None:
            logger.debug("no stored state under %s, initializing", self.key)
            return GridStore.initialize()

        state, errors = validate_state(payload, file=self.key, repair_flags=True)
        if state is None:
            logger.warning(
                "stored state under %s is malformed (%d errors), starting fresh; first: %s",
                self.key,
                len(errors),
                errors[0] if errors else "-",
            )
            return GridStore.initialize()

        self.restored = True
        return GridStore(state)

    def save(self) -> bool:
        ok = self.storage.save(self.key, state_to_dict(self.store.state))
        if not ok:
            logger.warning("persistence unavailable for %s; keeping in-memory state", self.key)
        return ok

    def _after(self, changed: bool) -> OpResult:
        if not changed:
            return OpResult(changed=False, persisted=True)
        return OpResult(changed=True, persisted=self.save())

    def reset(self) -> OpResult:
        self.store = GridStore.initialize()
        return OpResult(changed=True, persisted=self.save())

    def begin_edit(self, cell_id: str) -> tuple[Optional[str], OpResult]:
        """Open an edit; returns the seed text and the result of committing
        any pending edit on another cell."""
        before = self.store.state
        seed = self.store.begin_edit(cell_id)
        return seed, self._after(self.store.state != before)

    def update_edit(self, text: str) -> bool:
        return self.store.update_edit(text)

    def commit_edit(self, cell_id: str, new_text: str) -> OpResult:
        return self._after(self.store.commit_edit(cell_id, new_text))

    def finish_edit(self) -> OpResult:
        return self._after(self.store.finish_edit())

    def expand(self, cell_id: str) -> OpResult:
        return self._after(self.store.expand(cell_id))

    def go_back(self) -> OpResult:
        return self._after(self.store.go_back())

    def go_to_root(self) -> OpResult:
        return self._after(self.store.go_to_root())

    def current_grid(self) -> Grid:
        return self.store.current_grid()

    def has_expanded_detail(self, cell_id: str) -> bool:
        return self.store.has_expanded_detail(cell_id)

    def breadcrumb(self) -> list[Cell]:
        return self.store.breadcrumb()

    def share_message(self, tagline: str = DEFAULT_TAGLINE) -> str:
        return self.store.share_message(tagline)
