from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from mandala_planner.core.grid.placeholders import (
    MAIN_THEME_TEXT,
    display_text,
    is_placeholder,
    placeholder_for,
    placeholder_text,
)
from mandala_planner.core.model import (
    CENTER_POS,
    GRID_SIZE,
    ROOT_ID,
    Cell,
    GridState,
    child_id,
    child_positions,
)


logger = logging.getLogger(__name__)

DEFAULT_TAGLINE = "Unlocking deeper insights, one square at a time."
FALLBACK_SHARE_MESSAGE = "Exploring ideas with my Mandala Chart!"

Grid = list[list[Optional[Cell]]]


@dataclass
class PendingEdit:
    cell_id: str
    buffer: str


class GridStore:
    """In-memory owner of the cell map and the active-center pointer.

    Operations on unknown cell ids are no-ops. Mutating operations return True
    when state changed. Navigation always commits a pending edit first.
    """

    def __init__(self, state: GridState) -> None:
        self._cells: dict[str, Cell] = dict(state.cells)
        self._active_center_id = state.active_center_id
        self._pending: Optional[PendingEdit] = None

    @classmethod
    def initialize(cls) -> "GridStore":
        cells: dict[str, Cell] = {
            ROOT_ID: Cell(
                id=ROOT_ID,
                parent_id=None,
                text=MAIN_THEME_TEXT,
                is_center_topic=True,
                is_expandable=False,
            )
        }
        for r, c in child_positions():
            cid = child_id(ROOT_ID, r, c)
            cells[cid] = Cell(
                id=cid,
                parent_id=ROOT_ID,
                text=placeholder_text(True, r, c),
                grid_row=r,
                grid_col=c,
            )
        return cls(GridState(cells=cells, active_center_id=ROOT_ID))

    @property
    def state(self) -> GridState:
        return GridState(cells=dict(self._cells), active_center_id=self._active_center_id)

    @property
    def active_center_id(self) -> str:
        return self._active_center_id

    @property
    def pending_edit(self) -> Optional[PendingEdit]:
        return self._pending

    def get(self, cell_id: str) -> Optional[Cell]:
        return self._cells.get(cell_id)

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def active_center(self) -> Optional[Cell]:
        return self._cells.get(self._active_center_id)

    def parent_of_active(self) -> Optional[Cell]:
        center = self.active_center()
        if center is None or center.is_root:
            return None
        return self._cells.get(center.parent_id)

    def current_grid(self) -> Grid:
        """3x3 row-major view of the active center and its children.

        Slots whose child was never materialized hold None.
        """
        grid: Grid = [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
        center = self.active_center()
        if center is None:
            return grid
        grid[CENTER_POS][CENTER_POS] = center
        for r, c in child_positions():
            grid[r][c] = self._cells.get(child_id(center.id, r, c))
        return grid

    def children_of(self, cell_id: str) -> list[Cell]:
        out: list[Cell] = []
        for r, c in child_positions():
            child = self._cells.get(child_id(cell_id, r, c))
            if child is not None:
                out.append(child)
        return out

    def has_expanded_detail(self, cell_id: str) -> bool:
        return any(
            c.text.strip() != "" and not is_placeholder(c) for c in self.children_of(cell_id)
        )

    def depth(self, cell_id: str) -> Optional[int]:
        """Number of ancestors of a cell (root is 0), None if unknown."""
        if cell_id not in self._cells:
            return None
        return len(self._ancestry(cell_id)) - 1

    def breadcrumb(self) -> list[Cell]:
        """Cells from the root down to the active center."""
        return list(reversed(self._ancestry(self._active_center_id)))

    def display_text(self, cell: Cell) -> str:
        return display_text(cell)

    def share_message(self, tagline: str = DEFAULT_TAGLINE) -> str:
        center = self.active_center()
        if center is None:
            return FALLBACK_SHARE_MESSAGE
        return f'My Mandala Chart is centered on "{center.text}". {tagline}'

    def begin_edit(self, cell_id: str) -> Optional[str]:
        """Open an edit on a cell and return the text to seed the buffer with.

        Placeholder text seeds an empty buffer. Any pending edit on another
        cell is committed first. Returns None for an unknown cell.
        """
        cell = self._cells.get(cell_id)
        if cell is None:
            logger.debug("begin_edit: unknown cell %s", cell_id)
            return None
        if self._pending is not None:
            if self._pending.cell_id == cell_id:
                return self._pending.buffer
            self.finish_edit()
        seed = "" if is_placeholder(cell) else cell.text
        self._pending = PendingEdit(cell_id=cell_id, buffer=seed)
        return seed

    def update_edit(self, text: str) -> bool:
        if self._pending is None:
            return False
        self._pending.buffer = text
        return True

    def commit_edit(self, cell_id: str, new_text: str) -> bool:
        cell = self._cells.get(cell_id)
        if cell is None:
            logger.debug("commit_edit: unknown cell %s", cell_id)
            return False
        if self._pending is not None and self._pending.cell_id == cell_id:
            self._pending = None

        text = new_text.strip() or placeholder_for(cell)
        if text == cell.text:
            return False
        self._cells[cell_id] = replace(cell, text=text)
        return True

    def finish_edit(self) -> bool:
        """Commit the pending edit buffer, if any."""
        if self._pending is None:
            return False
        pending = self._pending
        return self.commit_edit(pending.cell_id, pending.buffer)

    def expand(self, cell_id: str) -> bool:
        changed = self.finish_edit()
        if cell_id not in self._cells:
            logger.debug("expand: unknown cell %s", cell_id)
            return changed
        if cell_id == self._active_center_id:
            return changed
        self._activate(cell_id)
        return True

    def go_back(self) -> bool:
        changed = self.finish_edit()
        parent = self.parent_of_active()
        if parent is None:
            return changed
        self._activate(parent.id)
        return True

    def go_to_root(self) -> bool:
        changed = self.finish_edit()
        if self._active_center_id == ROOT_ID or ROOT_ID not in self._cells:
            return changed
        self._activate(ROOT_ID)
        return True

    def _activate(self, target_id: str) -> None:
        self._materialize_children(target_id)

        previous = self._cells.get(self._active_center_id)
        if previous is not None:
            self._cells[previous.id] = replace(
                previous, is_center_topic=False, is_expandable=True
            )

        target = self._cells[target_id]
        self._cells[target_id] = replace(target, is_center_topic=True, is_expandable=False)
        self._active_center_id = target_id
        logger.debug("active center -> %s", target_id)

    def _materialize_children(self, parent_id: str) -> None:
        parent_is_root = parent_id == ROOT_ID
        created = 0
        for r, c in child_positions():
            cid = child_id(parent_id, r, c)
            if cid in self._cells:
                continue
            self._cells[cid] = Cell(
                id=cid,
                parent_id=parent_id,
                text=placeholder_text(parent_is_root, r, c),
                grid_row=r,
                grid_col=c,
            )
            created += 1
        if created:
            logger.debug("materialized %d children under %s", created, parent_id)

    def _ancestry(self, cell_id: str) -> list[Cell]:
        # Starting cell first, root last.
        chain: list[Cell] = []
        seen: set[str] = set()
        cur = self._cells.get(cell_id)
        while cur is not None and cur.id not in seen:
            chain.append(cur)
            seen.add(cur.id)
            cur = self._cells.get(cur.parent_id) if cur.parent_id is not None else None
        return chain
