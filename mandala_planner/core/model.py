from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


ROOT_ID = "main_center"
GRID_SIZE = 3
CENTER_POS = GRID_SIZE // 2


@dataclass(frozen=True)
class Cell:
    id: str
    parent_id: Optional[str]
    text: str
    is_center_topic: bool = False
    is_expandable: bool = True

    # Position within the parent's grid; None for the root.
    grid_row: Optional[int] = None
    grid_col: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class GridState:
    cells: dict[str, Cell]
    active_center_id: str


def child_id(parent_id: str, row: int, col: int) -> str:
    return f"{parent_id}_{row}_{col}"


def child_positions() -> list[tuple[int, int]]:
    """Row-major (row, col) slots around the center of a grid."""
    return [
        (r, c)
        for r in range(GRID_SIZE)
        for c in range(GRID_SIZE)
        if not (r == CENTER_POS and c == CENTER_POS)
    ]
