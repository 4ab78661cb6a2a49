from __future__ import annotations

from mandala_planner.core.model import GRID_SIZE, ROOT_ID, Cell


MAIN_THEME_TEXT = "Main Theme"


def slot_number(row: int, col: int) -> int:
    return row * GRID_SIZE + col + 1


def placeholder_text(parent_is_root: bool, row: int, col: int) -> str:
    if parent_is_root:
        return f"Sub-theme {slot_number(row, col)}"
    return f"Item {slot_number(row, col)}"


def placeholder_for(cell: Cell) -> str:
    """Default label for a cell, derived from its position only."""
    if cell.is_root or cell.grid_row is None or cell.grid_col is None:
        return MAIN_THEME_TEXT
    return placeholder_text(cell.parent_id == ROOT_ID, cell.grid_row, cell.grid_col)


def is_placeholder(cell: Cell) -> bool:
    return cell.text == placeholder_for(cell)


def display_text(cell: Cell) -> str:
    return cell.text or placeholder_for(cell)
