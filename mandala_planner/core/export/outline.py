from __future__ import annotations

import json
from typing import Any, Optional

import yaml

from mandala_planner.core.grid.placeholders import display_text, is_placeholder
from mandala_planner.core.model import ROOT_ID, Cell, GridState, child_id, child_positions


def build_outline(state: GridState, root_id: Optional[str] = None) -> dict[str, Any]:
    """Return the materialized tree below `root_id` as nested dicts.

    Children are listed in row-major slot order. Cells that were never
    expanded carry an empty `children` list.
    """

    start = root_id or ROOT_ID
    cell = state.cells.get(start)
    if cell is None:
        raise KeyError(start)
    return _node(state, cell)


def _node(state: GridState, cell: Cell) -> dict[str, Any]:
    node: dict[str, Any] = {"id": cell.id, "text": display_text(cell)}
    if cell.grid_row is not None and cell.grid_col is not None:
        node["position"] = [cell.grid_row, cell.grid_col]
    node["placeholder"] = is_placeholder(cell)
    if cell.id == state.active_center_id:
        node["active"] = True

    children: list[dict[str, Any]] = []
    for r, c in child_positions():
        child = state.cells.get(child_id(cell.id, r, c))
        if child is not None:
            children.append(_node(state, child))
    node["children"] = children
    return node


def dump_outline_yaml(outline: dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(outline, f, sort_keys=False, default_flow_style=False, allow_unicode=True)


def dump_outline_json(outline: dict[str, Any], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(outline, f, indent=2, ensure_ascii=False)
        f.write("\n")
