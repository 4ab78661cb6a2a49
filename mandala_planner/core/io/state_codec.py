from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import yaml

from mandala_planner.core.errors import StateLoadError
from mandala_planner.core.model import Cell, GridState


def cell_to_dict(cell: Cell) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": cell.id,
        "parentId": cell.parent_id,
        "text": cell.text,
        "isCenterTopic": cell.is_center_topic,
        "isExpandable": cell.is_expandable,
    }
    # The root carries no position.
    if cell.grid_row is not None:
        out["gridRow"] = cell.grid_row
    if cell.grid_col is not None:
        out["gridCol"] = cell.grid_col
    return out


def state_to_dict(state: GridState) -> dict[str, Any]:
    return {
        "cells": {cid: cell_to_dict(cell) for cid, cell in state.cells.items()},
        "activeCenterId": state.active_center_id,
    }


def dump_state_json(state: GridState, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, indent=2, sort_keys=False)
        f.write("\n")


# suffix -> (parse error code, decoder)
_DECODERS: dict[str, tuple[str, Callable[[str], Any]]] = {
    ".json": ("E_JSON_PARSE", json.loads),
    ".yaml": ("E_YAML_PARSE", yaml.safe_load),
    ".yml": ("E_YAML_PARSE", yaml.safe_load),
}


def load_state_file(path: str) -> dict[str, Any]:
    """Read a saved chart from disk.

    Accepts the JSON written by `dump_state_json` (or by the browser store)
    and the same shape as YAML. Only the container is checked here;
    validate_state owns the cell-level rules.
    """

    p = Path(path)
    decoder = _DECODERS.get(p.suffix.lower())
    if decoder is None:
        raise StateLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message=f"supported formats are {', '.join(sorted(_DECODERS))}",
            file=str(p),
        )
    if not p.is_file():
        raise StateLoadError(code="E_FILE_NOT_FOUND", message="file does not exist", file=str(p))

    parse_code, decode = decoder
    try:
        data = decode(p.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise StateLoadError(code="E_FILE_READ", message=f"not UTF-8 text: {e}", file=str(p)) from e
    except OSError as e:
        raise StateLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise StateLoadError(code=parse_code, message=str(e), file=str(p)) from e

    if not isinstance(data, dict):
        found = "an empty document" if data is None else type(data).__name__
        raise StateLoadError(
            code="E_INVALID_TOP_LEVEL",
            message=f"a chart must be an object with cells and activeCenterId, got {found}",
            file=str(p),
        )
    return data
