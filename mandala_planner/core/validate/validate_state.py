from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Optional

from mandala_planner.core.errors import StateValidationError
from mandala_planner.core.model import CENTER_POS, GRID_SIZE, ROOT_ID, Cell, GridState, child_id


def _is_grid_index(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and 0 <= v < GRID_SIZE


def validate_state(
    payload: Any, *, file: Optional[str] = None, repair_flags: bool = False
) -> tuple[Optional[GridState], list[StateValidationError]]:
    """Validate a persisted grid document (camelCase JSON shape).

    Returns (state, errors). State is None when errors exist.

    With repair_flags=True, isCenterTopic/isExpandable are not checked but
    rebuilt from activeCenterId. Charts saved by the browser tool keep
    isCenterTopic=true on every grid ever expanded, so restoring a session
    uses this mode; `mandala validate` does not.
    """

    errors: list[StateValidationError] = []

    if not isinstance(payload, dict):
        errors.append(
            StateValidationError(
                code="E_INVALID_TOP_LEVEL",
                message="state document must be a mapping/object",
                file=file,
            )
        )
        return None, errors

    active_center_id = payload.get("activeCenterId")
    if not isinstance(active_center_id, str) or not active_center_id.strip():
        errors.append(
            StateValidationError(
                code="E_REQUIRED_FIELD",
                message="activeCenterId is required and must be a non-empty string",
                file=file,
                path="activeCenterId",
            )
        )

    raw_cells = payload.get("cells")
    if not isinstance(raw_cells, dict):
        errors.append(
            StateValidationError(
                code="E_REQUIRED_FIELD",
                message="cells is required and must be an object keyed by cell id",
                file=file,
                path="cells",
            )
        )
        return None, _sorted(errors)

    cells: dict[str, Cell] = {}

    for key, raw in raw_cells.items():
        cell_path = f"cells.{key}"
        if not isinstance(raw, dict):
            errors.append(
                StateValidationError(
                    code="E_INVALID_TYPE",
                    message="cell must be an object",
                    file=file,
                    path=cell_path,
                )
            )
            continue

        cid = raw.get("id")
        if not isinstance(cid, str) or not cid.strip():
            errors.append(
                StateValidationError(
                    code="E_REQUIRED_FIELD",
                    message="id is required and must be a non-empty string",
                    file=file,
                    path=f"{cell_path}.id",
                )
            )
            continue

        if cid != key:
            errors.append(
                StateValidationError(
                    code="E_ID_MISMATCH",
                    message=f"cell id {cid} does not match its key {key}",
                    file=file,
                    path=f"{cell_path}.id",
                )
            )
            continue

        parent_id = raw.get("parentId")
        if parent_id is not None and not isinstance(parent_id, str):
            errors.append(
                StateValidationError(
                    code="E_INVALID_TYPE",
                    message="parentId must be a string or null",
                    file=file,
                    path=f"{cell_path}.parentId",
                )
            )
            continue

        text = raw.get("text")
        if not isinstance(text, str):
            errors.append(
                StateValidationError(
                    code="E_INVALID_TYPE",
                    message="text must be a string",
                    file=file,
                    path=f"{cell_path}.text",
                )
            )
            continue

        is_center_topic = raw.get("isCenterTopic", False)
        if not isinstance(is_center_topic, bool):
            errors.append(
                StateValidationError(
                    code="E_INVALID_TYPE",
                    message="isCenterTopic must be a boolean",
                    file=file,
                    path=f"{cell_path}.isCenterTopic",
                )
            )
            continue

        is_expandable = raw.get("isExpandable", not is_center_topic)
        if not isinstance(is_expandable, bool):
            errors.append(
                StateValidationError(
                    code="E_INVALID_TYPE",
                    message="isExpandable must be a boolean",
                    file=file,
                    path=f"{cell_path}.isExpandable",
                )
            )
            continue

        if not repair_flags and is_expandable == is_center_topic:
            errors.append(
                StateValidationError(
                    code="E_INVALID_FLAGS",
                    message="isExpandable must be the opposite of isCenterTopic",
                    file=file,
                    path=f"{cell_path}.isExpandable",
                )
            )
            continue

        row = raw.get("gridRow")
        col = raw.get("gridCol")
        if parent_id is None:
            if cid != ROOT_ID:
                errors.append(
                    StateValidationError(
                        code="E_INVALID_ROOT",
                        message=f"only {ROOT_ID} may have parentId: null",
                        file=file,
                        path=f"{cell_path}.parentId",
                    )
                )
                continue
            row, col = None, None
        else:
            if not _is_grid_index(row) or not _is_grid_index(col):
                errors.append(
                    StateValidationError(
                        code="E_INVALID_POSITION",
                        message=f"gridRow/gridCol must be integers in 0..{GRID_SIZE - 1}",
                        file=file,
                        path=cell_path,
                    )
                )
                continue
            if row == CENTER_POS and col == CENTER_POS:
                errors.append(
                    StateValidationError(
                        code="E_INVALID_POSITION",
                        message="the center slot is reserved for the grid's center cell",
                        file=file,
                        path=cell_path,
                    )
                )
                continue
            if cid != child_id(parent_id, row, col):
                errors.append(
                    StateValidationError(
                        code="E_ID_DERIVATION",
                        message=f"cell id must be {child_id(parent_id, row, col)}",
                        file=file,
                        path=f"{cell_path}.id",
                    )
                )
                continue

        cells[cid] = Cell(
            id=cid,
            parent_id=parent_id,
            text=text,
            is_center_topic=is_center_topic,
            is_expandable=is_expandable,
            grid_row=row,
            grid_col=col,
        )

    # Referential integrity checks.
    if ROOT_ID not in raw_cells:
        errors.append(
            StateValidationError(
                code="E_MISSING_ROOT",
                message=f"root cell {ROOT_ID} is missing",
                file=file,
                path="cells",
            )
        )

    for cid, cell in cells.items():
        if cell.parent_id is not None and cell.parent_id not in raw_cells:
            errors.append(
                StateValidationError(
                    code="E_UNKNOWN_PARENT",
                    message=f"parentId references unknown id: {cell.parent_id}",
                    file=file,
                    path=f"cells.{cid}.parentId",
                )
            )

    if isinstance(active_center_id, str) and active_center_id.strip():
        if active_center_id not in raw_cells:
            errors.append(
                StateValidationError(
                    code="E_UNKNOWN_ACTIVE_CENTER",
                    message=f"activeCenterId references unknown id: {active_center_id}",
                    file=file,
                    path="activeCenterId",
                )
            )
        elif not repair_flags:
            centers = sorted(cid for cid, c in cells.items() if c.is_center_topic)
            if centers != [active_center_id]:
                errors.append(
                    StateValidationError(
                        code="E_CENTER_TOPIC_MISMATCH",
                        message=(
                            f"exactly one cell ({active_center_id}) must be the center topic, "
                            f"found: {', '.join(centers) or 'none'}"
                        ),
                        file=file,
                        path="cells",
                    )
                )

    if errors:
        return None, _sorted(errors)

    if repair_flags:
        cells = {
            cid: replace(
                c,
                is_center_topic=cid == active_center_id,
                is_expandable=cid != active_center_id,
            )
            for cid, c in cells.items()
        }

    return GridState(cells=cells, active_center_id=str(active_center_id)), []


def summarize_state(state: GridState) -> str:
    center = state.cells[state.active_center_id]
    expanded = sorted(
        {c.parent_id for c in state.cells.values() if c.parent_id is not None}
    )
    return (
        f"OK: {len(state.cells)} cells, {len(expanded)} expanded grids"
        + f"\nActive center: {center.id} ({center.text})"
    )


def _sorted(errors: Iterable[StateValidationError]) -> list[StateValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
