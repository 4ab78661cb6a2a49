from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import typer

from mandala_planner.core.config import AppConfig, ConfigError, load_config
from mandala_planner.core.errors import MandalaError, StateLoadError, StateValidationError
from mandala_planner.core.export.outline import build_outline, dump_outline_json, dump_outline_yaml
from mandala_planner.core.grid.placeholders import display_text
from mandala_planner.core.io.state_codec import load_state_file
from mandala_planner.core.io.storage import FileStorage
from mandala_planner.core.session import GridSession, OpResult
from mandala_planner.core.validate.validate_state import summarize_state, validate_state

app = typer.Typer(add_completion=False, no_args_is_help=True)


@dataclass
class CliState:
    config: AppConfig


@app.callback()
def _callback(
    ctx: typer.Context,
    state_dir: Optional[str] = typer.Option(
        None, "--state-dir", help="Directory holding the saved grid (default: ~/.mandala)"
    ),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Mandala chart CLI: a nested 3x3 brainstorming grid."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )

    try:
        cfg = load_config(config, state_dir=state_dir)
    except FileNotFoundError:
        _print_errors(
            [
                StateLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config}",
                    file=None,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=1)
    except ConfigError as e:
        _print_errors(
            [
                StateValidationError(
                    code="E_CONFIG_INVALID",
                    message=str(e),
                    file=None,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=2)

    ctx.obj = CliState(config=cfg)


@app.command("show")
def show(
    ctx: typer.Context,
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show the grid around the active center."""
    _check_format(format, ("text", "json"), "E_SHOW_UNKNOWN_FORMAT")
    session = _open_session(ctx)

    if format == "json":
        typer.echo(json.dumps(_grid_payload(session), indent=2, sort_keys=True))
        return
    _echo_grid(session)


@app.command("edit")
def edit(
    ctx: typer.Context,
    cell_id: str = typer.Argument(..., help="Cell id, e.g. main_center_0_2"),
    text: str = typer.Argument(..., help="New label; empty restores the default label"),
) -> None:
    """Set the label of a cell."""
    session = _open_session(ctx)

    seed, opened = session.begin_edit(cell_id)
    if seed is None:
        _warn_unknown_cell(cell_id)
        return
    _check_persisted(opened)
    session.update_edit(text)
    result = session.finish_edit()
    _check_persisted(result)

    cell = session.store.get(cell_id)
    assert cell is not None
    typer.echo(f"OK: {cell_id} = {display_text(cell)}")


@app.command("expand")
def expand(
    ctx: typer.Context,
    cell_id: str = typer.Argument(..., help="Cell to make the new center"),
) -> None:
    """Make a cell the center of the displayed grid, creating its 8 slots on first visit."""
    session = _open_session(ctx)

    if cell_id not in session.store:
        _warn_unknown_cell(cell_id)
        return
    _check_persisted(session.expand(cell_id))
    _echo_grid(session)


@app.command("back")
def back(ctx: typer.Context) -> None:
    """Navigate to the parent of the active center."""
    session = _open_session(ctx)
    result = session.go_back()
    _check_persisted(result)
    if not result.changed:
        typer.echo("Already at the main theme.")
    _echo_grid(session)


@app.command("home")
def home(ctx: typer.Context) -> None:
    """Navigate straight to the main theme."""
    session = _open_session(ctx)
    result = session.go_to_root()
    _check_persisted(result)
    if not result.changed:
        typer.echo("Already at the main theme.")
    _echo_grid(session)


@app.command("reset")
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Discard the saved grid and start over."""
    if not yes:
        typer.confirm("Discard every cell and start a new chart?", abort=True)
    session = _open_session(ctx)
    _check_persisted(session.reset())
    typer.echo("OK: chart reset")


@app.command("share")
def share(
    ctx: typer.Context,
    tagline: Optional[str] = typer.Option(None, "--tagline", help="Override the configured tagline"),
) -> None:
    """Print a short message describing the chart."""
    state: CliState = ctx.obj
    session = _open_session(ctx)
    typer.echo(session.share_message(tagline or state.config.tagline))


@app.command("export")
def export(
    ctx: typer.Context,
    out: str = typer.Option(..., "--out", help="Path to write the outline"),
    format: str = typer.Option("yaml", "--format", help="Output format: yaml|json"),
    root: Optional[str] = typer.Option(None, "--root", help="Export only the subtree under this cell"),
) -> None:
    """Write the expanded tree as a nested outline."""
    _check_format(format, ("yaml", "json"), "E_EXPORT_UNKNOWN_FORMAT")
    session = _open_session(ctx)

    if root is not None and root not in session.store:
        _print_errors(
            [
                StateValidationError(
                    code="E_EXPORT_UNKNOWN_ROOT",
                    message=f"--root references unknown id: {root}",
                    file=None,
                    path="root",
                )
            ]
        )
        raise typer.Exit(code=2)

    outline = build_outline(session.store.state, root)
    p = Path(out)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    if format == "json":
        dump_outline_json(outline, str(p))
    else:
        dump_outline_yaml(outline, str(p))
    typer.echo(f"OK: wrote outline to {out}")


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a saved grid (.json/.yaml/.yml)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a saved grid document."""
    _check_format(format, ("text", "json"), "E_VALIDATE_UNKNOWN_FORMAT")

    def _emit_json(
        ok: bool,
        *,
        exit_code: int,
        errors: list[MandalaError],
        summary: dict | None,
    ) -> None:
        payload = {
            "tool": "mandala",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [e.as_item() for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        payload = load_state_file(path)
    except StateLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    state, errors = validate_state(payload, file=path)
    if errors:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    assert state is not None

    if format == "text":
        typer.echo(summarize_state(state))
        return

    summary = {
        "cell_count": len(state.cells),
        "expanded_count": len({c.parent_id for c in state.cells.values() if c.parent_id}),
        "active_center_id": state.active_center_id,
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


def _open_session(ctx: typer.Context) -> GridSession:
    state: CliState = ctx.obj
    cfg = state.config
    return GridSession(FileStorage(cfg.state_path), key=cfg.storage_key)


def _grid_payload(session: GridSession) -> dict[str, Any]:
    rows: list[list[Optional[dict[str, Any]]]] = []
    for row in session.current_grid():
        items: list[Optional[dict[str, Any]]] = []
        for cell in row:
            if cell is None:
                items.append(None)
                continue
            items.append(
                {
                    "id": cell.id,
                    "text": display_text(cell),
                    "isCenterTopic": cell.is_center_topic,
                    "isExpandable": cell.is_expandable,
                    "hasDetail": session.has_expanded_detail(cell.id),
                }
            )
        rows.append(items)

    return {
        "tool": "mandala",
        "command": "show",
        "active_center_id": session.store.active_center_id,
        "breadcrumb": [c.id for c in session.breadcrumb()],
        "grid": rows,
    }


def _echo_grid(session: GridSession) -> None:
    trail = session.breadcrumb()
    typer.echo("Path: " + " > ".join(display_text(c) for c in trail))

    parent = session.store.parent_of_active()
    if parent is not None:
        typer.echo(f'Back to "{display_text(parent)}"')

    for r, row in enumerate(session.current_grid()):
        for c, cell in enumerate(row):
            if cell is None:
                typer.echo(f"({r},{c}) -")
                continue
            marker = ""
            if cell.is_center_topic:
                marker = " [center]"
            elif session.has_expanded_detail(cell.id):
                marker = " +"
            typer.echo(f"({r},{c}) {cell.id}: {display_text(cell)}{marker}")


def _check_format(format: str, allowed: tuple[str, ...], code: str) -> None:
    if format in allowed:
        return
    err = StateValidationError(
        code=code,
        message=f"unknown format: {format} (choose one of: {', '.join(allowed)})",
        file=None,
        path="format",
    )
    _print_errors([err])
    raise typer.Exit(code=2)


def _check_persisted(result: OpResult) -> None:
    if result.persisted:
        return
    _print_errors(
        [
            StateLoadError(
                code="W_PERSISTENCE_UNAVAILABLE",
                message="could not save the chart; the change was not kept",
                file=None,
                path="state_dir",
            )
        ]
    )
    raise typer.Exit(code=1)


def _warn_unknown_cell(cell_id: str) -> None:
    _print_errors(
        [
            StateValidationError(
                code="W_UNKNOWN_CELL",
                message=f"no cell with id {cell_id}; nothing changed",
                file=None,
                path="cell_id",
            )
        ]
    )


def _print_errors(errors: list[MandalaError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="mandala")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
