import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from mandala_planner.cli import app

runner = CliRunner()


def test_export_yaml(tmp_path: Path):
    state = tmp_path / "state"
    runner.invoke(app, ["--state-dir", str(state), "expand", "main_center_1_2"])
    runner.invoke(app, ["--state-dir", str(state), "edit", "main_center_1_2_0_0", "Savings"])

    out = tmp_path / "out" / "outline.yaml"
    r = runner.invoke(app, ["--state-dir", str(state), "export", "--out", str(out)])
    assert r.exit_code == 0, r.stdout + r.stderr

    data = yaml.safe_load(out.read_text(encoding="utf-8"))
    sub = [c for c in data["children"] if c["id"] == "main_center_1_2"][0]
    assert sub["active"] is True
    assert sub["children"][0]["text"] == "Savings"


def test_export_json_subtree(tmp_path: Path):
    state = tmp_path / "state"
    runner.invoke(app, ["--state-dir", str(state), "expand", "main_center_0_0"])
    out = tmp_path / "outline.json"
    r = runner.invoke(
        app,
        ["--state-dir", str(state), "export", "--out", str(out), "--format", "json", "--root", "main_center_0_0"],
    )
    assert r.exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["id"] == "main_center_0_0"
    assert len(data["children"]) == 8


def test_export_unknown_root(tmp_path: Path):
    r = runner.invoke(
        app,
        ["--state-dir", str(tmp_path), "export", "--out", str(tmp_path / "o.yaml"), "--root", "NOPE"],
    )
    assert r.exit_code == 2
    assert "E_EXPORT_UNKNOWN_ROOT" in r.stderr
