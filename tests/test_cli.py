from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent


def test_cli_runs_and_emits_artifacts(scene_file: str, tmp_path: Path):
    runs_dir = tmp_path / "runs"
    cmd = [
        sys.executable,
        str(REPO_ROOT / "scripts" / "project_world_uvs.py"),
        "--scene",
        scene_file,
        "--name",
        "two_boxes",
        "--runs-dir",
        str(runs_dir),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert "Run ID:" in proc.stdout
    assert "2 textured, 0 skipped" in proc.stdout

    run_dirs = sorted(path for path in runs_dir.iterdir() if path.is_dir())
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]

    assert (run_dir / "input" / "scene.glb").exists()
    assert (run_dir / "artifacts" / "textured.glb").exists()
    assert (run_dir / "summary.md").exists()

    metrics = json.loads((run_dir / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["mode"] == "per_vertex_normal"
    assert metrics["counts"]["meshes_textured"] == 2
    assert len(metrics["meshes"]) == 2

    manifest = json.loads((run_dir / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["config"]["weld"] is True
    assert manifest["artifacts"]["textured_glb"].endswith("textured.glb")


def test_cli_per_triangle_without_export(scene_file: str, tmp_path: Path):
    runs_dir = tmp_path / "runs"
    cmd = [
        sys.executable,
        str(REPO_ROOT / "scripts" / "project_world_uvs.py"),
        "--scene",
        scene_file,
        "--runs-dir",
        str(runs_dir),
        "--mode",
        "per_triangle_computed",
        "--no-export",
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert "Textured GLB:" not in proc.stdout


def test_cli_rejects_unknown_mode(scene_file: str, tmp_path: Path):
    cmd = [
        sys.executable,
        str(REPO_ROOT / "scripts" / "project_world_uvs.py"),
        "--scene",
        scene_file,
        "--runs-dir",
        str(tmp_path),
        "--mode",
        "planar",
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode != 0
    assert "invalid choice" in proc.stderr
