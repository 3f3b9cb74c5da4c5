"""
Run folders for scene projection runs.

A run lives in ``<runs_root>/<run_id>/``:

- ``input/`` holds a copy of the source scene;
- ``artifacts/textured.glb`` is the exported scene (unless export is off);
- ``metrics.json`` has per-mesh vertex, triangle and direction counts;
- ``manifest.json`` records the config and where every artifact went;
- ``summary.md`` is a short human-readable digest.
"""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from world_uv.contracts import WorldUVConfig
from world_uv.pipeline import WorldUVRunResult


def run_label(name: str) -> str:
    """Filesystem-safe form of a run name."""
    label = re.sub(r"[^A-Za-z0-9_-]+", "_", name.strip()).strip("_")
    return label or "world_uv"


@dataclass
class ProjectionRun:
    run_id: str
    run_dir: Path

    @classmethod
    def create(
        cls,
        runs_root: Path,
        name: str,
        now: Optional[datetime] = None,
    ) -> "ProjectionRun":
        """Make a fresh run folder named ``<utc stamp>_<name>``.

        Runs started within the same second get a numeric suffix.
        """
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d_%H%M%S")
        base_id = f"{stamp}_{run_label(name)}"
        runs_root = Path(runs_root)
        run_id, attempt = base_id, 1
        while (runs_root / run_id).exists():
            attempt += 1
            run_id = f"{base_id}_{attempt}"

        run = cls(run_id=run_id, run_dir=runs_root / run_id)
        run.input_dir.mkdir(parents=True)
        run.artifacts_dir.mkdir(parents=True)
        return run

    @property
    def input_dir(self) -> Path:
        return self.run_dir / "input"

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.json"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    def stage_scene(self, scene_path: str) -> Path:
        """Copy the source scene into ``input/`` and return the copy."""
        src = Path(scene_path)
        if not src.is_file():
            raise FileNotFoundError(f"Scene file not found: {scene_path}")
        dst = self.input_dir / src.name
        shutil.copy2(src, dst)
        return dst

    def record(
        self,
        result: WorldUVRunResult,
        config: WorldUVConfig,
        elapsed_s: float,
    ) -> None:
        """Write metrics, summary and manifest for a finished run."""
        _write_json(self.metrics_path, build_metrics(result, config, elapsed_s))
        self.summary_path.write_text(
            build_summary(result, elapsed_s), encoding="utf-8"
        )
        _write_json(self.manifest_path, self._manifest(result, config))

    def _manifest(self, result: WorldUVRunResult, config: WorldUVConfig) -> Dict[str, Any]:
        glb = None if result.output_path is None else str(result.output_path)
        return {
            "run_id": self.run_id,
            "design_name": config.design_name,
            "created_utc": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "input_scene": config.scene_path,
            "config": {
                "mode": config.mode.value,
                "weld": config.weld,
                "merge_tolerance": config.merge_tolerance,
                "export_glb": config.export_glb,
            },
            "artifacts": {
                "textured_glb": glb,
                "metrics": str(self.metrics_path),
                "summary": str(self.summary_path),
            },
        }


def build_metrics(
    result: WorldUVRunResult,
    config: WorldUVConfig,
    elapsed_s: float,
) -> Dict[str, Any]:
    return {
        "run_id": result.run_id,
        "elapsed_s": round(elapsed_s, 3),
        "mode": config.mode.value,
        "counts": {
            "meshes_textured": result.processed_count,
            "meshes_skipped": result.skipped_count,
            "vertices_out": sum(r.vertices_out for r in result.meshes),
            "triangles": sum(r.triangles for r in result.meshes),
        },
        "directions": result.direction_totals(),
        "meshes": [
            {
                "name": r.name,
                "skipped": r.skipped,
                "vertices_in": r.vertices_in,
                "vertices_out": r.vertices_out,
                "triangles": r.triangles,
                "directions": r.directions,
            }
            for r in result.meshes
        ],
    }


def build_summary(result: WorldUVRunResult, elapsed_s: float) -> str:
    lines = [
        f"# Run {result.run_id}",
        "",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Meshes: {result.processed_count} textured, {result.skipped_count} skipped",
        "",
        "## Face directions",
    ]
    totals = result.direction_totals()
    if totals:
        lines.extend(f"- {label}: {count}" for label, count in totals.items())
    else:
        lines.append("- none")
    lines.append("")
    return "\n".join(lines)


def _write_json(path: Path, payload: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
