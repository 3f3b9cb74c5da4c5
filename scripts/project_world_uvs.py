#!/usr/bin/env python3
"""Project world-space UVs onto every mesh of a scene file."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from world_uv import ProjectionMode, WorldUVConfig, run_world_uv_pipeline
from world_uv.contracts import MERGE_TOLERANCE
from world_uv.runs import ProjectionRun


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assign tiling world-space UVs to an imported scene"
    )
    parser.add_argument(
        "--scene", required=True, help="Path to input scene (.glb/.gltf/.obj/.stl/.ply)"
    )
    parser.add_argument("--name", default="world_uv", help="Run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ProjectionMode],
        default=ProjectionMode.PER_VERTEX_NORMAL.value,
        help="Normal source driving the projection",
    )
    parser.add_argument(
        "--no-weld",
        action="store_true",
        help="Keep imported vertices unmerged in per-vertex mode",
    )
    parser.add_argument(
        "--merge-tolerance",
        type=float,
        default=MERGE_TOLERANCE,
        help="Weld distance in world units",
    )
    parser.add_argument(
        "--no-export", action="store_true", help="Skip writing textured.glb"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    started = time.perf_counter()
    run = ProjectionRun.create(Path(args.runs_dir), args.name)
    staged_scene = run.stage_scene(args.scene)

    config = WorldUVConfig(
        scene_path=str(staged_scene),
        design_name=args.name,
        mode=ProjectionMode(args.mode),
        weld=not args.no_weld,
        merge_tolerance=max(0.0, float(args.merge_tolerance)),
        export_glb=not args.no_export,
    )
    result = run_world_uv_pipeline(
        config=config,
        run_id=run.run_id,
        artifacts_dir=run.artifacts_dir,
    )
    run.record(result, config, elapsed_s=time.perf_counter() - started)

    print(f"Run ID: {result.run_id}")
    print(f"Run dir: {run.run_dir}")
    print(f"Meshes: {result.processed_count} textured, {result.skipped_count} skipped")
    if result.output_path is not None:
        print(f"Textured GLB: {result.output_path}")
    print(f"Metrics: {run.metrics_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
