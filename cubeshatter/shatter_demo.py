"""Small demonstration harness: build canonical shards and blow up a couple of tower rows."""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from .src.gameplay.board import Board, BoardToWorldMapper, CellContent
from .src.gameplay.lifecycle import (
    get_hidden_cube_ids,
    launch_scheduled_explosions,
    step_destruction_simulations,
)
from .src.gameplay.physics import physics_config_from_settings
from .src.gameplay.presets import get_preset
from .src.gameplay.schedule import start_line_destruction_from_board
from .src.gameplay.shard_fragments import build_shard_geometry_library, canonical_shard_resource
from .src.generation.canonical import build_canonical_shard_set
from .src.generation.config import GenerationSeeds, load_generation_config
from .src.generation.report import (
    GENERATED_SET_VOLUME_TOLERANCE,
    build_canonical_shard_report,
    export_canonical_shard_report,
    log_canonical_shard_report,
    validate_canonical_shard_volume,
)
from .src.generation.settings import load_destruction_settings
from .src.generation.shard_coverage import create_shard_template_set

LOGGER = logging.getLogger(__name__)

FRAME_MS = 16.0
MAX_FRAMES = 1200


def build_demo_board(width: int, height: int, levels: Sequence[int]) -> Board:
    board = Board(width, height)
    for level in levels:
        for x in range(width):
            board.set_cell(x, level, CellContent.BLOCK)
    return board


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Shatter a cube and simulate a row destruction wave.")
    ap.add_argument("--seed", type=int, default=None, help="Derive every generation seed from this value")
    ap.add_argument("--config-dir", type=str, default=None, help="Directory holding the JSON tuning files")
    ap.add_argument("--export", type=str, default=None, help="Write the canonical shard report to this JSON file")
    ap.add_argument("--width", type=int, default=12, help="Tower columns")
    ap.add_argument("--levels", type=int, nargs="+", default=[0, 1], help="Levels to destroy")
    ap.add_argument(
        "--library",
        choices=("canonical", "templates"),
        default="canonical",
        help="Spawn fragments from canonical shards or from the full-cube template library",
    )
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")

    seeds = GenerationSeeds.derived(args.seed) if args.seed is not None else load_generation_config()
    settings = load_destruction_settings(args.config_dir)
    shard_set = build_canonical_shard_set(seeds, settings)
    report = build_canonical_shard_report(shard_set.shards)
    log_canonical_shard_report(report)
    check = validate_canonical_shard_volume(shard_set.shards, tolerance=GENERATED_SET_VOLUME_TOLERANCE)
    LOGGER.info("Volume check ok=%s total=%.3f", check.ok, check.total_volume)
    if args.export:
        export_canonical_shard_report(report, filepath=args.export)
        LOGGER.info("Report written to %s", args.export)

    height = max(args.levels) + 1
    board = build_demo_board(args.width, height, args.levels)
    mapper = BoardToWorldMapper.for_board(board)
    state = start_line_destruction_from_board(
        board,
        mapper,
        args.levels,
        0.0,
        delay_between_cubes_ms=settings.schedule.delay_between_cubes_ms,
        preset=get_preset(settings.schedule.preset),
    )
    physics = physics_config_from_settings(settings.physics)
    generators = seeds.create_generators()
    spawn_rnd = generators["spawn"].random
    if args.library == "templates":
        template_set = create_shard_template_set(
            generators["template"].random,
            settings.templates.to_options(),
            min_covered_fraction=settings.templates.min_covered_fraction,
        )
        library = build_shard_geometry_library(template_set, spawn_rnd)
    else:
        library = [canonical_shard_resource(shard) for shard in shard_set.shards]
    LOGGER.info("Spawning from %d %s shard resources", len(library), args.library)

    now_ms = 0.0
    for frame in range(MAX_FRAMES):
        state = launch_scheduled_explosions(state, now_ms, spawn_rnd, library=library).state
        state = step_destruction_simulations(state, FRAME_MS, physics).state
        now_ms += FRAME_MS
        if frame % 60 == 0:
            hidden = sum(len(get_hidden_cube_ids(row)) for row in state.rows.per_level.values())
            fragments = sum(len(sim.fragments) for sim in state.active_cubes)
            LOGGER.info("t=%.0f ms hidden cubes=%d live fragments=%d", now_ms, hidden, fragments)
        if state.rows.finished:
            LOGGER.info("Destruction finished after %.0f ms", now_ms)
            return 0
    LOGGER.warning("Destruction still running after %d frames", MAX_FRAMES)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
