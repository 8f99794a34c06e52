"""Tests for seed handling and JSON tuning settings."""
from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from cubeshatter.cube_space import Face
from cubeshatter.src.generation.config import (
    GenerationSeeds,
    cycle_source,
    load_generation_config,
    random_source,
)
from cubeshatter.src.generation.settings import load_destruction_settings
from cubeshatter.src.generation.shard_templates import DEFAULT_DEPTH_RANGES, CountRange
from cubeshatter.src.generation.shell_templates import DepthRange

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _copy_config(tmp_path: Path) -> Path:
    target = tmp_path / "config"
    shutil.copytree(CONFIG_DIR, target)
    return target


def _rewrite(path: Path, **updates) -> None:
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload.update(updates)
    path.write_text(json.dumps(payload), encoding="utf-8")


# //1.- Packaged defaults load into typed sections.
def test_default_settings_load():
    settings = load_destruction_settings()
    assert settings.shell.seed_count == 5
    assert settings.shell.depth_range.max == pytest.approx(0.2)
    assert settings.shell.shell_depth == pytest.approx(0.2)
    assert settings.shell.core_half == pytest.approx(0.3)
    assert settings.templates.face_counts[Face.FRONT] == CountRange(18, 32)
    assert settings.templates.to_options().layered is True
    assert settings.templates.to_options().depth_ranges == DEFAULT_DEPTH_RANGES
    assert settings.core.divisions == 5
    assert settings.physics.gravity == (0.0, -9.81, 0.0)
    assert settings.physics.floor_y == 0.0
    assert settings.physics.radial_max_radius == 12.0
    assert settings.physics.rest_speed_threshold == pytest.approx(0.4)
    assert settings.schedule.delay_between_cubes_ms == 45.0
    assert settings.schedule.preset == "ultra"


def test_disabled_sections_become_none(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "physics.json", floor=None, radial=None, rest_fade=None)
    physics = load_destruction_settings(str(config_dir)).physics
    assert physics.floor_y is None
    assert physics.radial_max_radius is None
    assert physics.rest_speed_threshold is None


# //2.- Invalid values are rejected while loading.
def test_invalid_delay_is_rejected(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "schedule.json", delay_between_cubes_ms=0)
    with pytest.raises(ValueError):
        load_destruction_settings(str(config_dir))


def test_shell_depth_beyond_slab_is_rejected(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "shell.json", depth_max=0.3)
    with pytest.raises(ValueError):
        load_destruction_settings(str(config_dir))


def test_shell_depth_is_configurable_and_validated(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "shell.json", shell_depth=0.15, depth_min=0.05, depth_max=0.15)
    shell = load_destruction_settings(str(config_dir)).shell
    assert shell.shell_depth == pytest.approx(0.15)
    assert shell.core_half == pytest.approx(0.35)
    assert shell.depth_range == DepthRange(0.05, 0.15)

    _rewrite(config_dir / "shell.json", shell_depth=0.5)
    with pytest.raises(ValueError):
        load_destruction_settings(str(config_dir))


def test_shell_depth_range_defaults_follow_shell_depth(tmp_path):
    config_dir = _copy_config(tmp_path)
    payload = {"seed_count": 6, "shell_depth": 0.1}
    (config_dir / "shell.json").write_text(json.dumps(payload), encoding="utf-8")
    shell = load_destruction_settings(str(config_dir)).shell
    assert shell.depth_range.min == pytest.approx(0.05)
    assert shell.depth_range.max == pytest.approx(0.1)


def test_core_cluster_band_is_validated(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "core.json", min_cluster_size=4, max_cluster_size=3)
    with pytest.raises(ValueError):
        load_destruction_settings(str(config_dir))


# //3.- Template depth ranges are read per face and reach the generator options.
def test_template_depth_ranges_are_loaded(tmp_path):
    config_dir = _copy_config(tmp_path)
    _rewrite(config_dir / "templates.json", depth_ranges={"FRONT": [0.1, 0.2], "back": [0.3, 0.6]})
    templates = load_destruction_settings(str(config_dir)).templates
    assert templates.depth_ranges == {Face.FRONT: DepthRange(0.1, 0.2), Face.BACK: DepthRange(0.3, 0.6)}
    options = templates.to_options()
    assert options.depth_ranges[Face.FRONT] == DepthRange(0.1, 0.2)
    assert options.depth_ranges[Face.BACK] == DepthRange(0.3, 0.6)

    _rewrite(config_dir / "templates.json", depth_ranges={"left": [0.4, 0.2]})
    with pytest.raises(ValueError):
        load_destruction_settings(str(config_dir))


# //4.- Seeds come from mappings, the environment or a single derived integer.
def test_seeds_from_environment(monkeypatch):
    monkeypatch.setenv("CUBESHATTER_SHELL_SEED", "12")
    monkeypatch.setenv("CUBESHATTER_SPAWN_SEED", "7")
    seeds = load_generation_config()
    assert seeds == GenerationSeeds(shell_seed=12, template_seed=0, core_seed=0, spawn_seed=7)


def test_seeds_from_mapping_and_derivation():
    assert load_generation_config({"core_seed": 3}).core_seed == 3
    assert GenerationSeeds.from_mapping(None) == GenerationSeeds()
    assert GenerationSeeds.derived(10) == GenerationSeeds(10, 11, 12, 13)
    generators = GenerationSeeds.derived(10).create_generators()
    assert set(generators) == {"shell", "template", "core", "spawn"}


def test_random_sources_are_deterministic():
    first = random_source(5)
    second = random_source(5)
    assert [first() for _ in range(4)] == [second() for _ in range(4)]
    cycled = cycle_source([0.1, 0.9])
    assert [cycled() for _ in range(3)] == [0.1, 0.9, 0.1]
    with pytest.raises(ValueError):
        cycle_source([])
    with pytest.raises(ValueError):
        cycle_source([1.0])
