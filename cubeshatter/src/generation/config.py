"""Seed handling and randomness sources for deterministic destruction builds."""
from __future__ import annotations

import itertools
import os
import random
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

RandomSource = Callable[[], float]

_SEED_NAMES = ("shell_seed", "template_seed", "core_seed", "spawn_seed")


# //1.- Define dataclass to encapsulate every subsystem seed for reproducibility.
@dataclass(frozen=True)
class GenerationSeeds:
    """Seeds driving the stochastic parts of the destruction pipeline."""

    shell_seed: int = 0
    template_seed: int = 0
    core_seed: int = 0
    spawn_seed: int = 0

    # //2.- Build seeds from a mapping, falling back to zero for absent keys.
    @classmethod
    def from_mapping(cls, payload: Optional[Dict[str, int]] = None) -> "GenerationSeeds":
        if not payload:
            return cls()
        return cls(**{name: int(payload.get(name, 0)) for name in _SEED_NAMES})

    # //3.- Allow overriding seeds through environment variables for reproducing bug reports.
    @classmethod
    def from_environment(cls, prefix: str = "CUBESHATTER") -> "GenerationSeeds":
        mapping: Dict[str, int] = {}
        for name in _SEED_NAMES:
            raw = os.getenv(f"{prefix}_{name.upper()}")
            if raw is not None:
                mapping[name] = int(raw)
        return cls.from_mapping(mapping)

    # //4.- Derive every seed from a single integer for quick experiments.
    @classmethod
    def derived(cls, seed: int) -> "GenerationSeeds":
        return cls(
            shell_seed=seed,
            template_seed=seed + 1,
            core_seed=seed + 2,
            spawn_seed=seed + 3,
        )

    # //5.- Utility returning independent RNG objects for each subsystem.
    def create_generators(self) -> Dict[str, random.Random]:
        return {
            "shell": random.Random(self.shell_seed),
            "template": random.Random(self.template_seed),
            "core": random.Random(self.core_seed),
            "spawn": random.Random(self.spawn_seed),
        }


# //6.- Provide canonical configuration accessor used across modules.
def load_generation_config(
    mapping: Optional[Dict[str, int]] = None,
    *,
    env_prefix: str = "CUBESHATTER",
) -> GenerationSeeds:
    if mapping is not None:
        return GenerationSeeds.from_mapping(mapping)
    return GenerationSeeds.from_environment(prefix=env_prefix)


# //7.- Wrap a seeded generator into the zero-argument callable builders expect.
def random_source(seed: int) -> RandomSource:
    return random.Random(seed).random


# //8.- Replay a fixed list of values forever, used to pin builders to exact outputs.
def cycle_source(values: Iterable[float]) -> RandomSource:
    pool = [float(value) for value in values]
    if not pool:
        raise ValueError("cycle_source requires at least one value")
    for value in pool:
        if not 0.0 <= value < 1.0:
            raise ValueError(f"Random values must lie in [0, 1), got {value}")
    iterator = itertools.cycle(pool)
    return lambda: next(iterator)
