"""Volume accounting for canonical shard sets."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .canonical import CanonicalShard, MaterialKind

LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET_VOLUME = 1.0
DEFAULT_VOLUME_TOLERANCE = 0.15
# Core cells are counted by bounding box, so generated sets total about 1.2 to 1.35.
GENERATED_SET_VOLUME_TOLERANCE = 0.5


# //1.- Count and volume statistics for one material bucket.
@dataclass(frozen=True)
class MaterialVolumeStats:
    count: int
    total_volume: float
    min_volume: float
    max_volume: float

    @property
    def average_volume(self) -> float:
        return self.total_volume / self.count if self.count else 0.0


# //2.- Aggregate statistics across a shard collection.
@dataclass(frozen=True)
class CanonicalShardReport:
    total_shards: int
    by_material: Dict[MaterialKind, MaterialVolumeStats]
    total_volume: float
    min_volume: float
    max_volume: float
    average_volume: float


# //3.- Outcome of the round-trip volume check against the enclosing cube.
@dataclass(frozen=True)
class CanonicalVolumeCheck:
    ok: bool
    total_volume: float
    expected_min: float
    expected_max: float
    tolerance: float
    target: float
    reason: Optional[str] = None


def _stats(volumes: Sequence[float]) -> MaterialVolumeStats:
    if not volumes:
        return MaterialVolumeStats(count=0, total_volume=0.0, min_volume=0.0, max_volume=0.0)
    return MaterialVolumeStats(
        count=len(volumes),
        total_volume=sum(volumes),
        min_volume=min(volumes),
        max_volume=max(volumes),
    )


# //4.- Negative volume estimates count as zero.
def build_canonical_shard_report(shards: Sequence[CanonicalShard]) -> CanonicalShardReport:
    volumes = [max(0.0, shard.approximate_volume) for shard in shards]
    by_material = {
        kind: _stats([max(0.0, shard.approximate_volume) for shard in shards if shard.material_kind == kind])
        for kind in MaterialKind
    }
    overall = _stats(volumes)
    return CanonicalShardReport(
        total_shards=len(shards),
        by_material=by_material,
        total_volume=overall.total_volume,
        min_volume=overall.min_volume,
        max_volume=overall.max_volume,
        average_volume=overall.average_volume,
    )


# //5.- Accept a shard set whose total volume lies within target * (1 +/- tolerance).
def validate_canonical_shard_volume(
    shards: Sequence[CanonicalShard],
    target_volume: float = DEFAULT_TARGET_VOLUME,
    tolerance: float = DEFAULT_VOLUME_TOLERANCE,
) -> CanonicalVolumeCheck:
    if target_volume <= 0:
        raise ValueError("Target volume must be positive")
    if tolerance < 0:
        raise ValueError("Volume tolerance must be non-negative")
    report = build_canonical_shard_report(shards)
    expected_min = target_volume * (1.0 - tolerance)
    expected_max = target_volume * (1.0 + tolerance)
    ok = expected_min <= report.total_volume <= expected_max
    reason = None
    if not ok:
        reason = (
            f"total volume {report.total_volume:.4f} outside expected range "
            f"[{expected_min:.4f}, {expected_max:.4f}]"
        )
    return CanonicalVolumeCheck(
        ok=ok,
        total_volume=report.total_volume,
        expected_min=expected_min,
        expected_max=expected_max,
        tolerance=tolerance,
        target=target_volume,
        reason=reason,
    )


def assert_canonical_shard_volume(
    shards: Sequence[CanonicalShard],
    target_volume: float = DEFAULT_TARGET_VOLUME,
    tolerance: float = DEFAULT_VOLUME_TOLERANCE,
) -> None:
    check = validate_canonical_shard_volume(shards, target_volume, tolerance)
    if not check.ok:
        raise ValueError(check.reason or "canonical shard volume validation failed")


# //6.- Emit the report through the module logger.
def log_canonical_shard_report(report: CanonicalShardReport) -> None:
    LOGGER.info(
        "Canonical shards: %d total, volume total=%.4f min=%.4f max=%.4f avg=%.4f",
        report.total_shards,
        report.total_volume,
        report.min_volume,
        report.max_volume,
        report.average_volume,
    )
    for kind, stats in report.by_material.items():
        LOGGER.info("  %s: count=%d volume=%.4f", kind.value, stats.count, stats.total_volume)


# //7.- Export the report to JSON for offline inspection.
def export_canonical_shard_report(
    report: CanonicalShardReport,
    *,
    filepath: str,
) -> None:
    payload = {
        "total_shards": report.total_shards,
        "total_volume": report.total_volume,
        "min_volume": report.min_volume,
        "max_volume": report.max_volume,
        "average_volume": report.average_volume,
        "by_material": {
            kind.value: {
                "count": stats.count,
                "total_volume": stats.total_volume,
                "min_volume": stats.min_volume,
                "max_volume": stats.max_volume,
                "average_volume": stats.average_volume,
            }
            for kind, stats in report.by_material.items()
        },
    }
    with open(filepath, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
