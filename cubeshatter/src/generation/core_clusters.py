"""Greedy flood-fill grouping of volume cells into contiguous core chunks."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import RandomSource
from .core_grid import VolumeCell

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_CLUSTER_SIZE = 3
DEFAULT_MAX_CLUSTER_SIZE = 6
_SAME_AXIS_FACTOR = 0.65
_NEAR_AXIS_FACTOR = 1.35


# //1.- A core chunk references its cells by id; the cell arena stays owned by the caller.
@dataclass(frozen=True)
class CoreShardCluster:
    id: int
    cell_ids: Tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.cell_ids)


# //2.- Verdict of the exactly-once coverage check.
@dataclass(frozen=True)
class ClusterValidation:
    ok: bool
    reason: Optional[str] = None


# //3.- Fisher-Yates shuffle that returns a new list and leaves the input untouched.
def shuffled(items: Sequence[int], rnd: RandomSource) -> List[int]:
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(math.floor(rnd() * (i + 1)))
        result[i], result[j] = result[j], result[i]
    return result


# //4.- Heuristic adjacency: close on two axes and within one cell diagonal on the third.
def are_neighbors(a: VolumeCell, b: VolumeCell) -> bool:
    deltas = (
        abs(a.center.x - b.center.x),
        abs(a.center.y - b.center.y),
        abs(a.center.z - b.center.z),
    )
    base = max(a.size_hint.max_component(), b.size_hint.max_component())
    close = sum(1 for delta in deltas if delta < base * _SAME_AXIS_FACTOR)
    return close >= 2 and max(deltas) < base * _NEAR_AXIS_FACTOR


def _resolve_sizes(min_size: int, max_size: int) -> Tuple[int, int]:
    minimum = max(2, int(math.floor(min_size)))
    maximum = max(minimum, int(math.floor(max_size)))
    return minimum, maximum


def _absorb_neighbors(
    seed: int,
    pool: List[int],
    cells: Sequence[VolumeCell],
    target: int,
) -> Tuple[List[int], List[int]]:
    members = [seed]
    queue = [seed]
    while queue and len(members) < target:
        current = queue.pop(0)
        kept: List[int] = []
        for candidate in pool:
            if len(members) < target and are_neighbors(cells[current], cells[candidate]):
                members.append(candidate)
                queue.append(candidate)
            else:
                kept.append(candidate)
        pool = kept
    return members, pool


# //5.- Grow clusters from shuffled seeds, then borrow or donate cells so every chunk meets the minimum.
def build_core_shard_clusters(
    cells: Sequence[VolumeCell],
    rnd: RandomSource,
    *,
    min_size: int = DEFAULT_MIN_CLUSTER_SIZE,
    max_size: int = DEFAULT_MAX_CLUSTER_SIZE,
) -> List[CoreShardCluster]:
    if not cells:
        return []
    minimum, maximum = _resolve_sizes(min_size, max_size)
    pool = shuffled(range(len(cells)), rnd)
    groups: List[List[int]] = []

    while pool:
        seed, pool = pool[0], pool[1:]
        target = min(maximum, max(minimum, int(math.floor(minimum + rnd() * (maximum - minimum + 1)))))
        members, pool = _absorb_neighbors(seed, pool, cells, target)

        if len(members) < minimum and pool:
            needed = minimum - len(members)
            members, pool = members + pool[-needed:], pool[:-needed]

        if len(members) < minimum and groups:
            donor = next((group for group in reversed(groups) if len(group) > minimum), None)
            if donor is not None:
                spare = min(len(donor) - minimum, minimum - len(members))
                moved = donor[len(donor) - spare:]
                del donor[len(donor) - spare:]
                members = members + moved
                LOGGER.debug("Borrowed %d cells from an earlier cluster", spare)
            if len(members) < minimum:
                groups[-1].extend(members)
                LOGGER.debug("Donated %d undersized cells into the previous cluster", len(members))
                continue

        groups.append(members)

    clusters = [
        CoreShardCluster(id=index, cell_ids=tuple(cells[i].id for i in group)) for index, group in enumerate(groups)
    ]
    LOGGER.debug("Clustered %d cells into %d core shards", len(cells), len(clusters))
    return clusters


# //6.- Every cell id must appear in exactly one cluster.
def validate_clusters(cells: Sequence[VolumeCell], clusters: Sequence[CoreShardCluster]) -> ClusterValidation:
    counts: Dict[int, int] = {}
    for cluster in clusters:
        for cell_id in cluster.cell_ids:
            counts[cell_id] = counts.get(cell_id, 0) + 1
    expected = {cell.id for cell in cells}
    if any(count > 1 for count in counts.values()):
        return ClusterValidation(ok=False, reason="duplicate cell assignment")
    if set(counts) != expected:
        return ClusterValidation(ok=False, reason="not all cells covered")
    return ClusterValidation(ok=True)


# //7.- Raise when the coverage check fails.
def ensure_clusters_cover_cells(cells: Sequence[VolumeCell], clusters: Sequence[CoreShardCluster]) -> None:
    result = validate_clusters(cells, clusters)
    if not result.ok:
        raise ValueError(f"Core cluster validation failed: {result.reason}")


# //8.- Resolve the cells owned by one cluster from the arena.
def cluster_cells(cluster: CoreShardCluster, cells: Sequence[VolumeCell]) -> List[VolumeCell]:
    by_id = {cell.id: cell for cell in cells}
    try:
        return [by_id[cell_id] for cell_id in cluster.cell_ids]
    except KeyError as error:
        raise KeyError(f"Cluster {cluster.id} references unknown cell {error.args[0]}") from None
