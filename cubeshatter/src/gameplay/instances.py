"""Per-instance transforms handed to an instanced renderer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .fragments import Fragment, FragmentMaterial, FragmentUvRect
from .vector import Quaternion, Vector3


# //1.- Transform, fade and tint for one fragment instance.
@dataclass(frozen=True)
class FragmentInstanceUpdate:
    instance_id: int
    position: Vector3
    rotation: Quaternion
    scale: Vector3
    fade: float
    material: FragmentMaterial
    uv_rect: Optional[FragmentUvRect] = None
    color_tint: Optional[float] = None
    template_id: Optional[int] = None


# //2.- Snapshot fragments as renderer updates; matrices are left to the consumer.
def build_fragment_instance_updates(fragments: Sequence[Fragment]) -> List[FragmentInstanceUpdate]:
    return [
        FragmentInstanceUpdate(
            instance_id=fragment.instance_id,
            position=fragment.position,
            rotation=fragment.rotation,
            scale=fragment.scale,
            fade=fragment.fade,
            material=fragment.material,
            uv_rect=fragment.uv_rect,
            color_tint=fragment.color_tint,
            template_id=fragment.template_id,
        )
        for fragment in fragments
    ]


def _rotation_matrix(rotation: Quaternion) -> np.ndarray:
    x, y, z, w = rotation
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


# //3.- Compose translation * rotation * scale into an (N, 4, 4) float32 stack.
def to_instance_matrices(updates: Sequence[FragmentInstanceUpdate], *, apply_scale: bool = True) -> np.ndarray:
    matrices = np.zeros((len(updates), 4, 4), dtype=np.float32)
    for index, update in enumerate(updates):
        scale = np.asarray(update.scale if apply_scale else (1.0, 1.0, 1.0), dtype=np.float64)
        matrices[index, :3, :3] = _rotation_matrix(update.rotation) * scale[np.newaxis, :]
        matrices[index, :3, 3] = update.position
        matrices[index, 3, 3] = 1.0
    return matrices
