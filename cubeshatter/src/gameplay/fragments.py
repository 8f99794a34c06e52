"""Fragment records and per-cube destruction simulations."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .vector import IDENTITY, Quaternion, Vector3


# //1.- Visual and physical role of a debris fragment.
class FragmentKind(str, Enum):
    FACE_SHARD = "face_shard"
    EDGE_SHARD = "edge_shard"
    CORE_SHARD = "core_shard"
    DUST = "dust"


# //2.- Material bucket used by the instance renderer.
class FragmentMaterial(str, Enum):
    GOLD = "gold"
    FACE = "face"
    INNER = "inner"
    DUST = "dust"


MATERIAL_BY_KIND = {
    FragmentKind.FACE_SHARD: FragmentMaterial.FACE,
    FragmentKind.EDGE_SHARD: FragmentMaterial.GOLD,
    FragmentKind.CORE_SHARD: FragmentMaterial.INNER,
    FragmentKind.DUST: FragmentMaterial.DUST,
}


# //3.- Atlas sub-rectangle carried by face fragments.
@dataclass(frozen=True)
class FragmentUvRect:
    u0: float
    v0: float
    u1: float
    v1: float


# //4.- Board cell address of a cube.
@dataclass(frozen=True)
class CellId:
    x: int
    y: int

    def key(self) -> str:
        return f"{self.x}:{self.y}"


# //5.- A cube as the runtime sees it: board address plus world position.
@dataclass(frozen=True)
class CubeVisual:
    id: CellId
    world_pos: Vector3


# //6.- Cube extents along x, y and z in world units.
@dataclass(frozen=True)
class CubeSize:
    sx: float
    sy: float
    sz: float

    def __post_init__(self) -> None:
        if self.sx <= 0 or self.sy <= 0 or self.sz <= 0:
            raise ValueError("Cube size must be positive in all dimensions")


# //7.- Immutable particle state; the integrator returns updated copies.
@dataclass(frozen=True)
class Fragment:
    kind: FragmentKind
    position: Vector3
    velocity: Vector3
    rotation: Quaternion
    scale: Vector3
    angular_velocity: Vector3
    age_ms: float
    lifetime_ms: float
    fade: float
    instance_id: int
    material: FragmentMaterial
    uv_rect: Optional[FragmentUvRect] = None
    color_tint: Optional[float] = None
    template_id: Optional[int] = None
    linear_drag: Optional[float] = None
    angular_drag: Optional[float] = None
    rest_ms: float = 0.0


# //8.- Fresh fragment at age zero with full opacity.
def create_fragment(
    *,
    kind: FragmentKind,
    position: Vector3,
    velocity: Vector3,
    lifetime_ms: float,
    instance_id: int,
    rotation: Quaternion = IDENTITY,
    scale: Vector3 = (1.0, 1.0, 1.0),
    angular_velocity: Vector3 = (0.0, 0.0, 0.0),
    material: Optional[FragmentMaterial] = None,
    uv_rect: Optional[FragmentUvRect] = None,
    color_tint: Optional[float] = None,
    template_id: Optional[int] = None,
    linear_drag: Optional[float] = None,
    angular_drag: Optional[float] = None,
) -> Fragment:
    if lifetime_ms <= 0:
        raise ValueError(f"Fragment lifetime must be positive, got {lifetime_ms}")
    return Fragment(
        kind=kind,
        position=position,
        velocity=velocity,
        rotation=rotation,
        scale=scale,
        angular_velocity=angular_velocity,
        age_ms=0.0,
        lifetime_ms=float(lifetime_ms),
        fade=1.0,
        instance_id=instance_id,
        material=material or MATERIAL_BY_KIND[kind],
        uv_rect=uv_rect,
        color_tint=color_tint,
        template_id=template_id,
        linear_drag=linear_drag,
        angular_drag=angular_drag,
    )


# //9.- One exploding cube and the fragments it still owns.
@dataclass(frozen=True)
class CubeDestructionSim:
    cube: CubeVisual
    fragments: Tuple[Fragment, ...] = field(default_factory=tuple)
    started_at_ms: float = 0.0
    finished: bool = False


def create_cube_destruction_sim(
    cube: CubeVisual,
    fragments: Tuple[Fragment, ...] = (),
    started_at_ms: float = 0.0,
) -> CubeDestructionSim:
    return CubeDestructionSim(cube=cube, fragments=tuple(fragments), started_at_ms=started_at_ms)
