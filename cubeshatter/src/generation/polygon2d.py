"""Planar polygon helpers for face-local shard outlines."""
from __future__ import annotations

from typing import List, Sequence, Tuple

Point2 = Tuple[float, float]

AREA_EPSILON = 1e-6
_DUPLICATE_DISTANCE_SQ = 1e-10


# //1.- Shoelace signed area, positive for counter-clockwise rings.
def signed_area(points: Sequence[Point2]) -> float:
    total = 0.0
    count = len(points)
    for index in range(count):
        x0, y0 = points[index]
        x1, y1 = points[(index + 1) % count]
        total += x0 * y1 - x1 * y0
    return total * 0.5


# //2.- Unsigned polygon area.
def polygon_area(points: Sequence[Point2]) -> float:
    return abs(signed_area(points))


# //3.- Area-weighted centroid with a vertex-average fallback for slivers.
def polygon_centroid(points: Sequence[Point2]) -> Point2:
    if not points:
        raise ValueError("Cannot compute the centroid of an empty polygon")
    area = signed_area(points)
    if abs(area) < 1e-12:
        count = float(len(points))
        return sum(p[0] for p in points) / count, sum(p[1] for p in points) / count
    cx = 0.0
    cy = 0.0
    count = len(points)
    for index in range(count):
        x0, y0 = points[index]
        x1, y1 = points[(index + 1) % count]
        cross = x0 * y1 - x1 * y0
        cx += (x0 + x1) * cross
        cy += (y0 + y1) * cross
    factor = 1.0 / (6.0 * area)
    return cx * factor, cy * factor


# //4.- Reorder a ring so it winds counter-clockwise.
def ensure_ccw(points: Sequence[Point2]) -> List[Point2]:
    ring = list(points)
    if signed_area(ring) < 0.0:
        ring.reverse()
    return ring


# //5.- Drop consecutive vertices that collapse onto each other, including the closing pair.
def dedupe_consecutive(points: Sequence[Point2]) -> List[Point2]:
    result: List[Point2] = []
    for point in points:
        if result and _distance_sq(result[-1], point) <= _DUPLICATE_DISTANCE_SQ:
            continue
        result.append(point)
    while len(result) > 1 and _distance_sq(result[0], result[-1]) <= _DUPLICATE_DISTANCE_SQ:
        result.pop()
    return result


def _distance_sq(a: Point2, b: Point2) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


# //6.- Sutherland-Hodgman clip keeping the half-plane where normal . p - distance <= 0.
def clip_half_plane(points: Sequence[Point2], normal: Point2, distance: float) -> List[Point2]:
    count = len(points)
    if count == 0:
        return []
    nx, ny = normal
    clipped: List[Point2] = []
    for index in range(count):
        current = points[index]
        following = points[(index + 1) % count]
        d_current = nx * current[0] + ny * current[1] - distance
        d_following = nx * following[0] + ny * following[1] - distance
        current_inside = d_current <= 0.0
        following_inside = d_following <= 0.0
        if current_inside != following_inside:
            t = d_current / (d_current - d_following)
            clipped.append(
                (
                    current[0] + (following[0] - current[0]) * t,
                    current[1] + (following[1] - current[1]) * t,
                )
            )
        if following_inside:
            clipped.append(following)
    return dedupe_consecutive(clipped)


# //7.- Split a polygon by a line into the negative and positive half-plane parts.
def split_by_line(points: Sequence[Point2], normal: Point2, distance: float) -> Tuple[List[Point2], List[Point2]]:
    negative = clip_half_plane(points, normal, distance)
    positive = clip_half_plane(points, (-normal[0], -normal[1]), -distance)
    return negative, positive


# //8.- Even-odd ray casting point containment test.
def point_in_polygon(point: Point2, polygon: Sequence[Point2]) -> bool:
    px, py = point
    inside = False
    count = len(polygon)
    j = count - 1
    for i in range(count):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            crossing = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < crossing:
                inside = not inside
        j = i
    return inside


# //9.- Axis-aligned bounding box as (min_x, min_y, max_x, max_y).
def bounding_box(points: Sequence[Point2]) -> Tuple[float, float, float, float]:
    if not points:
        raise ValueError("Cannot compute the bounding box of an empty polygon")
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)


# //10.- Clamp a point into the face square.
def clamp_to_square(point: Point2, half: float = 0.5) -> Point2:
    return max(-half, min(half, point[0])), max(-half, min(half, point[1]))


# //11.- Check every vertex lies inside the face square with tolerance.
def is_within_square(points: Sequence[Point2], half: float = 0.5, tolerance: float = 1e-9) -> bool:
    limit = half + tolerance
    return all(abs(x) <= limit and abs(y) <= limit for x, y in points)


# //12.- Insert one midpoint after every vertex, doubling the vertex count.
def subdivide_edges(points: Sequence[Point2]) -> List[Point2]:
    result: List[Point2] = []
    count = len(points)
    for index in range(count):
        current = points[index]
        following = points[(index + 1) % count]
        result.append(current)
        result.append(((current[0] + following[0]) * 0.5, (current[1] + following[1]) * 0.5))
    return result


# //13.- Grow a ring to an exact vertex count by splitting its longest edges.
def align_vertex_count(points: Sequence[Point2], target: int) -> List[Point2]:
    ring = list(points)
    if len(ring) < 3:
        raise ValueError("Cannot align a polygon with fewer than 3 vertices")
    if target < len(ring):
        raise ValueError(f"Cannot shrink a {len(ring)}-vertex ring to {target} vertices")
    while len(ring) < target:
        longest = max(range(len(ring)), key=lambda i: _distance_sq(ring[i], ring[(i + 1) % len(ring)]))
        start = ring[longest]
        end = ring[(longest + 1) % len(ring)]
        ring.insert(longest + 1, ((start[0] + end[0]) * 0.5, (start[1] + end[1]) * 0.5))
    return ensure_ccw(ring)

