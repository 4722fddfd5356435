"""Rays and their intersection with boxes, planes and disks."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np


def _vec(values: Sequence[float] | np.ndarray, size: int = 3) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(size)


def _matrix(values: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(4, 4)


@dataclass
class Extent3D:
    """An axis-aligned box given by its minimum and maximum corners."""

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self) -> None:
        self.min = _vec(self.min)
        self.max = _vec(self.max)


@dataclass
class Plane:
    """The plane of points p with dot(p, normal) == distance."""

    normal: np.ndarray
    distance: float = 0.0

    def __post_init__(self) -> None:
        self.normal = _vec(self.normal)
        self.distance = float(self.distance)


class HitType(enum.Enum):
    """What a ray hit."""

    BOUNDING_BOX = enum.auto()
    SURFACE = enum.auto()


@dataclass
class Hit:
    """One intersection found by a ray cast."""

    type: HitType
    unique_id: int
    position: np.ndarray
    distance: float


@dataclass
class HitResult:
    """All intersections found by a ray cast; true when there is any."""

    hits: list[Hit] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.hits)


@dataclass
class Ray:
    """A half-line from ``origin`` along ``direction``."""

    origin: np.ndarray
    direction: np.ndarray

    def __post_init__(self) -> None:
        self.origin = _vec(self.origin)
        self.direction = _vec(self.direction)

    @classmethod
    def from_screen(cls, screen_position, viewport_rect, origin, view, projection) -> Ray:
        """Build the ray through a screen pixel of a viewport (x, y, width, height)."""
        screen_x, screen_y = screen_position
        rect_x, rect_y, rect_width, rect_height = (float(v) for v in viewport_rect)

        ndc_x = 2.0 * (screen_x - rect_x) / rect_width - 1.0
        ndc_y = 1.0 - 2.0 * (screen_y - rect_y) / rect_height

        clip = np.array([ndc_x, ndc_y, -1.0, 1.0])
        eye = np.linalg.inv(_matrix(projection)) @ clip
        eye[2] = -1.0
        eye[3] = 0.0

        world = np.linalg.inv(_matrix(view)) @ eye
        world = world / np.linalg.norm(world)
        return cls(origin, world[:3])

    def aabb(self, extents: Extent3D) -> np.ndarray | None:
        """Return the point where the ray enters the box, or None if it misses.

        A ray starting inside the box hits at its own origin.
        """
        lo, hi = extents.min, extents.max
        below = self.origin < lo
        above = self.origin > hi
        outside = below | above
        if not outside.any():
            return self.origin.copy()

        candidate = np.where(below, lo, np.where(above, hi, 0.0))
        max_t = np.full(3, -1.0)
        np.divide(
            candidate - self.origin,
            self.direction,
            out=max_t,
            where=outside & (self.direction != 0.0),
        )

        which_plane = int(np.argmax(max_t))
        t = max_t[which_plane]
        if t < 0.0:
            return None

        point = self.origin + t * self.direction
        point[which_plane] = candidate[which_plane]
        others = np.arange(3) != which_plane
        if (point[others] < lo[others]).any() or (point[others] > hi[others]).any():
            return None
        return point

    def oriented_extents(self, bb: Extent3D, model) -> float | None:
        """Return the distance to a box placed in the world by ``model``, or None."""
        model = _matrix(model)
        inverse = np.linalg.inv(model)
        local = Ray(
            (inverse @ np.append(self.origin, 1.0))[:3],
            (inverse @ np.append(self.direction, 0.0))[:3],
        )
        hit = local.aabb(bb)
        if hit is None:
            return None
        world = (model @ np.append(hit, 1.0))[:3]
        return float(np.linalg.norm(self.origin - world))

    def plane(self, plane: Plane | None) -> tuple[np.ndarray, float] | None:
        """Return the hit point and distance along the ray, for a front-facing plane."""
        if plane is None:
            return None
        normal_direction = float(np.dot(self.direction, plane.normal))
        point_normal = float(np.dot(self.origin, plane.normal))
        if normal_direction >= 0.0:
            return None
        t = (plane.distance - point_normal) / normal_direction
        if t < 0.0:
            return None
        return self.origin + t * self.direction, t

    def disk(
        self, plane: Plane | None, center, inner_radius: float, outer_radius: float
    ) -> tuple[np.ndarray, float] | None:
        """Intersect with a ring in ``plane``.

        The squared distance from ``center`` is compared with the radius bounds.
        """
        result = self.plane(plane)
        if result is None:
            return None
        point, _distance = result
        to_point = point - _vec(center)
        dist_sqr = float(np.dot(to_point, to_point))
        if dist_sqr < inner_radius or dist_sqr > outer_radius:
            return None
        return result