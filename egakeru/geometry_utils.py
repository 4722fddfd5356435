"""Vertex helpers: tangent generation and vertex de-duplication."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .log import get_logger

Float2 = tuple[float, float]
Float3 = tuple[float, float, float]
Float4 = tuple[float, float, float, float]


@dataclass
class Vertex3D:
    """A mesh vertex."""

    position: Float3 = (0.0, 0.0, 0.0)
    normal: Float3 = (0.0, 0.0, 0.0)
    tex: Float2 = (0.0, 0.0)
    tangent: Float4 = (0.0, 0.0, 0.0, 0.0)


def _sub(a: Float3, b: Float3) -> Float3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _normalize(v: Float3) -> Float3:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length == 0.0:
        return (math.nan, math.nan, math.nan)
    return (v[0] / length, v[1] / length, v[2] / length)


def generate_tangents(vertices: Sequence[Vertex3D], indices: Sequence[int]) -> None:
    """Set the tangent of every vertex of each indexed triangle in place."""
    for start in range(0, len(indices) - 2, 3):
        i0, i1, i2 = indices[start], indices[start + 1], indices[start + 2]
        v0, v1, v2 = vertices[i0], vertices[i1], vertices[i2]

        edge1 = _sub(v1.position, v0.position)
        edge2 = _sub(v2.position, v0.position)

        delta_u1 = v1.tex[0] - v0.tex[0]
        delta_v1 = v1.tex[1] - v0.tex[1]
        delta_u2 = v2.tex[0] - v0.tex[0]
        delta_v2 = v2.tex[1] - v0.tex[1]

        dividend = delta_u1 * delta_v2 - delta_u2 * delta_v1
        fc = 1.0 / dividend if dividend != 0.0 else math.copysign(math.inf, dividend)

        tangent = _normalize(
            tuple(
                fc * (delta_v2 * e1 - delta_v1 * e2) for e1, e2 in zip(edge1, edge2)
            )  # type: ignore[arg-type]
        )

        handedness = -1.0 if (delta_v1 * delta_u2 - delta_v2 * delta_u1) < 0.0 else 1.0
        t4 = (*tangent, handedness)
        v0.tangent = t4
        v1.tangent = t4
        v2.tangent = t4


def reassign_index(indices: Sequence[int], from_index: int, to_index: int) -> list[int]:
    """Point ``from_index`` at ``to_index`` and close the gap it leaves."""
    return [
        to_index if index == from_index else index - 1 if index > from_index else index
        for index in indices
    ]


def deduplicate_vertices(
    vertices: Sequence[Vertex3D], indices: Sequence[int]
) -> tuple[list[Vertex3D], list[int]]:
    """Return the unique vertices and the indices remapped onto them."""
    unique: list[Vertex3D] = []
    remapped = list(indices)
    removed = 0
    for position, vertex in enumerate(vertices):
        match = next((u for u, kept in enumerate(unique) if kept == vertex), None)
        if match is None:
            unique.append(vertex)
        else:
            remapped = reassign_index(remapped, position - removed, match)
            removed += 1
    get_logger().info(
        "Removed %d vertices. Original/Remaining: %d/%d", removed, len(vertices), len(unique)
    )
    return unique, remapped