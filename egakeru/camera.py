"""A free-flying camera with a Z-up view matrix."""

from __future__ import annotations

import math

import numpy as np

_WORLD_UP = np.array([0.0, 0.0, 1.0])


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def _look_at(eye: np.ndarray, center: np.ndarray, up: np.ndarray) -> np.ndarray:
    f = _normalize(center - eye)
    s = _normalize(np.cross(f, up))
    u = np.cross(s, f)
    view = np.identity(4)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[0, 3] = -np.dot(s, eye)
    view[1, 3] = -np.dot(u, eye)
    view[2, 3] = np.dot(f, eye)
    return view


class Camera:
    """Camera placed by a position and (roll, pitch, yaw) rotation in radians.

    Direction queries use the view matrix last computed by :meth:`view`.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._position = np.zeros(3)
        self._rotation = np.zeros(3)
        self._near_clip = 0.1
        self._far_clip = 1000.0
        self.aspect = 1.333
        self._view = self._compute_view()
        self._dirty = True

    def _compute_view(self) -> np.ndarray:
        pitch, yaw = self._rotation[1], self._rotation[2]
        front = np.array(
            [math.cos(pitch) * math.cos(yaw), math.cos(pitch) * math.sin(yaw), math.sin(pitch)]
        )
        return _look_at(self._position, self._position - front, _WORLD_UP)

    @property
    def position(self) -> np.ndarray:
        return self._position.copy()

    @position.setter
    def position(self, value) -> None:
        self._position = np.asarray(value, dtype=np.float64).reshape(3).copy()
        self._dirty = True

    @property
    def rotation(self) -> np.ndarray:
        return self._rotation.copy()

    @rotation.setter
    def rotation(self, value) -> None:
        self._rotation = np.asarray(value, dtype=np.float64).reshape(3).copy()
        self._dirty = True

    @property
    def near_clip(self) -> float:
        return self._near_clip

    @property
    def far_clip(self) -> float:
        return self._far_clip

    def reset(self) -> None:
        """Zero the position, rotation and view matrix."""
        self._position = np.zeros(3)
        self._rotation = np.zeros(3)
        self._dirty = False
        self._view = np.zeros((4, 4))

    def view(self) -> np.ndarray:
        """Return the view matrix, recomputing it if the camera moved."""
        if self._dirty:
            self._view = self._compute_view()
            self._dirty = False
        return self._view.copy()

    def _axis(self, column: int) -> np.ndarray:
        axis = np.linalg.inv(self._view)[:, column]
        return _normalize(axis)[:3]

    def forward(self) -> np.ndarray:
        return -self._axis(2)

    def back(self) -> np.ndarray:
        return self._axis(2)

    def left(self) -> np.ndarray:
        return -self._axis(0)

    def right(self) -> np.ndarray:
        return self._axis(0)

    def up(self) -> np.ndarray:
        return self._axis(1)

    def down(self) -> np.ndarray:
        return -self._axis(1)

    def _move(self, direction: np.ndarray, amount: float) -> None:
        self._position = self._position + direction * amount
        self._dirty = True

    def move_forward(self, amount: float) -> None:
        self._move(self.forward(), amount)

    def move_back(self, amount: float) -> None:
        self._move(self.back(), amount)

    def move_left(self, amount: float) -> None:
        self._move(self.left(), amount)

    def move_right(self, amount: float) -> None:
        self._move(self.right(), amount)

    def move_up(self, amount: float) -> None:
        self._move(_WORLD_UP, amount)

    def move_down(self, amount: float) -> None:
        self._move(-_WORLD_UP, amount)

    def yaw(self, amount: float) -> None:
        self._rotation[2] += amount
        self._dirty = True

    def pitch(self, amount: float) -> None:
        self._rotation[1] += amount
        self._dirty = True