"""Loader for scene description files."""

from __future__ import annotations

import enum
import math
import os
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from . import filesystem
from .log import get_logger
from .resource_loader import (
    LoaderProperties,
    Resource,
    ResourceLoadError,
    ResourceLoader,
    ResourceType,
)

Float3 = tuple[float, float, float]
Float4 = tuple[float, float, float, float]

_MAX_LINE = 511
KNOWN_VERSION = 1

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class SceneParseError(ResourceLoadError):
    """Raised when a scene file is malformed."""


@dataclass
class DirectionalLightSceneConfiguration:
    name: str = ""
    colour: Float4 = (0.0, 0.0, 0.0, 0.0)
    direction: Float4 = (0.0, 0.0, 0.0, 0.0)


@dataclass
class PointLightSceneConfiguration:
    name: str = ""
    colour: Float4 = (0.0, 0.0, 0.0, 0.0)
    position: Float4 = (0.0, 0.0, 0.0, 0.0)
    constant: float = 0.0
    linear: float = 0.0
    quadratic: float = 0.0


@dataclass
class SkyboxSceneConfiguration:
    name: str = ""
    resource_name: str = ""


@dataclass
class MeshSceneConfiguration:
    """A mesh placed in the scene; ``euler_angles`` are in radians."""

    name: str = ""
    resource_name: str = ""
    parent_name: str = ""
    pos: Float3 = (0.0, 0.0, 0.0)
    euler_angles: Float3 = (0.0, 0.0, 0.0)
    scale: Float3 = (1.0, 1.0, 1.0)


@dataclass
class SceneConfiguration:
    name: str = ""
    description: str = ""
    directional_light: DirectionalLightSceneConfiguration = field(
        default_factory=DirectionalLightSceneConfiguration
    )
    skybox: SkyboxSceneConfiguration = field(default_factory=SkyboxSceneConfiguration)
    point_lights: list[PointLightSceneConfiguration] = field(default_factory=list)
    meshes: list[MeshSceneConfiguration] = field(default_factory=list)


class _Mode(enum.Enum):
    ROOT = "root"
    SCENE = "scene"
    DIRECTIONAL_LIGHT = "directional_light"
    POINT_LIGHT = "point_light"
    SKYBOX = "skybox"
    MESH = "mesh"


_OPEN_TAGS = {
    "[Scene]": _Mode.SCENE,
    "[DirectionalLight]": _Mode.DIRECTIONAL_LIGHT,
    "[Skybox]": _Mode.SKYBOX,
    "[PointLight]": _Mode.POINT_LIGHT,
    "[Mesh]": _Mode.MESH,
}
_CLOSE_TAGS = {
    "[/Scene]": _Mode.SCENE,
    "[/DirectionalLight]": _Mode.DIRECTIONAL_LIGHT,
    "[/Skybox]": _Mode.SKYBOX,
    "[/PointLight]": _Mode.POINT_LIGHT,
    "[/Mesh]": _Mode.MESH,
}


def _leading(pattern: re.Pattern[str], value: str, convert: Callable[[str], Any], what: str):
    match = pattern.match(value)
    if match is None:
        raise SceneParseError(f"Invalid value for {what}: {value!r}")
    return convert(match.group())


def _stream_floats(value: str, count: int) -> list[float]:
    """Read up to ``count`` floats, stopping at the first token that is not one."""
    numbers: list[float] = []
    for token in value.split()[:count]:
        try:
            numbers.append(float(token))
        except ValueError:
            break
    return numbers


def _vector4(value: str) -> Float4:
    numbers = _stream_floats(value, 4)
    return tuple(numbers + [0.0] * (4 - len(numbers)))  # type: ignore[return-value]


def _merge(current: tuple[float, ...], parsed: list[float]) -> tuple[float, ...]:
    return tuple(parsed[i] if i < len(parsed) else current[i] for i in range(len(current)))


def parse_scene_configuration(lines: Iterable[str]) -> SceneConfiguration:
    """Build a scene configuration from the lines of a scene file.

    Raises SceneParseError on mismatched section tags or malformed numbers.
    """
    logger = get_logger()
    configuration = SceneConfiguration()
    mode = _Mode.ROOT
    current_mesh = MeshSceneConfiguration()
    current_point_light = PointLightSceneConfiguration()

    for line_number, raw in enumerate(lines, start=1):
        if not raw or raw[0] == "#":
            continue
        line = raw.strip()

        if raw[0] == "[":
            variable, value = line, ""
        else:
            variable, separator, value = line.partition("=")
            if not separator:
                logger.warning(
                    "Potential formatting issue: '=' token not found on line number %d.",
                    line_number,
                )
                continue
            variable = variable.strip()
            value = value.strip()

        if variable == "!version":
            if mode is not _Mode.ROOT:
                logger.error("Attempted to read version whilst not in root mode.")
                continue
            version = _leading(_INT_PREFIX, value, int, "version")
            if version != KNOWN_VERSION:
                logger.warning("Scene version exceeds known version number")
        elif variable in _OPEN_TAGS:
            target = _OPEN_TAGS[variable]
            if mode is not _Mode.ROOT:
                raise SceneParseError(
                    f"Cannot enter {target.value} parsing from non-root parse mode"
                )
            mode = target
            if target is _Mode.POINT_LIGHT:
                current_point_light = PointLightSceneConfiguration()
            elif target is _Mode.MESH:
                current_mesh = MeshSceneConfiguration()
        elif variable in _CLOSE_TAGS:
            target = _CLOSE_TAGS[variable]
            if mode is not target:
                raise SceneParseError(
                    f"Cannot leave {target.value} parsing from non-{target.value} parse mode. "
                    "Potential mismatched tag?"
                )
            mode = _Mode.ROOT
            if target is _Mode.POINT_LIGHT:
                configuration.point_lights.append(current_point_light)
            elif target is _Mode.MESH:
                configuration.meshes.append(current_mesh)
        elif variable == "name":
            match mode:
                case _Mode.SCENE:
                    configuration.name = value
                case _Mode.DIRECTIONAL_LIGHT:
                    configuration.directional_light.name = value
                case _Mode.POINT_LIGHT:
                    current_point_light.name = value
                case _Mode.SKYBOX:
                    configuration.skybox.name = value
                case _Mode.MESH:
                    current_mesh.name = value
        elif variable == "description":
            if mode is _Mode.SCENE:
                configuration.description = value
        elif variable == "resource_name":
            if mode is _Mode.SKYBOX:
                configuration.skybox.resource_name = value
            elif mode is _Mode.MESH:
                current_mesh.resource_name = value
        elif variable == "colour":
            colour = _vector4(value)
            if mode is _Mode.DIRECTIONAL_LIGHT:
                configuration.directional_light.colour = colour
            elif mode is _Mode.POINT_LIGHT:
                current_point_light.colour = colour
        elif variable == "parent":
            current_mesh.parent_name = value
        elif variable == "constant":
            current_point_light.constant = _leading(_FLOAT_PREFIX, value, float, "constant")
        elif variable == "linear":
            current_point_light.linear = _leading(_FLOAT_PREFIX, value, float, "linear")
        elif variable == "quadratic":
            current_point_light.quadratic = _leading(_FLOAT_PREFIX, value, float, "quadratic")
        elif variable == "transform":
            numbers = _stream_floats(value, 9)
            current_mesh.pos = _merge(current_mesh.pos, numbers[0:3])  # type: ignore[assignment]
            degrees = _merge(current_mesh.euler_angles, numbers[3:6])
            current_mesh.euler_angles = tuple(math.radians(a) for a in degrees)  # type: ignore[assignment]
            current_mesh.scale = _merge(current_mesh.scale, numbers[6:9])  # type: ignore[assignment]
        elif variable == "direction":
            configuration.directional_light.direction = _vector4(value)
        elif variable == "position":
            current_point_light.position = _vector4(value)

    return configuration


def load_configuration_file(path: str | os.PathLike) -> SceneConfiguration:
    """Read and parse a scene file."""
    return parse_scene_configuration(filesystem.read_lines(path, _MAX_LINE))


class SceneLoader(ResourceLoader):
    """Loads scene files named with their extension."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.SCENE, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        filename = f"{self.base_path}/{name}"
        try:
            configuration = load_configuration_file(filename)
        except FileNotFoundError as exc:
            get_logger().error("Failed to load scene %s", name)
            raise ResourceLoadError(f"Failed to load scene {name}") from exc
        return Resource(ResourceType.SCENE, name, filename, configuration)

    def unload(self, resource: Resource) -> None:
        resource.data = None