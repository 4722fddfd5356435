"""Loader for material configuration (.emt) files."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from . import filesystem
from .log import get_logger
from .resource_loader import LoaderProperties, Resource, ResourceLoader, ResourceType

DEFAULT_DIFFUSE_NAME = "default_diffuse"
DEFAULT_SPECULAR_NAME = "default_specular"
DEFAULT_NORMAL_NAME = "default_normal"

_MAX_LINE = 511


@dataclass
class MaterialProperties:
    """Settings read from a material file."""

    name: str = ""
    shader_name: str = ""
    diffuse_colour: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    shininess: float = 0.0
    diffuse_map_name: str = ""
    specular_map_name: str = ""
    normal_map_name: str = ""


def _parse_floats(value: str, count: int) -> tuple[float, ...]:
    numbers: list[float] = []
    for token in value.split()[:count]:
        try:
            numbers.append(float(token))
        except ValueError:
            break
    return tuple(numbers + [0.0] * (count - len(numbers)))


def parse_material_configuration(lines: Iterable[str]) -> MaterialProperties:
    """Build material properties from ``key=value`` lines."""
    logger = get_logger()
    properties = MaterialProperties()
    for line_number, raw in enumerate(lines):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        variable, separator, value = line.partition("=")
        if not separator:
            logger.warning(
                "Potential formatting issue: '=' token not found on line number %d.", line_number
            )
            continue
        variable = variable.strip()
        value = value.strip()
        match variable:
            case "version":
                pass
            case "name":
                properties.name = value
            case "diffuse_map_name":
                properties.diffuse_map_name = value
            case "specular_map_name":
                properties.specular_map_name = value
            case "normal_map_name":
                properties.normal_map_name = value
            case "diffuse_colour":
                properties.diffuse_colour = _parse_floats(value, 4)  # type: ignore[assignment]
            case "shader":
                properties.shader_name = value
            case "shininess":
                properties.shininess = _parse_floats(value, 1)[0]
            case _:
                logger.error(
                    "Unknown variable: %s, with value: %s, on line %d", variable, value, line_number
                )
    return properties


def load_configuration_file(path: str | os.PathLike) -> MaterialProperties:
    """Read a material file; a missing file gives the default material."""
    if not filesystem.does_path_exist(path):
        return MaterialProperties(
            diffuse_colour=(1.0, 1.0, 1.0, 1.0),
            diffuse_map_name=DEFAULT_DIFFUSE_NAME,
            specular_map_name=DEFAULT_SPECULAR_NAME,
            normal_map_name=DEFAULT_NORMAL_NAME,
        )
    return parse_material_configuration(filesystem.read_lines(path, _MAX_LINE))


class MaterialLoader(ResourceLoader):
    """Loads ``<name>.emt`` material files."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.MATERIAL, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        filename = f"{self.base_path}/{name}.emt"
        properties = load_configuration_file(filename)
        return Resource(self.loader_type, name, filename, properties)

    def unload(self, resource: Resource) -> None:
        resource.data = None