"""Loader for shader configuration (.shadercfg) files."""

from __future__ import annotations

import enum
import os
import re
from collections.abc import Iterable
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

_MAX_LINE = 511
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


class CullMode(enum.Enum):
    FRONT = "front"
    BACK = "back"
    BOTH = "both"


class ShaderStage(enum.Enum):
    VERTEX = enum.auto()
    GEOMETRY = enum.auto()
    FRAGMENT = enum.auto()
    COMPUTE = enum.auto()


class ShaderFlags(enum.Flag):
    NONE = 0
    DEPTH_TEST = enum.auto()
    DEPTH_WRITE = enum.auto()


class PrimitiveTopology(enum.Flag):
    NONE = 0
    POINT_LIST = enum.auto()
    LINE_LIST = enum.auto()
    LINE_STRIP = enum.auto()
    TRIANGLE_LIST = enum.auto()
    TRIANGLE_STRIP = enum.auto()
    TRIANGLE_FAN = enum.auto()


class AttributeType(enum.Enum):
    FLOAT32_1 = enum.auto()
    FLOAT32_2 = enum.auto()
    FLOAT32_3 = enum.auto()
    FLOAT32_4 = enum.auto()
    UINT8 = enum.auto()
    UINT16 = enum.auto()
    UINT32 = enum.auto()
    INT8 = enum.auto()
    INT16 = enum.auto()
    INT32 = enum.auto()


class UniformType(enum.Enum):
    FLOAT32_1 = enum.auto()
    FLOAT32_2 = enum.auto()
    FLOAT32_3 = enum.auto()
    FLOAT32_4 = enum.auto()
    UINT8 = enum.auto()
    UINT16 = enum.auto()
    UINT32 = enum.auto()
    INT8 = enum.auto()
    INT16 = enum.auto()
    INT32 = enum.auto()
    MAT4X4 = enum.auto()
    SAMPLER = enum.auto()
    CUSTOM = enum.auto()


class ShaderScope(enum.Enum):
    GLOBAL = 0
    INSTANCE = 1
    LOCAL = 2


@dataclass
class AttributeConfiguration:
    """A vertex attribute; ``type`` is None when the type name was not recognised."""

    name: str = ""
    type: AttributeType | None = None
    size: int = 0


@dataclass
class UniformConfiguration:
    """A uniform; ``type`` and ``scope`` are None when not recognised."""

    name: str = ""
    type: UniformType | None = None
    size: int = 0
    scope: ShaderScope | None = None


@dataclass
class ShaderProperties:
    name: str = ""
    flags: ShaderFlags = ShaderFlags.NONE
    cull_mode: CullMode = CullMode.BACK
    topology_types: PrimitiveTopology = PrimitiveTopology.TRIANGLE_LIST
    stages: list[ShaderStage] = field(default_factory=list)
    stage_filenames: list[str] = field(default_factory=list)
    attributes: list[AttributeConfiguration] = field(default_factory=list)
    uniforms: list[UniformConfiguration] = field(default_factory=list)


_STAGES = {
    "frag": ShaderStage.FRAGMENT,
    "fragment": ShaderStage.FRAGMENT,
    "vert": ShaderStage.VERTEX,
    "vertex": ShaderStage.VERTEX,
    "geom": ShaderStage.GEOMETRY,
    "geometry": ShaderStage.GEOMETRY,
    "compute": ShaderStage.COMPUTE,
}

# "i32" maps onto the unsigned type, as the configuration format has always done.
_ATTRIBUTE_TYPES = {
    "f32": (AttributeType.FLOAT32_1, 4),
    "vec2": (AttributeType.FLOAT32_2, 8),
    "vec3": (AttributeType.FLOAT32_3, 12),
    "vec4": (AttributeType.FLOAT32_4, 16),
    "u8": (AttributeType.UINT8, 1),
    "u16": (AttributeType.UINT16, 2),
    "u32": (AttributeType.UINT32, 4),
    "i8": (AttributeType.INT8, 1),
    "i16": (AttributeType.INT16, 2),
    "i32": (AttributeType.UINT32, 4),
}

_UNIFORM_TYPES = {
    "f32": (UniformType.FLOAT32_1, 4),
    "vec2": (UniformType.FLOAT32_2, 8),
    "vec3": (UniformType.FLOAT32_3, 12),
    "vec4": (UniformType.FLOAT32_4, 16),
    "u8": (UniformType.UINT8, 1),
    "u16": (UniformType.UINT16, 2),
    "u32": (UniformType.UINT32, 4),
    "i8": (UniformType.INT8, 1),
    "i16": (UniformType.INT16, 2),
    "i32": (UniformType.UINT32, 4),
    "mat4": (UniformType.MAT4X4, 64),
    "samp": (UniformType.SAMPLER, 0),
    "struct32": (UniformType.CUSTOM, 32),
    "struct480": (UniformType.CUSTOM, 480),
}

_SCOPES = {"0": ShaderScope.GLOBAL, "1": ShaderScope.INSTANCE, "2": ShaderScope.LOCAL}

_CULL_MODES = {mode.value: mode for mode in CullMode}


def _to_primitive_topology(name: str) -> PrimitiveTopology:
    key = name.strip().upper()
    if key in PrimitiveTopology.__members__ and key != "NONE":
        return PrimitiveTopology[key]
    get_logger().error("Unrecognised primitive topology: %s", name)
    return PrimitiveTopology.NONE


def _is_set(value: str, variable: str) -> bool:
    match = _INT_PREFIX.match(value)
    if match is None:
        raise ResourceLoadError(f"Invalid value for {variable}: {value!r}")
    return int(match.group()) != 0


def parse_shader_configuration(lines: Iterable[str]) -> ShaderProperties:
    """Build shader properties from ``key=value`` lines."""
    logger = get_logger()
    properties = ShaderProperties()

    for line_number, raw in enumerate(lines):
        if not raw or raw[0] == "#":
            continue
        variable, separator, value = raw.strip().partition("=")
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
            case "depth_write":
                if _is_set(value, variable):
                    properties.flags |= ShaderFlags.DEPTH_WRITE
            case "depth_test":
                if _is_set(value, variable):
                    properties.flags |= ShaderFlags.DEPTH_TEST
            case "stages":
                for stage in value.split(","):
                    shader_stage = _STAGES.get(stage)
                    if shader_stage is None:
                        logger.error("Unrecognised shader type: %s", stage)
                        continue
                    properties.stages.append(shader_stage)
            case "stagefiles":
                properties.stage_filenames.extend(value.split(","))
            case "cull_mode":
                if value in _CULL_MODES:
                    properties.cull_mode = _CULL_MODES[value]
            case "topology":
                types = PrimitiveTopology.NONE
                for name in value.split(","):
                    types |= _to_primitive_topology(name)
                properties.topology_types = types
            case "attribute":
                type_name, comma, name = value.partition(",")
                if not comma:
                    logger.error("Invalid attribute: %s", value)
                    continue
                attribute = AttributeConfiguration(name=name)
                if type_name in _ATTRIBUTE_TYPES:
                    attribute.type, attribute.size = _ATTRIBUTE_TYPES[type_name]
                else:
                    logger.error("Unknown attribute type found: %s", type_name)
                properties.attributes.append(attribute)
            case "uniform":
                type_name, comma, rest = value.partition(",")
                if not comma:
                    logger.error("Invalid uniform: %s", value)
                    continue
                scope_name, second_comma, name = rest.partition(",")
                if not second_comma:
                    name = rest
                uniform = UniformConfiguration(name=name)
                if type_name in _UNIFORM_TYPES:
                    uniform.type, uniform.size = _UNIFORM_TYPES[type_name]
                else:
                    logger.error("Unknown uniform type found: %s", type_name)
                if scope_name in _SCOPES:
                    uniform.scope = _SCOPES[scope_name]
                else:
                    logger.error("Unknown shader scope: %s", scope_name)
                properties.uniforms.append(uniform)
            case _:
                logger.error(
                    "Unrecognised entry: %s, with value: %s, on line %d",
                    variable,
                    value,
                    line_number,
                )
    return properties


def load_configuration_file(path: str | os.PathLike) -> ShaderProperties:
    """Read and parse a shader configuration file."""
    try:
        lines = filesystem.read_lines(path, _MAX_LINE)
    except FileNotFoundError as exc:
        get_logger().error("Failed to open shader configuration: %s", path)
        raise ResourceLoadError(f"Failed to open shader configuration: {path}") from exc
    return parse_shader_configuration(lines)


class ShaderLoader(ResourceLoader):
    """Loads ``<name>.shadercfg`` files."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.SHADER, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        filename = f"{self.base_path}/{name}.shadercfg"
        properties = load_configuration_file(filename)
        return Resource(self.loader_type, name, filename, properties)

    def unload(self, resource: Resource) -> None:
        resource.data = None