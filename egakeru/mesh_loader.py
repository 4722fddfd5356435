"""Loader for meshes, from Wavefront .obj text files or binary .esm files."""

from __future__ import annotations

import dataclasses
import os
import re
import struct
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from . import filesystem
from .geometry_utils import Vertex3D, deduplicate_vertices, generate_tangents
from .log import get_logger
from .material_loader import MaterialProperties
from .resource_loader import (
    LoaderProperties,
    Resource,
    ResourceLoadError,
    ResourceLoader,
    ResourceType,
)

Float2 = tuple[float, float]
Float3 = tuple[float, float, float]

BUILTIN_MATERIAL_SHADER = "Shader.Builtin.Material"
DEFAULT_SHININESS = 8.0

_MAX_LINE = 512
_MTL_MAX_LINE = 511

_U64 = struct.Struct("<Q")
_U32 = struct.Struct("<I")
_COUNT_AND_SIZE = struct.Struct("<II")
_VERTEX = struct.Struct("<12f")
_FLOAT3 = struct.Struct("<3f")

VERTEX_SIZE = _VERTEX.size

_INT = re.compile(r"[+-]?\d+")


@dataclass
class MeshVertexIndexData:
    """One-based indices of a face corner into the position, normal and texture lists."""

    position_index: int = 0
    normal_index: int = 0
    tex_index: int = 0


@dataclass
class MeshFaceData:
    """A triangle given by three corners."""

    vertices: list[MeshVertexIndexData] = field(
        default_factory=lambda: [MeshVertexIndexData() for _ in range(3)]
    )


@dataclass
class GeometryProperties:
    """Vertices, indices and bounds of one piece of a mesh."""

    name: str = ""
    material_name: str = ""
    vertices: list[Vertex3D] = field(default_factory=list)
    indices: list[int] = field(default_factory=list)
    center: Float3 = (0.0, 0.0, 0.0)
    extents_min: Float3 = (0.0, 0.0, 0.0)
    extents_max: Float3 = (0.0, 0.0, 0.0)
    vertex_size: int = VERTEX_SIZE

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)


def _scan_floats(tokens: Sequence[str], count: int) -> list[float]:
    """Read up to ``count`` floats, stopping at the first token that is not one."""
    values: list[float] = []
    for token in tokens[:count]:
        try:
            values.append(float(token))
        except ValueError:
            break
    return values


def _vector(tokens: Sequence[str], count: int) -> tuple[float, ...]:
    values = _scan_floats(tokens, count)
    return tuple(values + [0.0] * (count - len(values)))


def _face_numbers(tokens: Sequence[str], with_attributes: bool) -> Iterator[int]:
    for token in tokens[:3]:
        if not with_attributes:
            match = _INT.match(token)
            if match is None:
                return
            yield int(match.group())
            continue
        parts = token.split("/")
        for part in parts[:3]:
            if _INT.fullmatch(part) is None:
                return
            yield int(part)
        if len(parts) < 3:
            return


def _parse_face(tokens: Sequence[str], with_attributes: bool) -> MeshFaceData:
    face = MeshFaceData()
    per_corner = 3 if with_attributes else 1
    for k, value in enumerate(_face_numbers(tokens, with_attributes)):
        corner = face.vertices[k // per_corner]
        slot = k % per_corner
        if slot == 0:
            corner.position_index = value
        elif slot == 1:
            corner.tex_index = value
        else:
            corner.normal_index = value
    return face


def _lookup(items: Sequence, index: int, what: str):
    if not 1 <= index <= len(items):
        raise ResourceLoadError(f"{what} index {index} out of range 1..{len(items)}")
    return items[index - 1]


def process_subobject(
    positions: Sequence[Float3],
    normals: Sequence[Float3],
    tex_coords: Sequence[Float2],
    faces: Iterable[MeshFaceData],
) -> GeometryProperties:
    """Expand faces into one vertex per corner, with bounds and tangents."""
    properties = GeometryProperties(material_name="default")
    for corner in (corner for face in faces for corner in face.vertices):
        properties.indices.append(len(properties.vertices))
        vertex = Vertex3D(position=tuple(_lookup(positions, corner.position_index, "Position")))
        if normals:
            vertex.normal = tuple(_lookup(normals, corner.normal_index, "Normal"))
        if tex_coords:
            vertex.tex = tuple(_lookup(tex_coords, corner.tex_index, "Texture coordinate"))
        properties.vertices.append(vertex)

    if properties.vertices:
        axes = list(zip(*(vertex.position for vertex in properties.vertices)))
        properties.extents_min = tuple(min(axis) for axis in axes)  # type: ignore[assignment]
        properties.extents_max = tuple(max(axis) for axis in axes)  # type: ignore[assignment]
    properties.center = tuple(  # type: ignore[assignment]
        (lo + hi) / 2.0 for lo, hi in zip(properties.extents_min, properties.extents_max)
    )
    generate_tangents(properties.vertices, properties.indices)
    return properties


def _emit_groups(
    groups: list[list[MeshFaceData]],
    positions: Sequence[Float3],
    normals: Sequence[Float3],
    tex_coords: Sequence[Float2],
    name: str,
    material_names: dict[int, str],
    geometries: list[GeometryProperties],
) -> None:
    for i, faces in enumerate(groups):
        geometry = process_subobject(positions, normals, tex_coords, faces)
        if geometry.vertex_count == 0:
            get_logger().warning("Geometry generated with no vertices. Skipping")
            continue
        geometry.name = f"{name}{i}" if i > 0 else name
        geometry.material_name = material_names.pop(i, "")
        geometries.append(geometry)


def import_obj(path: str | os.PathLike) -> list[GeometryProperties]:
    """Import an .obj file, write its .esm cache beside it and return its geometries.

    Materials named by ``mtllib`` are converted to .emt files as well.
    """
    logger = get_logger()
    obj_path = Path(path).absolute()

    positions: list[Float3] = []
    normals: list[Float3] = []
    tex_coords: list[Float2] = []
    groups: list[list[MeshFaceData]] = [[]]
    material_names: dict[int, str] = {}
    material_count = 0
    name = ""
    material_filename = ""
    geometries: list[GeometryProperties] = []

    for raw in filesystem.read_lines(obj_path, _MAX_LINE):
        tokens = raw.strip().split()
        first = raw[:1]
        if first == "#" or first == "s":
            continue
        if first == "v":
            second = raw[1:2]
            if second == " ":
                positions.append(_vector(tokens[1:], 3))  # type: ignore[arg-type]
            elif second == "n":
                normals.append(_vector(tokens[1:], 3))  # type: ignore[arg-type]
            elif second == "t":
                tex_coords.append(_vector(tokens[1:], 2))  # type: ignore[arg-type]
            else:
                logger.error("Unrecognised vertex line: %s", raw)
        elif first == "f":
            face = _parse_face(tokens[1:], bool(normals) and bool(tex_coords))
            if not groups:
                groups.append([])
            groups[-1].append(face)
        elif first == "m":
            material_filename = tokens[1] if len(tokens) > 1 else ""
        elif first == "u":
            groups.append([])
            material_names[material_count] = tokens[1] if len(tokens) > 1 else ""
            material_count += 1
        elif first == "g":
            _emit_groups(groups, positions, normals, tex_coords, name, material_names, geometries)
            material_count = 0
            groups.clear()
            name = tokens[1] if len(tokens) > 1 else ""
        else:
            logger.error("Unrecognised first character: %r", first)

    _emit_groups(groups, positions, normals, tex_coords, name, material_names, geometries)

    if material_filename:
        import_obj_material_library(obj_path.parent / material_filename)

    for geometry in geometries:
        geometry.vertices, geometry.indices = deduplicate_vertices(
            geometry.vertices, geometry.indices
        )

    write_esm(obj_path.with_suffix(".esm"), geometries)
    return geometries


def import_obj_material_library(path: str | os.PathLike) -> list[MaterialProperties]:
    """Convert every material of an .mtl file to an .emt file; return what was written.

    Settings carry over from one material to the next unless the file overrides them.
    """
    logger = get_logger()
    mtl_path = Path(path).absolute()
    if not mtl_path.is_file():
        logger.warning("Invalid file path, does not exist: %s", path)
        return []

    directory = mtl_path.parent
    current = MaterialProperties()
    written: list[MaterialProperties] = []
    hit_name = False

    def finish() -> None:
        current.shader_name = BUILTIN_MATERIAL_SHADER
        if abs(current.shininess) <= 0.001:
            current.shininess = DEFAULT_SHININESS
        if hit_name:
            snapshot = dataclasses.replace(current)
            write_emt(directory, snapshot)
            written.append(snapshot)

    for raw in filesystem.read_lines(mtl_path, _MTL_MAX_LINE):
        line = raw.strip()
        tokens = line.split()
        first = line[:1]
        if first == "#":
            continue
        if first == "K":
            second = line[1:2]
            if second in ("a", "d"):
                colour = list(current.diffuse_colour[:3])
                values = _scan_floats(tokens[1:], 3)
                colour[: len(values)] = values
                current.diffuse_colour = (*colour, 1.0)  # type: ignore[assignment]
            elif second != "s":
                logger.error("Unrecognised second character: %r", second)
        elif first == "N":
            values = _scan_floats(tokens[1:], 1)
            if values:
                current.shininess = values[0]
        elif first == "m":
            map_type = tokens[0]
            texture = Path(tokens[1]).stem if len(tokens) > 1 else ""
            if map_type == "map_Kd":
                current.diffuse_map_name = texture
            elif map_type == "map_Ks":
                current.specular_map_name = texture
            elif map_type == "map_bump":
                current.normal_map_name = texture
        elif first == "b":
            current.normal_map_name = Path(tokens[1]).stem if len(tokens) > 1 else ""
        elif first == "n":
            finish()
            hit_name = True
            current.name = tokens[1] if len(tokens) > 1 else ""
        else:
            logger.error("Unrecognised first character: %r", first)

    finish()
    return written


class _EsmReader:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self._offset = 0

    def take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._payload):
            raise ResourceLoadError("Unexpected end of esm file")
        chunk = self._payload[self._offset:end]
        self._offset = end
        return chunk

    def unpack(self, layout: struct.Struct) -> tuple:
        return layout.unpack(self.take(layout.size))

    def string(self) -> str:
        (length,) = self.unpack(_U64)
        return self.take(length).decode("utf-8", errors="replace")


def load_esm(path: str | os.PathLike) -> list[GeometryProperties]:
    """Read the geometries stored in a binary .esm file."""
    reader = _EsmReader(filesystem.read_all(path))
    geometries: list[GeometryProperties] = []
    (count,) = reader.unpack(_U64)
    for _ in range(count):
        geometry = GeometryProperties(name=reader.string(), material_name=reader.string())
        vertex_count, vertex_size = reader.unpack(_COUNT_AND_SIZE)
        if vertex_size != VERTEX_SIZE:
            raise ResourceLoadError(f"Unsupported vertex size {vertex_size} in {path}")
        for _ in range(vertex_count):
            values = reader.unpack(_VERTEX)
            geometry.vertices.append(
                Vertex3D(
                    position=values[0:3],
                    normal=values[3:6],
                    tex=values[6:8],
                    tangent=values[8:12],
                )
            )
        (index_count,) = reader.unpack(_U64)
        geometry.indices = [reader.unpack(_U32)[0] for _ in range(index_count)]
        geometry.center = reader.unpack(_FLOAT3)
        geometry.extents_min = reader.unpack(_FLOAT3)
        geometry.extents_max = reader.unpack(_FLOAT3)
        geometries.append(geometry)
    return geometries


def _encode_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return _U64.pack(len(encoded)) + encoded


def write_esm(path: str | os.PathLike, geometries: Sequence[GeometryProperties]) -> None:
    """Write geometries to a binary .esm file at ``path``."""
    parts = [_U64.pack(len(geometries))]
    for geometry in geometries:
        parts.append(_encode_string(geometry.name))
        parts.append(_encode_string(geometry.material_name))
        parts.append(_COUNT_AND_SIZE.pack(geometry.vertex_count, VERTEX_SIZE))
        parts.extend(
            _VERTEX.pack(*v.position, *v.normal, *v.tex, *v.tangent) for v in geometry.vertices
        )
        parts.append(_U64.pack(len(geometry.indices)))
        parts.extend(_U32.pack(index) for index in geometry.indices)
        parts.append(_FLOAT3.pack(*geometry.center))
        parts.append(_FLOAT3.pack(*geometry.extents_min))
        parts.append(_FLOAT3.pack(*geometry.extents_max))
    Path(path).absolute().write_bytes(b"".join(parts))


def write_emt(directory: str | os.PathLike, properties: MaterialProperties) -> Path:
    """Write a material to ``<directory>/../materials/<name>.emt`` and return its path."""
    target = Path(
        os.path.normpath(
            os.path.join(os.fspath(directory), "..", "materials", f"{properties.name}.emt")
        )
    ).absolute()
    target.parent.mkdir(parents=True, exist_ok=True)
    r, g, b, a = properties.diffuse_colour
    filesystem.write_lines(
        target,
        [
            f"# {properties.name}",
            "# auto generated material",
            "version = 0.1",
            f"name={properties.name}",
            f"diffuse_colour={r:.3f} {g:.3f} {b:.3f} {a:.3f}",
            f"diffuse_map_name={properties.diffuse_map_name}",
            f"specular_map_name={properties.specular_map_name}",
            f"normal_map_name={properties.normal_map_name}",
            f"shader={properties.shader_name}",
            f"shininess={properties.shininess:.6f}",
        ],
    )
    return target


class MeshLoader(ResourceLoader):
    """Loads ``<name>.esm``, or imports ``<name>.obj`` and caches it as .esm."""

    _FILE_TYPES = (".esm", ".obj")

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.MESH, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        filename = next(
            (
                candidate
                for candidate in (f"{self.base_path}/{name}{ext}" for ext in self._FILE_TYPES)
                if filesystem.does_path_exist(candidate)
            ),
            None,
        )
        if filename is None:
            get_logger().error("Could not find mesh file: %s", name)
            raise ResourceLoadError(f"Could not find mesh file: {name}")

        if filename.endswith(".esm"):
            geometries = load_esm(filename)
        else:
            geometries = import_obj(filename)
        return Resource(ResourceType.MESH, name, filename, geometries)

    def unload(self, resource: Resource) -> None:
        resource.data = None