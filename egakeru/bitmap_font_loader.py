"""Loader for bitmap fonts, from BMFont text (.fnt) or binary (.ebf) files."""

from __future__ import annotations

import enum
import os
import re
import struct
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
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

FONT_TYPE_BITMAP = 0
FONT_TYPE_SYSTEM = 1

RESOURCE_MAGIC = 0xCAFEBABE
EBF_VERSION = 1

_MAX_LINE = 511

_HEADER = struct.Struct("<IBBH")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_U64 = struct.Struct("<Q")
_F32 = struct.Struct("<f")
_GLYPH = struct.Struct("<I4H3hbx")
_KERNING = struct.Struct("<iih2x")


@dataclass
class Glyph:
    """Placement of one character in the atlas."""

    codepoint: int = 0
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    x_offset: int = 0
    y_offset: int = 0
    x_advance: int = 0
    page_id: int = 0


@dataclass
class Kerning:
    """Advance adjustment between two codepoints."""

    codepoint_0: int = 0
    codepoint_1: int = 0
    amount: int = 0


@dataclass
class BitmapFontPage:
    """One atlas image of a font."""

    id: int = 0
    file: str = ""


@dataclass
class BitmapFontData:
    """Metrics and glyph tables of a font."""

    font_type: int = FONT_TYPE_BITMAP
    face: str = ""
    size: int = 0
    line_height: int = 0
    baseline: int = 0
    atlas_size_x: int = 0
    atlas_size_y: int = 0
    glyphs: list[Glyph] = field(default_factory=list)
    kernings: list[Kerning] = field(default_factory=list)
    tab_advance: float = 0.0


@dataclass
class BitmapFontResourceData:
    """A bitmap font and the pages holding its atlas images."""

    data: BitmapFontData = field(default_factory=BitmapFontData)
    pages: list[BitmapFontPage] = field(default_factory=list)


class _FileType(enum.Enum):
    EBF = ".ebf"
    FNT = ".fnt"


def _steps(*patterns: str) -> list[re.Pattern[str]]:
    return [re.compile(pattern) for pattern in patterns]


_INFO = _steps(r'info\s+face="([^"]+)"', r"\s+size=\s*(\d+)")
_COMMON = _steps(
    r"common\s+lineHeight=\s*([+-]?\d+)",
    r"\s+base=\s*[+-]?\d+",
    r"\s+scaleW=\s*([+-]?\d+)",
    r"\s+scaleH=\s*([+-]?\d+)",
    r"\s+pages=\s*(\d+)",
)
_CHAR = _steps(
    r"char\s+id=\s*(\d+)",
    r"\s+x=\s*(\d+)",
    r"\s+y=\s*(\d+)",
    r"\s+width=\s*(\d+)",
    r"\s+height=\s*(\d+)",
    r"\s+xoffset=\s*([+-]?\d+)",
    r"\s+yoffset=\s*([+-]?\d+)",
    r"\s+xadvance=\s*([+-]?\d+)",
    r"\s+page=\s*([+-]?\d+)",
)
_PAGE = _steps(r"page\s+id=\s*(\d+)", r'\s+file="([^"]+)"')
_KERNING_LINE = _steps(
    r"kerning\s+first=\s*([+-]?\d+)",
    r"\s+second=\s*([+-]?\d+)",
    r"\s+amount=\s*([+-]?\d+)",
)

_GLYPH_FIELDS = (
    "codepoint",
    "x",
    "y",
    "width",
    "height",
    "x_offset",
    "y_offset",
    "x_advance",
    "page_id",
)


def _scan(line: str, steps: Sequence[re.Pattern[str]]) -> list[str]:
    """Match the steps in turn, returning what was captured before the first mismatch."""
    values: list[str] = []
    position = 0
    for step in steps:
        match = step.match(line, position)
        if match is None:
            break
        values.extend(match.groups())
        position = match.end()
    return values


def parse_fnt(lines: Iterable[str]) -> BitmapFontResourceData:
    """Build font data from the lines of a BMFont text file."""
    logger = get_logger()
    result = BitmapFontResourceData()
    font = result.data

    for raw in lines:
        if not raw or raw[0] == "#":
            continue
        line = raw.strip()
        first = raw[0]
        if first == "i":
            values = _scan(line, _INFO)
            if values:
                font.face = values[0]
            if len(values) > 1:
                font.size = int(values[1])
        elif first == "c":
            if raw[1:2] == "o":
                values = _scan(line, _COMMON)
                for name, value in zip(("line_height", "atlas_size_x", "atlas_size_y"), values):
                    setattr(font, name, int(value))
            elif raw[4:5] == "s":
                continue
            else:
                glyph = Glyph()
                for name, value in zip(_GLYPH_FIELDS, _scan(line, _CHAR)):
                    setattr(glyph, name, int(value))
                font.glyphs.append(glyph)
        elif first == "p":
            page = BitmapFontPage()
            values = _scan(line, _PAGE)
            if values:
                page.id = int(values[0])
            if len(values) > 1:
                page.file = values[1]
            result.pages.append(page)
        elif first == "k":
            if raw[7:8] == "s":
                continue
            kerning = Kerning()
            for name, value in zip(
                ("codepoint_0", "codepoint_1", "amount"), _scan(line, _KERNING_LINE)
            ):
                setattr(kerning, name, int(value))
            font.kernings.append(kerning)
        else:
            logger.error("Unrecognised line in font file: %s", line)
    return result


def _encode_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return _U64.pack(len(encoded)) + encoded


def _encode(data: BitmapFontResourceData) -> bytes:
    font = data.data
    parts = [
        _HEADER.pack(RESOURCE_MAGIC, ResourceType.BITMAP_FONT.value, EBF_VERSION, 0),
        _U32.pack(font.font_type),
        _encode_string(font.face),
        _U32.pack(font.size),
        _I32.pack(font.line_height),
        _I32.pack(font.baseline),
        _I32.pack(font.atlas_size_x),
        _I32.pack(font.atlas_size_y),
        _U64.pack(len(data.pages)),
    ]
    for page in data.pages:
        parts.append(_I32.pack(page.id))
        parts.append(_encode_string(page.file))
    parts.append(_U64.pack(len(font.glyphs)))
    parts.extend(
        _GLYPH.pack(*(getattr(glyph, name) for name in _GLYPH_FIELDS)) for glyph in font.glyphs
    )
    parts.append(_U64.pack(len(font.kernings)))
    parts.extend(
        _KERNING.pack(k.codepoint_0, k.codepoint_1, k.amount) for k in font.kernings
    )
    parts.append(_F32.pack(font.tab_advance))
    return b"".join(parts)


def write_ebf(path: str | os.PathLike, data: BitmapFontResourceData) -> BitmapFontResourceData:
    """Write font data to a binary .ebf file and return the data."""
    try:
        payload = _encode(data)
    except struct.error as exc:
        raise ResourceLoadError(f"Font data cannot be stored in ebf format: {exc}") from exc
    try:
        Path(path).absolute().write_bytes(payload)
    except OSError as exc:
        get_logger().error("Couldn't create ebf file")
        raise ResourceLoadError(f"Couldn't create ebf file: {path}") from exc
    return data


class _Reader:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self._offset = 0

    def unpack(self, layout: struct.Struct) -> tuple:
        end = self._offset + layout.size
        if end > len(self._payload):
            raise ResourceLoadError("Unexpected end of ebf file")
        values = layout.unpack_from(self._payload, self._offset)
        self._offset = end
        return values

    def value(self, layout: struct.Struct):
        return self.unpack(layout)[0]

    def string(self) -> str:
        length = self.value(_U64)
        end = self._offset + length
        if end > len(self._payload):
            raise ResourceLoadError("Unexpected end of ebf file")
        text = self._payload[self._offset:end].decode("utf-8", errors="replace")
        self._offset = end
        return text


def read_ebf(path: str | os.PathLike) -> BitmapFontResourceData:
    """Read font data from a binary .ebf file."""
    reader = _Reader(filesystem.read_all(path))
    magic, resource_type, _version, _reserved = reader.unpack(_HEADER)
    if magic != RESOURCE_MAGIC:
        raise ResourceLoadError(f"Not an ebf file: {path}")
    if resource_type != ResourceType.BITMAP_FONT.value:
        raise ResourceLoadError(f"File does not hold a bitmap font: {path}")

    font = BitmapFontData()
    font.font_type = reader.value(_U32)
    font.face = reader.string()
    font.size = reader.value(_U32)
    font.line_height = reader.value(_I32)
    font.baseline = reader.value(_I32)
    font.atlas_size_x = reader.value(_I32)
    font.atlas_size_y = reader.value(_I32)

    pages = []
    for _ in range(reader.value(_U64)):
        page_id = reader.value(_I32)
        pages.append(BitmapFontPage(page_id, reader.string()))

    font.glyphs = [Glyph(*reader.unpack(_GLYPH)) for _ in range(reader.value(_U64))]
    font.kernings = [Kerning(*reader.unpack(_KERNING)) for _ in range(reader.value(_U64))]
    font.tab_advance = reader.value(_F32)
    return BitmapFontResourceData(font, pages)


class BitmapFontLoader(ResourceLoader):
    """Loads ``<name>.ebf``, or imports ``<name>.fnt`` and caches it as .ebf."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.BITMAP_FONT, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        filename = ""
        file_type = None
        for candidate in _FileType:
            filename = f"{self.base_path}/{name}{candidate.value}"
            if filesystem.does_path_exist(filename):
                file_type = candidate
                break
        if file_type is None:
            get_logger().error("File not found: %s", filename)
            raise ResourceLoadError(f"File not found: {filename}")

        if file_type is _FileType.FNT:
            parsed = parse_fnt(filesystem.read_lines(filename, _MAX_LINE))
            filename = f"{self.base_path}/{name}{_FileType.EBF.value}"
            resource_data = write_ebf(filename, parsed)
        else:
            resource_data = read_ebf(filename)
        resource_data.data.font_type = FONT_TYPE_BITMAP
        return Resource(ResourceType.BITMAP_FONT, name, filename, resource_data)

    def unload(self, resource: Resource) -> None:
        resource.data = None