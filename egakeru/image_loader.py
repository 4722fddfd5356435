"""Loader for image files, decoded to 8-bit RGBA pixels."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any

from PIL import Image

from . import filesystem
from .log import get_logger
from .resource_loader import (
    LoaderProperties,
    Resource,
    ResourceLoadError,
    ResourceLoader,
    ResourceType,
)

EXTENSIONS = (".tga", ".png", ".jpg", ".bmp")
REQUIRED_CHANNELS = 4


@dataclass
class ImageResourceParameters:
    """Options for loading an image."""

    flip_y: bool = True


@dataclass
class TextureProperties:
    """A decoded image: RGBA rows, bottom row first when flipped."""

    name: str
    width: int
    height: int
    data: bytes
    channel_count: int = REQUIRED_CHANNELS
    id: int = 0
    generation: int = 0
    has_transparency: bool = False


class ImageLoader(ResourceLoader):
    """Loads ``<name>`` with the first of .tga, .png, .jpg, .bmp that exists."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.IMAGE, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        parameters = params if params is not None else ImageResourceParameters()
        logger = get_logger()

        candidates = [f"{self.base_path}/{name}{extension}" for extension in EXTENSIONS]
        filename = next((c for c in candidates if filesystem.does_path_exist(c)), None)
        if filename is None:
            logger.error("File not found: %s", candidates[-1])
            raise ResourceLoadError(f"File not found: {candidates[-1]}")

        raw = filesystem.read_all(filename)
        try:
            with Image.open(io.BytesIO(raw)) as image:
                rgba = image.convert("RGBA")
        except (OSError, ValueError) as exc:
            logger.error("Failed to load image %s, reason: %s", filename, exc)
            raise ResourceLoadError(f"Failed to load image {filename}: {exc}") from exc

        if parameters.flip_y:
            rgba = rgba.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

        min_alpha, _max_alpha = rgba.getchannel("A").getextrema()
        texture = TextureProperties(
            name=name,
            width=rgba.width,
            height=rgba.height,
            data=rgba.tobytes(),
            has_transparency=min_alpha < 255,
        )
        return Resource(ResourceType.IMAGE, name, filename, texture)

    def unload(self, resource: Resource) -> None:
        resource.data = None