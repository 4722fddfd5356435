"""Loaders that hand back a file's content unchanged."""

from __future__ import annotations

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


def _read_file(base_path: str, name: str, kind: str) -> bytes:
    filename = f"{base_path}/{name}"
    try:
        return filesystem.read_all(filename)
    except OSError as exc:
        get_logger().error("Failed to open %s file: %s", kind, filename)
        raise ResourceLoadError(f"Failed to open {kind} file: {filename}") from exc


class BinaryLoader(ResourceLoader):
    """Loads a file, named with its extension, as raw bytes."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.BINARY, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        data = _read_file(self.base_path, name, "binary")
        return Resource(self.loader_type, name, name, data)

    def unload(self, resource: Resource) -> None:
        resource.data = None


class TextLoader(ResourceLoader):
    """Loads a file, named with its extension, as text."""

    def __init__(self, properties: LoaderProperties) -> None:
        super().__init__(ResourceType.TEXT, properties)

    def load(self, name: str, params: Any = None) -> Resource:
        raw = _read_file(self.base_path, name, "text")
        text = raw.decode("utf-8", errors="replace")
        return Resource(self.loader_type, name, name, text)

    def unload(self, resource: Resource) -> None:
        resource.data = None