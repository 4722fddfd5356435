"""Common resource types and the base class for resource loaders."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class ResourceType(enum.Enum):
    """Kinds of resource a loader can produce."""

    TEXT = enum.auto()
    BINARY = enum.auto()
    IMAGE = enum.auto()
    MATERIAL = enum.auto()
    MESH = enum.auto()
    SHADER = enum.auto()
    BITMAP_FONT = enum.auto()
    SYSTEM_FONT = enum.auto()
    SCENE = enum.auto()
    AUDIO = enum.auto()
    CUSTOM = enum.auto()


@dataclass
class Resource:
    """A loaded resource and the data a loader produced for it."""

    type: ResourceType
    name: str
    full_path: str
    data: Any = None


@dataclass(frozen=True)
class LoaderProperties:
    """Where a loader finds its files, and an optional custom type name."""

    path: str
    custom_type: str | None = None


class ResourceLoadError(Exception):
    """Raised when a loader cannot produce a resource."""


class ResourceLoader(ABC):
    """Base class for loaders that read resources below one directory."""

    def __init__(self, loader_type: ResourceType, properties: LoaderProperties) -> None:
        self._loader_type = loader_type
        self._base_path = properties.path
        self.custom_type_name = properties.custom_type or ""

    @property
    def loader_type(self) -> ResourceType:
        return self._loader_type

    @property
    def base_path(self) -> str:
        return self._base_path

    @abstractmethod
    def load(self, name: str, params: Any = None) -> Resource:
        """Load the resource called ``name``; raise ResourceLoadError on failure."""

    def unload(self, resource: Resource) -> None:
        """Release the data held by ``resource``."""
        resource.data = None