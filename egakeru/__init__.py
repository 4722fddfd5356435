"""Asset loaders, vertex utilities, rays and a camera for a small 3D engine."""

__version__ = "0.1.0"