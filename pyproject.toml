[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "egakeru"
version = "0.1.0"
description = "Asset loaders, vertex utilities, rays and a camera for a small 3D rendering engine"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pillow",
]
keywords = ["3d", "rendering", "engine", "mesh", "obj", "shader", "font", "ray", "camera"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["egakeru"]

[tool.pytest.ini_options]
addopts = "-ra"
