# egakeru

Asset loading and geometry helpers for a small 3D rendering engine.

## Resource loaders

Every loader is built from a `LoaderProperties(path, custom_type=None)` and
derives from `egakeru.resource_loader.ResourceLoader`. `load(name, params)`
returns a `Resource` (`type`, `name`, `full_path`, `data`) or raises
`ResourceLoadError`; `unload(resource)` drops the resource's data.

| Loader | Module | Reads | `Resource.data` |
| --- | --- | --- | --- |
| `BinaryLoader` | `egakeru.raw_loaders` | `<path>/<name>` | `bytes` |
| `TextLoader` | `egakeru.raw_loaders` | `<path>/<name>` | `str` (UTF-8) |
| `ImageLoader` | `egakeru.image_loader` | first of `<name>.tga`, `.png`, `.jpg`, `.bmp` | `TextureProperties` with RGBA bytes |
| `MaterialLoader` | `egakeru.material_loader` | `<name>.emt` | `MaterialProperties` |
| `ShaderLoader` | `egakeru.shader_loader` | `<name>.shadercfg` | `ShaderProperties` |
| `SceneLoader` | `egakeru.scene_loader` | `<path>/<name>` | `SceneConfiguration` |
| `BitmapFontLoader` | `egakeru.bitmap_font_loader` | `<name>.ebf`, else `<name>.fnt` | `BitmapFontResourceData` |
| `MeshLoader` | `egakeru.mesh_loader` | `<name>.esm`, else `<name>.obj` | list of `GeometryProperties` |

Some behaviour worth knowing:

- `ImageLoader` takes an `ImageResourceParameters(flip_y=True)`; images are
  converted to 8-bit RGBA, and `has_transparency` is set when any alpha is
  below 255.
- `MaterialLoader` returns a default material (white diffuse colour and the
  `default_diffuse`, `default_specular` and `default_normal` maps) when the
  file does not exist.
- `BitmapFontLoader` imports a BMFont `.fnt` text file and writes it next to
  it as a binary `.ebf` file; `read_ebf` and `write_ebf` handle that format.
- `MeshLoader` imports a Wavefront `.obj` file, converts each material of the
  `.mtl` library it names to `../materials/<name>.emt`, removes duplicate
  vertices and writes the result as a binary `.esm` file beside the `.obj`.
  `load_esm` and `write_esm` handle that format.
- `SceneLoader` raises `SceneParseError` on mismatched section tags such as
  `[Mesh]` / `[/Mesh]`, and converts mesh rotation angles from degrees to
  radians.

The text formats can also be parsed without touching the file system:
`parse_material_configuration`, `parse_shader_configuration`,
`parse_scene_configuration` and `parse_fnt` each take an iterable of lines.

```python
from egakeru.resource_loader import LoaderProperties
from egakeru.material_loader import MaterialLoader

loader = MaterialLoader(LoaderProperties(path="assets/materials"))
resource = loader.load("stone", None)
print(resource.data.diffuse_map_name)
```

```python
from egakeru.shader_loader import parse_shader_configuration

properties = parse_shader_configuration([
    "name=Shader.Builtin.Material",
    "stages=vertex,fragment",
    "attribute=vec3,in_position",
])
print(properties.stages, properties.attributes[0].size)
```

## Geometry utilities

`egakeru.geometry_utils` provides `Vertex3D` (position, normal, texture
coordinate, tangent), `generate_tangents(vertices, indices)`, which sets the
tangents of each indexed triangle in place, and
`deduplicate_vertices(vertices, indices)`, which returns the unique vertices
and the indices remapped onto them.

## Rays

`egakeru.ray.Ray(origin, direction)` works with NumPy vectors:

- `Ray.from_screen(screen_position, viewport_rect, origin, view, projection)`
  builds a picking ray through a pixel of a viewport `(x, y, width, height)`.
- `aabb(Extent3D)` returns the entry point into a box (the origin itself when
  the ray starts inside), or `None`.
- `oriented_extents(bb, model)` returns the distance to a box placed by a
  model matrix, or `None`.
- `plane(Plane)` returns `(point, t)` for a plane facing the ray, or `None`.
- `disk(plane, center, inner_radius, outer_radius)` does the same for a ring,
  comparing the *squared* distance from the centre with the two bounds.

`Hit`, `HitType` and `HitResult` (true when it holds any hit) describe cast results.

## Camera

`egakeru.camera.Camera` keeps a position and a rotation in radians in a Z-up
world. `view()` returns the view matrix, recomputing it only after the camera
has moved or turned. `forward()`, `back()`, `left()`, `right()`, `up()` and
`down()` are taken from the view matrix last computed by `view()`. Movement is
done with `move_forward`, `move_back`, `move_left`, `move_right`, `move_up`,
`move_down`, `yaw` and `pitch`.

## Logging

`egakeru.log.init()` attaches a standard-output handler to the `engine`
logger and enables every level, including a `TRACE` level below `DEBUG`;
`get_logger()` returns that logger.

## What this package does not do

It only reads, converts and prepares asset data. It has no renderer, no
window or input handling, and no audio playback. `ResourceType` lists
`SYSTEM_FONT` and `AUDIO`, but the package has no loader for either.

## Running the tests

```
pip install -e .[test]
pytest
```