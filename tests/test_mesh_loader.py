import pytest

from egakeru.geometry_utils import Vertex3D
from egakeru.material_loader import MaterialProperties, load_configuration_file
from egakeru.mesh_loader import (
    BUILTIN_MATERIAL_SHADER,
    DEFAULT_SHININESS,
    GeometryProperties,
    MeshFaceData,
    MeshLoader,
    MeshVertexIndexData,
    import_obj,
    import_obj_material_library,
    load_esm,
    process_subobject,
    write_emt,
    write_esm,
)
from egakeru.resource_loader import LoaderProperties, ResourceLoadError, ResourceType

POSITIONS = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
TEX = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
NORMALS = [(0.0, 0.0, 1.0)]

QUAD_OBJ = """# quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1
f 1/1/1 3/3/1 4/4/1
"""


def _face(*corners):
    return MeshFaceData(
        [MeshVertexIndexData(position_index=p, tex_index=t, normal_index=n) for p, t, n in corners]
    )


def _quad_faces():
    return [
        _face((1, 1, 1), (2, 2, 1), (3, 3, 1)),
        _face((1, 1, 1), (3, 3, 1), (4, 4, 1)),
    ]


def test_process_subobject_expands_faces():
    geometry = process_subobject(POSITIONS, NORMALS, TEX, _quad_faces())
    assert geometry.vertex_count == 6
    assert geometry.indices == [0, 1, 2, 3, 4, 5]
    assert geometry.material_name == "default"
    assert geometry.extents_min == (0.0, 0.0, 0.0)
    assert geometry.extents_max == (1.0, 1.0, 0.0)
    assert geometry.center == (0.5, 0.5, 0.0)
    assert [v.position for v in geometry.vertices] == [
        POSITIONS[0], POSITIONS[1], POSITIONS[2], POSITIONS[0], POSITIONS[2], POSITIONS[3]
    ]
    assert all(v.normal == NORMALS[0] for v in geometry.vertices)


def test_process_subobject_tangents_along_u():
    geometry = process_subobject(POSITIONS, NORMALS, TEX, _quad_faces())
    for vertex in geometry.vertices:
        assert vertex.tangent[:3] == pytest.approx((1.0, 0.0, 0.0))
        assert vertex.tangent[3] == -1.0


def test_process_subobject_without_normals_keeps_zero_normals():
    geometry = process_subobject(POSITIONS, [], TEX, _quad_faces())
    assert all(v.normal == (0.0, 0.0, 0.0) for v in geometry.vertices)


def test_process_subobject_bad_index_raises():
    with pytest.raises(ResourceLoadError):
        process_subobject(POSITIONS, NORMALS, TEX, [_face((1, 1, 1), (2, 2, 1), (9, 3, 1))])


def _write_quad(tmp_path, extra=""):
    models = tmp_path / "models"
    models.mkdir()
    obj = models / "quad.obj"
    obj.write_text(extra + QUAD_OBJ)
    return obj


def test_import_obj_deduplicates_and_keeps_triangles(tmp_path):
    obj = _write_quad(tmp_path)
    geometries = import_obj(obj)
    assert len(geometries) == 1
    geometry = geometries[0]
    positions = [v.position for v in geometry.vertices]
    assert len(positions) == len(set(positions)) == 4
    assert len(geometry.indices) == 6
    triangles = [
        [positions[i] for i in geometry.indices[k:k + 3]] for k in range(0, 6, 3)
    ]
    assert triangles == [
        [POSITIONS[0], POSITIONS[1], POSITIONS[2]],
        [POSITIONS[0], POSITIONS[2], POSITIONS[3]],
    ]


def test_import_obj_writes_esm_cache(tmp_path):
    obj = _write_quad(tmp_path)
    geometries = import_obj(obj)
    esm = obj.with_suffix(".esm")
    assert esm.is_file()
    assert load_esm(esm) == geometries


def test_import_obj_groups_and_materials(tmp_path):
    text = """v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
g first
usemtl red
f 1/1/1 2/2/1 3/3/1
g second
usemtl blue
f 1/1/1 3/3/1 4/4/1
"""
    obj = tmp_path / "groups.obj"
    obj.write_text(text)
    geometries = import_obj(obj)
    assert [(g.name, g.material_name) for g in geometries] == [
        ("first", "red"),
        ("second", "blue"),
    ]


def test_import_obj_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        import_obj(tmp_path / "nothing.obj")


def test_esm_round_trip(tmp_path):
    geometry = GeometryProperties(
        name="box",
        material_name="stone",
        vertices=[
            Vertex3D((0.0, 1.0, 2.0), (0.0, 0.0, 1.0), (0.5, 0.25), (1.0, 0.0, 0.0, 1.0)),
            Vertex3D((3.0, 4.0, 5.0), (1.0, 0.0, 0.0), (0.75, 1.0), (0.0, 1.0, 0.0, -1.0)),
        ],
        indices=[0, 1, 1],
        center=(1.5, 2.5, 3.5),
        extents_min=(0.0, 1.0, 2.0),
        extents_max=(3.0, 4.0, 5.0),
    )
    path = tmp_path / "box.esm"
    write_esm(path, [geometry, GeometryProperties(name="empty")])
    assert load_esm(path) == [geometry, GeometryProperties(name="empty")]


def test_load_esm_truncated_raises(tmp_path):
    path = tmp_path / "bad.esm"
    write_esm(path, [GeometryProperties(name="x", indices=[1, 2, 3])])
    path.write_bytes(path.read_bytes()[:-5])
    with pytest.raises(ResourceLoadError):
        load_esm(path)


def test_write_emt_reads_back(tmp_path):
    models = tmp_path / "models"
    models.mkdir()
    material = MaterialProperties(
        name="brick",
        shader_name=BUILTIN_MATERIAL_SHADER,
        diffuse_colour=(0.5, 0.25, 1.0, 1.0),
        shininess=16.0,
        diffuse_map_name="brick_d",
        specular_map_name="brick_s",
        normal_map_name="brick_n",
    )
    written = write_emt(models, material)
    assert written == (tmp_path / "materials" / "brick.emt").absolute()
    assert load_configuration_file(written) == material


def test_import_obj_material_library_writes_materials(tmp_path):
    models = tmp_path / "models"
    models.mkdir()
    mtl = models / "lib.mtl"
    mtl.write_text(
        "# library\n"
        "newmtl red\n"
        "Kd 1.0 0.0 0.0\n"
        "Ns 32\n"
        "map_Kd textures/red_diffuse.png\n"
        "bump textures/red_normal.png\n"
        "newmtl plain\n"
    )
    materials = import_obj_material_library(mtl)
    assert [m.name for m in materials] == ["red", "plain"]
    red = load_configuration_file(tmp_path / "materials" / "red.emt")
    assert red.name == "red"
    assert red.diffuse_colour == (1.0, 0.0, 0.0, 1.0)
    assert red.shininess == 32.0
    assert red.diffuse_map_name == "red_diffuse"
    assert red.normal_map_name == "red_normal"
    assert red.shader_name == BUILTIN_MATERIAL_SHADER


def test_material_library_default_shininess(tmp_path):
    mtl = tmp_path / "lib.mtl"
    mtl.write_text("newmtl dull\nKd 0.5 0.5 0.5\n")
    materials = import_obj_material_library(mtl)
    assert len(materials) == 1
    assert materials[0].shininess == DEFAULT_SHININESS
    assert load_configuration_file(tmp_path.parent / "materials" / "dull.emt").shininess == (
        DEFAULT_SHININESS
    )


def test_material_library_missing_file_writes_nothing(tmp_path):
    assert import_obj_material_library(tmp_path / "absent.mtl") == []


def test_import_obj_with_mtllib_names_material(tmp_path):
    models = tmp_path / "models"
    models.mkdir()
    (models / "quad.mtl").write_text("newmtl quadmat\nKd 0 1 0\n")
    obj = models / "quad.obj"
    obj.write_text("mtllib quad.mtl\n" + QUAD_OBJ)
    import_obj(obj)
    material = load_configuration_file(tmp_path / "materials" / "quadmat.emt")
    assert material.name == "quadmat"
    assert material.diffuse_colour == (0.0, 1.0, 0.0, 1.0)


def test_mesh_loader_imports_then_uses_cache(tmp_path):
    models = tmp_path / "models"
    models.mkdir()
    (models / "quad.obj").write_text(QUAD_OBJ)
    loader = MeshLoader(LoaderProperties(path=str(models)))

    first = loader.load("quad")
    assert first.type is ResourceType.MESH
    assert first.full_path.endswith("quad.obj")

    second = loader.load("quad")
    assert second.full_path.endswith("quad.esm")
    assert second.data == first.data

    loader.unload(second)
    assert second.data is None


def test_mesh_loader_missing_raises(tmp_path):
    loader = MeshLoader(LoaderProperties(path=str(tmp_path)))
    with pytest.raises(ResourceLoadError):
        loader.load("missing")