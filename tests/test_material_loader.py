import pytest

from egakeru.material_loader import (
    DEFAULT_DIFFUSE_NAME,
    DEFAULT_NORMAL_NAME,
    DEFAULT_SPECULAR_NAME,
    MaterialLoader,
    MaterialProperties,
    load_configuration_file,
    parse_material_configuration,
)
from egakeru.resource_loader import LoaderProperties, ResourceType

SAMPLE = [
    "# a material",
    "version = 0.1",
    "name=wall",
    "diffuse_colour=0.5 0.25 1.0 1.0",
    "diffuse_map_name = brick_d",
    "specular_map_name=brick_s",
    "normal_map_name=brick_n",
    "shader=Shader.Builtin.Material",
    "shininess=32.0",
]


def test_parse_sample():
    props = parse_material_configuration(SAMPLE)
    assert props == MaterialProperties(
        name="wall",
        shader_name="Shader.Builtin.Material",
        diffuse_colour=(0.5, 0.25, 1.0, 1.0),
        shininess=32.0,
        diffuse_map_name="brick_d",
        specular_map_name="brick_s",
        normal_map_name="brick_n",
    )


def test_lines_without_equals_and_blank_are_skipped():
    props = parse_material_configuration(["", "   ", "garbage line", "name = ok"])
    assert props.name == "ok"


def test_unknown_variable_leaves_properties_unchanged():
    props = parse_material_configuration(["colour_mode=hsv"])
    assert props == MaterialProperties()


def test_short_colour_fills_with_zero():
    props = parse_material_configuration(["diffuse_colour=0.5 0.75"])
    assert props.diffuse_colour == (0.5, 0.75, 0.0, 0.0)


def test_value_keeps_inner_equals_sign():
    props = parse_material_configuration(["name=a=b"])
    assert props.name == "a=b"


def test_missing_file_gives_default_material(tmp_path):
    props = load_configuration_file(tmp_path / "missing.emt")
    assert props.diffuse_colour == (1.0, 1.0, 1.0, 1.0)
    assert props.diffuse_map_name == DEFAULT_DIFFUSE_NAME
    assert props.specular_map_name == DEFAULT_SPECULAR_NAME
    assert props.normal_map_name == DEFAULT_NORMAL_NAME


def test_loader_reads_emt_file(tmp_path):
    (tmp_path / "wall.emt").write_text("\n".join(SAMPLE) + "\n")
    loader = MaterialLoader(LoaderProperties(str(tmp_path)))
    resource = loader.load("wall")
    assert resource.type is ResourceType.MATERIAL
    assert resource.name == "wall"
    assert resource.full_path == f"{tmp_path}/wall.emt"
    assert resource.data.shininess == pytest.approx(32.0)
    loader.unload(resource)
    assert resource.data is None