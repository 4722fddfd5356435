import pytest

from egakeru.resource_loader import (
    LoaderProperties,
    Resource,
    ResourceLoadError,
    ResourceLoader,
    ResourceType,
)


class _EchoLoader(ResourceLoader):
    def __init__(self, properties):
        super().__init__(ResourceType.CUSTOM, properties)

    def load(self, name, params=None):
        if not name:
            raise ResourceLoadError("empty name")
        return Resource(self.loader_type, name, f"{self.base_path}/{name}", params)


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        ResourceLoader(ResourceType.TEXT, LoaderProperties("assets"))


def test_loader_keeps_type_and_path():
    loader = _EchoLoader(LoaderProperties("assets/custom"))
    assert loader.loader_type is ResourceType.CUSTOM
    assert loader.base_path == "assets/custom"
    assert loader.custom_type_name == ""


def test_custom_type_name_is_taken_from_properties():
    loader = _EchoLoader(LoaderProperties("assets", custom_type="terrain"))
    assert loader.custom_type_name == "terrain"


def test_load_and_default_unload():
    loader = _EchoLoader(LoaderProperties("base"))
    resource = loader.load("thing", params=[1, 2])
    assert resource.full_path == "base/thing"
    assert resource.data == [1, 2]
    loader.unload(resource)
    assert resource.data is None


def test_load_error_propagates():
    loader = _EchoLoader(LoaderProperties("base"))
    with pytest.raises(ResourceLoadError):
        loader.load("")