import math

from egakeru.geometry_utils import (
    Vertex3D,
    deduplicate_vertices,
    generate_tangents,
    reassign_index,
)


def _triangle():
    return [
        Vertex3D(position=(0.0, 0.0, 0.0), tex=(0.0, 0.0)),
        Vertex3D(position=(1.0, 0.0, 0.0), tex=(1.0, 0.0)),
        Vertex3D(position=(0.0, 1.0, 0.0), tex=(0.0, 1.0)),
    ]


def test_generate_tangents_simple_triangle():
    vertices = _triangle()
    generate_tangents(vertices, [0, 1, 2])
    assert vertices[0].tangent == (1.0, 0.0, 0.0, -1.0)


def test_generate_tangents_shared_and_unit_length():
    vertices = [
        Vertex3D(position=(0.0, 0.0, 0.0), tex=(0.1, 0.2)),
        Vertex3D(position=(2.0, 1.0, 0.5), tex=(0.9, 0.3)),
        Vertex3D(position=(0.5, 3.0, 1.0), tex=(0.4, 0.8)),
    ]
    generate_tangents(vertices, [0, 1, 2])
    assert vertices[0].tangent == vertices[1].tangent == vertices[2].tangent
    x, y, z, w = vertices[0].tangent
    assert math.isclose(math.sqrt(x * x + y * y + z * z), 1.0, rel_tol=1e-9)
    assert w in (-1.0, 1.0)


def test_generate_tangents_degenerate_uv_gives_nan():
    vertices = [Vertex3D(position=(float(i), float(i * i), 0.0)) for i in range(3)]
    generate_tangents(vertices, [0, 1, 2])
    x, y, z, w = vertices[0].tangent
    assert math.isnan(x)
    assert math.isnan(y)
    assert math.isnan(z)
    assert w == 1.0
    assert math.isnan(vertices[2].tangent[0])
    assert vertices[2].tangent[3] == 1.0


def test_reassign_index():
    assert reassign_index([0, 1, 2, 3], 2, 0) == [0, 1, 0, 2]


def test_reassign_index_leaves_lower_indices():
    indices = [0, 1, 1, 0]
    assert reassign_index(indices, 5, 0) == indices


def test_deduplicate_preserves_referenced_vertices():
    a = Vertex3D(position=(0.0, 0.0, 0.0))
    b = Vertex3D(position=(1.0, 0.0, 0.0))
    c = Vertex3D(position=(0.0, 1.0, 0.0))
    vertices = [a, b, c, Vertex3D(position=(1.0, 0.0, 0.0)), c, Vertex3D(position=(0.0, 0.0, 0.0))]
    indices = list(range(len(vertices)))
    unique, remapped = deduplicate_vertices(vertices, indices)
    assert len(unique) == 3
    assert len(remapped) == len(indices)
    for old, new in zip(indices, remapped):
        assert unique[new] == vertices[old]
    assert indices == list(range(len(vertices)))


def test_deduplicate_without_duplicates_is_identity():
    vertices = _triangle()
    unique, remapped = deduplicate_vertices(vertices, [0, 1, 2, 2, 1, 0])
    assert unique == vertices
    assert remapped == [0, 1, 2, 2, 1, 0]