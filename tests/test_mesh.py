import numpy as np
import pytest

from terrain_generator import BiomeType, HeightFieldGenerator, MeshBuilder, TerrainSampler, resolve_settings
from terrain_generator.mesh import VERTEX_DTYPE, build_grid_indices, calculate_vertex_normals

SCENARIO_CONFIG = {
    "seed": 12345,
    "noise_scale": 100.0,
    "octaves": 6,
    "chunk_size": 200.0,
    "chunk_resolution": 64,
}


def _build(sampler, settings, coord=(0, 0), palette=None):
    field = HeightFieldGenerator(sampler, settings).height_field(coord)
    builder = MeshBuilder(sampler, palette=palette)
    return builder.build(field, coord, settings["chunk_size"], settings["height_multiplier"])


@pytest.fixture(scope="module")
def scenario():
    settings = resolve_settings(SCENARIO_CONFIG)
    sampler = TerrainSampler(settings)
    generator = HeightFieldGenerator(sampler, settings)
    return settings, sampler, generator


def test_reference_chunk_counts(scenario):
    settings, sampler, generator = scenario
    first = generator.height_field((0, 0))
    again = generator.height_field((0, 0))
    np.testing.assert_array_equal(first, again)
    np.testing.assert_array_equal(first, generator.generate((0, 0)))

    mesh = MeshBuilder(sampler).build(first, (0, 0), 200.0, settings["height_multiplier"])
    assert mesh.vertex_count == 4096
    assert mesh.index_count == 23814
    assert mesh.triangle_count == 23814 // 3


def test_reference_chunk_rebuild_is_byte_identical(scenario):
    settings, sampler, generator = scenario
    field = generator.height_field((0, 0))
    a = MeshBuilder(sampler).build(field, (0, 0), 200.0, settings["height_multiplier"])
    b = MeshBuilder(sampler).build(field.copy(), (0, 0), 200.0, settings["height_multiplier"])

    assert a.vertices.tobytes() == b.vertices.tobytes()
    assert a.indices.tobytes() == b.indices.tobytes()


def test_mesh_invariants(sampler, small_settings):
    mesh = _build(sampler, small_settings, coord=(-2, 3))
    resolution = small_settings["chunk_resolution"]

    assert mesh.vertices.dtype == VERTEX_DTYPE
    assert mesh.indices.dtype == np.uint32
    assert mesh.index_count == 6 * (resolution - 1) ** 2
    assert mesh.indices.max() < mesh.vertex_count

    lengths = np.linalg.norm(mesh.vertices["normal"], axis=1)
    np.testing.assert_allclose(lengths, 1.0, atol=1e-5)
    # Counter-clockwise winding viewed from above gives upward normals.
    assert np.all(mesh.vertices["normal"][:, 1] > 0.0)
    assert np.all(mesh.vertices["color"][:, 3] == 255)


def test_vertex_layout(sampler, small_settings):
    coord = (1, 2)
    size = small_settings["chunk_size"]
    resolution = small_settings["chunk_resolution"]
    field = HeightFieldGenerator(sampler, small_settings).height_field(coord)
    mesh = MeshBuilder(sampler).build(field, coord, size, small_settings["height_multiplier"])

    positions = mesh.vertices["position"]
    # Vertex (x, z) lives at z * resolution + x.
    np.testing.assert_allclose(positions[0], [size, field[0, 0] * small_settings["height_multiplier"], 2 * size],
                               rtol=1e-6)
    np.testing.assert_allclose(positions[resolution - 1, [0, 2]], [2 * size, 2 * size])
    np.testing.assert_allclose(positions[-1, [0, 2]], [2 * size, 3 * size])

    texcoords = mesh.vertices["texcoord"]
    np.testing.assert_array_equal(texcoords[0], [0.0, 0.0])
    np.testing.assert_array_equal(texcoords[-1], [1.0, 1.0])


def test_bounding_box(sampler, small_settings):
    mesh = _build(sampler, small_settings, coord=(1, -1))
    positions = mesh.vertices["position"]

    assert mesh.bounds_min == tuple(float(v) for v in positions.min(axis=0))
    assert mesh.bounds_max == tuple(float(v) for v in positions.max(axis=0))
    assert mesh.bounds_min[0] == 50.0
    assert mesh.bounds_max[0] == 100.0
    assert mesh.bounds_min[2] == -50.0
    assert mesh.bounds_max[2] == 0.0


def test_output_buffers_are_read_only(sampler, small_settings):
    mesh = _build(sampler, small_settings)
    with pytest.raises(ValueError):
        mesh.indices[0] = 1
    with pytest.raises(ValueError):
        mesh.vertices["color"][0] = (0, 0, 0, 0)


def test_grid_indices_winding():
    indices = build_grid_indices(3)
    # First quad: TL, BL, TR / TR, BL, BR.
    assert indices[:6].tolist() == [0, 3, 1, 1, 3, 4]
    assert len(indices) == 6 * 4


def test_flat_grid_normals_point_up():
    x, z = np.meshgrid(np.arange(4.0), np.arange(4.0))
    positions = np.stack([x.ravel(), np.full(16, 5.0), z.ravel()], axis=1)
    normals = calculate_vertex_normals(positions, build_grid_indices(4))
    np.testing.assert_allclose(normals, np.tile([0.0, 1.0, 0.0], (16, 1)))


def test_palette_override_changes_colours(sampler, small_settings):
    white = {biome: (255, 255, 255) for biome in BiomeType}
    default_mesh = _build(sampler, small_settings)
    white_mesh = _build(sampler, small_settings, palette=white)

    assert MeshBuilder(sampler, palette=white).color_lut.min() == 255
    assert not np.array_equal(default_mesh.vertices["color"], white_mesh.vertices["color"])
    np.testing.assert_array_equal(default_mesh.vertices["position"], white_mesh.vertices["position"])


@pytest.mark.parametrize("shape", [(4, 5), (1, 1), (8,)])
def test_rejects_bad_height_fields(sampler, shape):
    with pytest.raises(ValueError):
        MeshBuilder(sampler).build(np.zeros(shape), (0, 0), 10.0, 1.0)
