import numpy as np
import pytest

from terrain_generator.biomes import BiomeType, calculate_biome_map, classify_biome


@pytest.mark.parametrize("height, moisture, temperature, expected", [
    (0.10, 0.9, 0.9, BiomeType.OCEAN),
    (0.179, 0.0, 0.0, BiomeType.OCEAN),
    (0.20, 0.8, 0.5, BiomeType.SWAMP),
    (0.20, 0.5, 0.5, BiomeType.FOREST),
    (0.20, 0.2, 0.5, BiomeType.PLAINS),
    (0.30, 0.7, 0.5, BiomeType.FOREST),
    (0.30, 0.4, 0.5, BiomeType.HILLS),
    (0.30, 0.1, 0.5, BiomeType.SAVANNA),
    (0.50, 0.9, 0.1, BiomeType.SNOWY_CONIFEROUS_FOREST),
    (0.50, 0.6, 0.5, BiomeType.CONIFEROUS_FOREST),
    (0.50, 0.2, 0.5, BiomeType.MOUNTAINS),
    (0.80, 0.5, 0.1, BiomeType.SNOWY_MOUNTAINS),
    (0.80, 0.5, 0.5, BiomeType.MOUNTAINS),
])
def test_decision_table(height, moisture, temperature, expected):
    assert classify_biome(height, moisture, temperature) == expected


def test_band_thresholds_are_lower_inclusive():
    # A height exactly on a threshold belongs to the band above it.
    assert classify_biome(0.18, 0.0, 0.5) == BiomeType.PLAINS
    assert classify_biome(0.25, 0.0, 0.5) == BiomeType.SAVANNA
    assert classify_biome(0.65, 0.0, 0.5) == BiomeType.MOUNTAINS
    # Moisture splits use strict comparisons.
    assert classify_biome(0.20, 0.7, 0.5) == BiomeType.FOREST
    assert classify_biome(0.20, 0.4, 0.5) == BiomeType.PLAINS


def test_custom_levels():
    levels = {"water": 0.5, "plain": 0.6, "hill": 0.7, "mountain": 0.8}
    assert classify_biome(0.4, 0.5, 0.5, levels) == BiomeType.OCEAN
    assert classify_biome(0.4, 0.5, 0.5) == BiomeType.HILLS
    assert classify_biome(0.4, 0.7, 0.5) == BiomeType.FOREST


def test_classification_is_total_and_vectorized_version_agrees():
    axis = np.linspace(0.0, 1.0, 21)
    h, m, t = np.meshgrid(axis, axis, axis, indexing="ij")

    biome_map = calculate_biome_map(h, m, t)
    assert biome_map.dtype == np.uint8
    assert biome_map.shape == h.shape
    assert set(np.unique(biome_map).tolist()) <= {int(b) for b in BiomeType}

    for idx in np.ndindex(h.shape):
        assert biome_map[idx] == classify_biome(h[idx], m[idx], t[idx])


def test_desert_is_never_produced():
    rng = np.random.default_rng(0)
    h, m, t = rng.random((3, 5000))
    assert not np.any(calculate_biome_map(h, m, t) == BiomeType.DESERT)


def test_eleven_biome_kinds():
    assert len(BiomeType) == 11
    assert [int(b) for b in BiomeType] == list(range(11))
