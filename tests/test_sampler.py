import logging

import numpy as np
import pytest

from terrain_generator import BiomeSample, BiomeType, TerrainSampler, classify_biome


def _world_grid(size=300.0, count=25, offset=(-120.0, 40.0)):
    axis = np.linspace(0.0, size, count)
    return np.meshgrid(axis + offset[0], axis + offset[1])


def test_sampling_is_deterministic(small_settings):
    a = TerrainSampler(small_settings)
    b = TerrainSampler(small_settings)
    for x, z in [(0.0, 0.0), (153.7, -988.1), (-4000.5, 2500.25)]:
        assert a.sample(x, z) == b.sample(x, z)
        assert a.sample(x, z) == a.sample(x, z)


def test_values_are_normalized(sampler):
    xs, zs = _world_grid(size=3000.0, count=60)
    height, moisture, temperature = sampler.sample_grid(xs, zs)
    for values in (height, moisture, temperature):
        assert values.shape == xs.shape
        assert values.min() >= 0.0
        assert values.max() <= 1.0


def test_point_and_grid_queries_agree(sampler):
    xs, zs = _world_grid(count=7)
    biome_map, height, moisture, temperature = sampler.get_biome_map(xs, zs)

    for idx in np.ndindex(xs.shape):
        sample = sampler.sample(xs[idx], zs[idx])
        assert isinstance(sample, BiomeSample)
        assert sample.height == height[idx]
        assert sample.moisture == moisture[idx]
        assert sample.temperature == temperature[idx]
        assert sample.biome == BiomeType(int(biome_map[idx]))


def test_biome_matches_decision_table(sampler):
    sample = sampler.biome_at(321.0, -45.0)
    expected = classify_biome(sample.height, sample.moisture, sample.temperature, sampler.levels)
    assert sample.biome == expected


def test_height_at_applies_multiplier(small_settings):
    sampler = TerrainSampler(small_settings)
    sample = sampler.sample(77.0, 12.0)
    assert sampler.height_at(77.0, 12.0) == pytest.approx(sample.height * small_settings["height_multiplier"])


def test_temperature_drops_with_height(sampler):
    xs, zs = _world_grid(count=10)
    height = sampler.get_height(xs, zs)
    flat = sampler.get_temperature(xs, zs, height_data=np.zeros_like(height))
    lapsed = sampler.get_temperature(xs, zs, height_data=height)
    assert np.all(lapsed <= flat)
    np.testing.assert_array_equal(sampler.get_temperature(xs, zs), lapsed)


def test_different_seeds_give_different_terrain(small_settings):
    xs, zs = _world_grid()
    other = dict(small_settings)
    other["seed"] = small_settings["seed"] + 100
    a = TerrainSampler(small_settings).get_height(xs, zs)
    b = TerrainSampler(other).get_height(xs, zs)
    assert np.any(a != b)


def test_sub_seeds_are_offset_from_the_world_seed(sampler):
    seed = sampler.seed
    assert sampler.terrain_field.seed == seed
    assert sampler.detail_field.seed == seed + 1
    assert sampler.moisture_field.seed == seed + 2
    assert sampler.temperature_field.seed == seed + 3
    assert sampler.detail_field.octaves == sampler.terrain_field.octaves + 2


def test_plain_dict_configuration_is_accepted(caplog):
    with caplog.at_level(logging.WARNING):
        sampler = TerrainSampler({"seed": 5, "not_a_setting": 1})
    assert sampler.seed == 5
    assert "not_a_setting" in caplog.text
