import numpy as np
import pytest

from terrain_generator import color_maps
from terrain_generator.biomes import BiomeType


def _colors(*rgb):
    return np.array(rgb, dtype=np.uint8)


def test_lut_covers_every_biome():
    lut = color_maps.create_biome_color_lut()
    assert lut.shape == (len(BiomeType), 3)
    assert lut.dtype == np.uint8
    assert tuple(lut[BiomeType.OCEAN]) == color_maps.DEFAULT_BIOME_PALETTE[BiomeType.OCEAN]


def test_partial_palette_override():
    lut = color_maps.create_biome_color_lut({BiomeType.PLAINS: (1, 2, 3), BiomeType.SWAMP: (4, 5, 6, 128)})
    assert tuple(lut[BiomeType.PLAINS]) == (1, 2, 3)
    assert tuple(lut[BiomeType.SWAMP]) == (4, 5, 6)
    assert tuple(lut[BiomeType.FOREST]) == color_maps.DEFAULT_BIOME_PALETTE[BiomeType.FOREST]


def test_palette_rejects_bad_colours():
    with pytest.raises(ValueError):
        color_maps.create_biome_color_lut({BiomeType.PLAINS: (1, 2)})


def test_climate_tint_skips_ocean_and_snowy_peaks():
    colors = _colors((0, 75, 168), (230, 230, 240), (120, 180, 70))
    biomes = np.array([BiomeType.OCEAN, BiomeType.SNOWY_MOUNTAINS, BiomeType.PLAINS], dtype=np.uint8)
    moisture = np.full(3, 0.9)
    temperature = np.full(3, 0.1)

    out = color_maps.apply_climate_tint(colors, biomes, moisture, temperature)
    np.testing.assert_array_equal(out[:2], colors[:2])
    # Wet, cold plains get darker red and a stronger blue channel.
    assert out[2, 0] < colors[2, 0]
    assert out[2, 1] < colors[2, 1]
    assert out[2, 2] > colors[2, 2]


def test_climate_tint_neutral_for_dry_hot_ground():
    colors = _colors((120, 180, 70))
    out = color_maps.apply_climate_tint(colors, np.array([BiomeType.PLAINS]), np.zeros(1), np.ones(1))
    np.testing.assert_array_equal(out, colors)


def test_height_shade_scales_with_height():
    colors = _colors((100, 100, 100), (100, 100, 100))
    out = color_maps.apply_height_shade(colors, np.array([0.0, 1.0]))
    assert out[0, 0] < 100 < out[1, 0]
    assert out.dtype == np.uint8


def test_height_shade_saturates_instead_of_wrapping():
    out = color_maps.apply_height_shade(_colors((250, 250, 250)), np.array([1.0]))
    np.testing.assert_array_equal(out, _colors((255, 255, 255)))


def test_slope_rock_blend():
    colors = _colors((0, 200, 0), (0, 200, 0), (0, 200, 0), (0, 75, 168))
    slope = np.array([0.2, 0.75, 5.0, 5.0])
    biomes = np.array([BiomeType.PLAINS, BiomeType.PLAINS, BiomeType.PLAINS, BiomeType.OCEAN])

    out = color_maps.apply_slope_rock(colors, slope, biomes)
    np.testing.assert_array_equal(out[0], colors[0])
    np.testing.assert_array_equal(out[3], colors[3])
    # Blend weight (0.75 - 0.5) * 2 = 0.5 moves half way to grey rock.
    np.testing.assert_array_equal(out[1], [50, 150, 50])
    # Blend weight is capped at 0.8.
    np.testing.assert_array_equal(out[2], [80, 120, 80])


def test_slope_rock_respects_mask():
    colors = _colors((0, 200, 0))
    out = color_maps.apply_slope_rock(colors, np.array([5.0]), np.array([BiomeType.PLAINS]),
                                      mask=np.array([False]))
    np.testing.assert_array_equal(out, colors)


def test_steepness_shade_only_darkens_steep_vertices():
    colors = _colors((200, 200, 200), (200, 200, 200))
    out = color_maps.apply_steepness_shade(colors, np.array([1.0, 0.5]))
    np.testing.assert_array_equal(out[0], colors[0])
    expected = np.floor(200 * (0.6 + (1.0 - 0.6) * 0.5))
    np.testing.assert_array_equal(out[1], [expected] * 3)
