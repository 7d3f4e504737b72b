# terrain_generator/color_maps.py

"""
================================================================================
VERTEX COLOUR MAPPING UTILITIES
================================================================================
This module holds the biome palette and the shading passes that turn a biome
base colour into a final per-vertex colour: climate tint, height shading,
rock blending on steep slopes, and darkening of steep normals.

It is a pure, stateless utility with no dependency on Pygame or any graphics
API, so the mesh builder and any viewer can share it.

Data Contract:
---------------
- Inputs: uint8 RGB colour arrays of shape (N, 3) plus per-vertex float
  arrays of shape (N,) (height, moisture, temperature, slope, normal up).
- Outputs: new uint8 RGB colour arrays of shape (N, 3).
- Invariants: Every pass rounds toward zero into [0, 255] before returning,
  so chaining passes is deterministic and byte-exact.
================================================================================
"""
from typing import Mapping

import numpy as np

from . import config as DEFAULTS
from .biomes import BiomeType

# --- Default Biome Palette ---
DEFAULT_BIOME_PALETTE = {
    BiomeType.OCEAN: (0, 75, 168),                      # Deep blue
    BiomeType.PLAINS: (120, 180, 70),                   # Light green
    BiomeType.FOREST: (40, 120, 40),                    # Dark green
    BiomeType.HILLS: (110, 150, 90),                    # Olive green
    BiomeType.MOUNTAINS: (120, 120, 120),               # Gray
    BiomeType.SNOWY_MOUNTAINS: (230, 230, 240),         # White
    BiomeType.DESERT: (220, 200, 110),                  # Sand
    BiomeType.SAVANNA: (190, 170, 90),                  # Yellow-green
    BiomeType.SWAMP: (70, 100, 70),                     # Dark olive
    BiomeType.CONIFEROUS_FOREST: (50, 90, 50),          # Dark green
    BiomeType.SNOWY_CONIFEROUS_FOREST: (150, 180, 180), # Blue-green
}

# Biomes that keep their palette colour regardless of climate.
UNTINTED_BIOMES = (BiomeType.OCEAN, BiomeType.SNOWY_MOUNTAINS)


def _to_bytes(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0, 255).astype(np.uint8)

def _lerp(a, b, t):
    return a + (b - a) * t


# --- Color Lookup Table (LUT) Generation ---
def create_biome_color_lut(palette: Mapping = None) -> np.ndarray:
    """
    Creates a LUT where the index is the BiomeType and the value is the RGB
    colour. Entries missing from `palette` fall back to the default palette.
    """
    merged = dict(DEFAULT_BIOME_PALETTE)
    for biome, color in (palette or {}).items():
        if len(color) not in (3, 4):
            raise ValueError(f"Palette colour for {BiomeType(biome).name} must be RGB or RGBA, got {color!r}")
        # Alpha is ignored; terrain vertices are always opaque.
        merged[BiomeType(biome)] = tuple(int(c) for c in color[:3])
    return np.array([merged[biome] for biome in BiomeType], dtype=np.uint8)


# --- Shading Passes ---
def apply_climate_tint(colors: np.ndarray, biome_ids: np.ndarray, moisture: np.ndarray,
                       temperature: np.ndarray) -> np.ndarray:
    """
    Wetter ground becomes darker and more saturated; colder ground shifts
    toward blue. Ocean and snowy peaks are left untouched.
    """
    c = colors.astype(np.float64)
    tinted = ~np.isin(biome_ids, UNTINTED_BIOMES)

    moisture_factor = moisture * DEFAULTS.MOISTURE_TINT_STRENGTH
    red = np.floor(np.clip(c[:, 0] * (1 - moisture_factor), 0, 255))
    green = np.floor(np.clip(c[:, 1] * (1 - moisture_factor * 0.5), 0, 255))

    temp_factor = (1 - temperature) * DEFAULTS.TEMPERATURE_TINT_STRENGTH
    red = np.clip(red * (1 - temp_factor), 0, 255)
    blue = np.clip(c[:, 2] * (1 + temp_factor), 0, 255)

    out = colors.copy()
    out[tinted] = _to_bytes(np.stack([red, green, blue], axis=1)[tinted])
    return out

def apply_height_shade(colors: np.ndarray, heights: np.ndarray) -> np.ndarray:
    """Darker in valleys, lighter on peaks."""
    low, high = DEFAULTS.HEIGHT_SHADE_RANGE
    factor = _lerp(low, high, heights)
    return _to_bytes(colors.astype(np.float64) * factor[:, np.newaxis])

def apply_slope_rock(colors: np.ndarray, slope: np.ndarray, biome_ids: np.ndarray,
                     mask: np.ndarray = None) -> np.ndarray:
    """
    Blends toward bare rock where the terrain slope exceeds the threshold.
    `mask` restricts the blend to vertices whose slope was measured.
    """
    threshold = DEFAULTS.SLOPE_ROCK_THRESHOLD
    rocky = (slope > threshold) & (biome_ids != BiomeType.OCEAN)
    if mask is not None:
        rocky &= mask

    blend = np.clip((slope - threshold) * 2.0, 0.0, DEFAULTS.SLOPE_ROCK_MAX_BLEND)[:, np.newaxis]
    rock = np.array(DEFAULTS.ROCK_COLOR, dtype=np.float64)
    blended = _to_bytes(_lerp(colors.astype(np.float64), rock, blend))

    out = colors.copy()
    out[rocky] = blended[rocky]
    return out

def apply_steepness_shade(colors: np.ndarray, normal_up: np.ndarray) -> np.ndarray:
    """Darkens vertices whose normal tilts past the steepness threshold."""
    low, high = DEFAULTS.STEEP_SHADE_RANGE
    steep = normal_up < DEFAULTS.STEEP_NORMAL_THRESHOLD
    darkening = _lerp(low, high, normal_up)[:, np.newaxis]

    out = colors.copy()
    out[steep] = _to_bytes(colors.astype(np.float64) * darkening)[steep]
    return out
