# terrain_generator/biomes.py

"""
================================================================================
BIOME CLASSIFICATION
================================================================================
A fixed decision table mapping (height, moisture, temperature) to one of
eleven biome kinds. Height selects one of five bands; moisture and
temperature split each band further.

Data Contract:
---------------
- Inputs: normalized height, moisture and temperature in [0, 1], either as
  scalars (classify_biome) or as NumPy arrays (calculate_biome_map).
- Outputs: a BiomeType, or a uint8 array of BiomeType values.
- Side Effects: None.
- Invariants: Classification is total. Every input maps to exactly one biome,
  and the scalar and array versions agree element-wise.
================================================================================
"""
from enum import IntEnum
from typing import Mapping, NamedTuple

import numpy as np

from . import config as DEFAULTS


class BiomeType(IntEnum):
    OCEAN = 0
    PLAINS = 1
    FOREST = 2
    HILLS = 3
    MOUNTAINS = 4
    SNOWY_MOUNTAINS = 5
    DESERT = 6
    SAVANNA = 7
    SWAMP = 8
    CONIFEROUS_FOREST = 9
    SNOWY_CONIFEROUS_FOREST = 10


class BiomeSample(NamedTuple):
    biome: BiomeType
    height: float
    moisture: float
    temperature: float


# --- Band Split Thresholds ---
PLAINS_SWAMP_MIN_MOISTURE = 0.7
PLAINS_FOREST_MIN_MOISTURE = 0.4
HILLS_FOREST_MIN_MOISTURE = 0.6
HILLS_MIN_MOISTURE = 0.3
MOUNTAIN_SNOWY_FOREST_MAX_TEMP = 0.3
MOUNTAIN_FOREST_MIN_MOISTURE = 0.5
PEAK_SNOW_MAX_TEMP = 0.2


def classify_biome(height: float, moisture: float, temperature: float,
                   levels: Mapping = DEFAULTS.TERRAIN_LEVELS) -> BiomeType:
    """Classifies a single point."""
    if height < levels["water"]:
        return BiomeType.OCEAN

    if height < levels["plain"]:
        if moisture > PLAINS_SWAMP_MIN_MOISTURE:
            return BiomeType.SWAMP
        if moisture > PLAINS_FOREST_MIN_MOISTURE:
            return BiomeType.FOREST
        return BiomeType.PLAINS

    if height < levels["hill"]:
        if moisture > HILLS_FOREST_MIN_MOISTURE:
            return BiomeType.FOREST
        if moisture > HILLS_MIN_MOISTURE:
            return BiomeType.HILLS
        return BiomeType.SAVANNA

    if height < levels["mountain"]:
        if temperature < MOUNTAIN_SNOWY_FOREST_MAX_TEMP:
            return BiomeType.SNOWY_CONIFEROUS_FOREST
        if moisture > MOUNTAIN_FOREST_MIN_MOISTURE:
            return BiomeType.CONIFEROUS_FOREST
        return BiomeType.MOUNTAINS

    if temperature < PEAK_SNOW_MAX_TEMP:
        return BiomeType.SNOWY_MOUNTAINS
    return BiomeType.MOUNTAINS


def calculate_biome_map(height_values: np.ndarray, moisture_values: np.ndarray, temperature_values: np.ndarray,
                        levels: Mapping = DEFAULTS.TERRAIN_LEVELS) -> np.ndarray:
    """Vectorized classify_biome(); returns a uint8 array of BiomeType values."""
    h = np.asarray(height_values)
    m = np.asarray(moisture_values)
    t = np.asarray(temperature_values)

    plains_band = np.select(
        [m > PLAINS_SWAMP_MIN_MOISTURE, m > PLAINS_FOREST_MIN_MOISTURE],
        [BiomeType.SWAMP, BiomeType.FOREST],
        default=BiomeType.PLAINS,
    )
    hills_band = np.select(
        [m > HILLS_FOREST_MIN_MOISTURE, m > HILLS_MIN_MOISTURE],
        [BiomeType.FOREST, BiomeType.HILLS],
        default=BiomeType.SAVANNA,
    )
    mountain_band = np.select(
        [t < MOUNTAIN_SNOWY_FOREST_MAX_TEMP, m > MOUNTAIN_FOREST_MIN_MOISTURE],
        [BiomeType.SNOWY_CONIFEROUS_FOREST, BiomeType.CONIFEROUS_FOREST],
        default=BiomeType.MOUNTAINS,
    )
    peak_band = np.where(t < PEAK_SNOW_MAX_TEMP, BiomeType.SNOWY_MOUNTAINS, BiomeType.MOUNTAINS)

    biome_map = np.select(
        [h < levels["water"], h < levels["plain"], h < levels["hill"], h < levels["mountain"]],
        [BiomeType.OCEAN, plains_band, hills_band, mountain_band],
        default=peak_band,
    )
    return biome_map.astype(np.uint8)
