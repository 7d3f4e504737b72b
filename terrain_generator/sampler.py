# terrain_generator/sampler.py

"""
================================================================================
TERRAIN SAMPLER
================================================================================
This module contains the TerrainSampler class, which combines four
independently seeded noise fields (terrain, detail, moisture, temperature)
and a height remapping curve into normalized per-point terrain data.

Data Contract:
---------------
- Inputs (on initialization):
    - settings: a configuration dict, or a mapping already produced by
      config.resolve_settings(). Missing keys fall back to the defaults.
    - logger: a configured Python logging object for runtime messages.
- Outputs (from methods):
    - sample(x, z) / biome_at(x, z): a BiomeSample (biome, height,
      moisture, temperature), all values in [0, 1].
    - sample_grid(xs, zs): three NumPy arrays in [0, 1].
    - height_at(x, z): world-space height (normalized height x multiplier).
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and settings, output is deterministic.
  Single-point queries run through the grid path, so a point query and the
  matching grid cell always agree exactly.
================================================================================
"""
import logging
from typing import Mapping

import numpy as np

from . import config as DEFAULTS
from .biomes import BiomeSample, BiomeType, calculate_biome_map
from .curve import HeightCurve
from .noise import NoiseField


class TerrainSampler:
    """Stateless per call; safe to share read-only across threads."""

    def __init__(self, settings: Mapping = None, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        self.settings = DEFAULTS.resolve_settings(settings, logger=self.logger)

        seed = self.settings['seed']
        self.seed = seed
        self.levels = self.settings['terrain_levels']

        # --- Initialize Noise Layers ---
        self.terrain_field = NoiseField(
            seed=seed + DEFAULTS.TERRAIN_SEED_OFFSET,
            frequency=self.settings['terrain_noise_frequency'],
            noise_kind="gradient",
            fractal_kind="fbm",
            octaves=self.settings['octaves'],
            lacunarity=self.settings['lacunarity'],
            gain=self.settings['persistence'],
        )
        self.detail_field = NoiseField(
            seed=seed + DEFAULTS.DETAIL_SEED_OFFSET,
            frequency=self.settings['detail_noise_frequency'],
            noise_kind="simplex",
            fractal_kind="fbm",
            octaves=self.settings['octaves'] + DEFAULTS.DETAIL_EXTRA_OCTAVES,
        )
        self.moisture_field = NoiseField(
            seed=seed + DEFAULTS.MOISTURE_SEED_OFFSET,
            frequency=self.settings['moisture_noise_frequency'],
            noise_kind="simplex",
            fractal_kind="fbm",
            octaves=DEFAULTS.MOISTURE_NOISE_OCTAVES,
        )
        self.temperature_field = NoiseField(
            seed=seed + DEFAULTS.TEMPERATURE_SEED_OFFSET,
            frequency=self.settings['temperature_noise_frequency'],
            noise_kind="simplex",
            fractal_kind="fbm",
            octaves=DEFAULTS.TEMPERATURE_NOISE_OCTAVES,
        )

        self.height_curve = HeightCurve(self.settings['height_curve_keys'])

        self.logger.info(
            f"TerrainSampler initialized with seed: {seed} "
            f"(scale {self.settings['noise_scale']}, {self.settings['octaves']} octaves)"
        )

    # --- Grid Queries ---
    def get_height(self, x_coords: np.ndarray, z_coords: np.ndarray) -> np.ndarray:
        """
        Normalized terrain height [0, 1] before any chunk shaping passes.
        """
        scale = self.settings['noise_scale']
        base = self.terrain_field.evaluate_grid(x_coords / scale, z_coords / scale)

        factor = DEFAULTS.DETAIL_COORD_FACTOR
        detail = self.detail_field.evaluate_grid(x_coords * factor, z_coords * factor)
        raw = base + detail * DEFAULTS.DETAIL_WEIGHT

        # Remap [-1, 1] to [0, 1], then reshape through the height curve.
        normalized = np.clip((raw + 1) * 0.5, 0.0, 1.0)
        return self.height_curve.evaluate_array(normalized)

    def get_moisture(self, x_coords: np.ndarray, z_coords: np.ndarray) -> np.ndarray:
        noise = self.moisture_field.evaluate_grid(x_coords, z_coords)
        return np.clip((noise + 1) * 0.5, 0.0, 1.0)

    def get_temperature(self, x_coords: np.ndarray, z_coords: np.ndarray, height_data: np.ndarray = None) -> np.ndarray:
        """
        Temperature [0, 1], reduced on high ground. Accepts pre-computed
        height data to avoid recalculation.
        """
        if height_data is None:
            height_data = self.get_height(x_coords, z_coords)
        noise = self.temperature_field.evaluate_grid(x_coords, z_coords)
        temperature = np.clip((noise + 1) * 0.5, 0.0, 1.0)
        return np.maximum(0.0, temperature - height_data * DEFAULTS.TEMPERATURE_LAPSE_RATE)

    def get_river_noise(self, x_coords: np.ndarray, z_coords: np.ndarray) -> np.ndarray:
        """Secondary detail-field test used by river carving."""
        factor = DEFAULTS.RIVER_COORD_FACTOR
        return self.detail_field.evaluate_grid(x_coords * factor, z_coords * factor)

    def sample_grid(self, x_coords: np.ndarray, z_coords: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Height, moisture and temperature arrays for a coordinate grid."""
        x_coords = np.asarray(x_coords, dtype=np.float64)
        z_coords = np.asarray(z_coords, dtype=np.float64)
        height = self.get_height(x_coords, z_coords)
        moisture = self.get_moisture(x_coords, z_coords)
        temperature = self.get_temperature(x_coords, z_coords, height_data=height)
        return height, moisture, temperature

    def get_biome_map(self, x_coords: np.ndarray, z_coords: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Biome IDs plus the height, moisture and temperature they came from."""
        height, moisture, temperature = self.sample_grid(x_coords, z_coords)
        biome_map = calculate_biome_map(height, moisture, temperature, self.levels)
        return biome_map, height, moisture, temperature

    # --- Single-Point Queries ---
    def sample(self, world_x: float, world_z: float) -> BiomeSample:
        biome_map, height, moisture, temperature = self.get_biome_map(
            np.array([world_x], dtype=np.float64), np.array([world_z], dtype=np.float64)
        )
        return BiomeSample(
            biome=BiomeType(int(biome_map[0])),
            height=float(height[0]),
            moisture=float(moisture[0]),
            temperature=float(temperature[0]),
        )

    def biome_at(self, world_x: float, world_z: float) -> BiomeSample:
        return self.sample(world_x, world_z)

    def height_at(self, world_x: float, world_z: float) -> float:
        """World-space surface height, independent of any chunk state."""
        height = self.get_height(np.array([world_x], dtype=np.float64), np.array([world_z], dtype=np.float64))
        return float(height[0]) * self.settings['height_multiplier']
