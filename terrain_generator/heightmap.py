# terrain_generator/heightmap.py

"""
================================================================================
HEIGHT FIELD GENERATION & CACHING
================================================================================
This module produces the per-chunk height grid: it samples the terrain
sampler over a resolution x resolution lattice, applies two single-pass
shaping heuristics (erosion smoothing, river carving), and memoizes the
result in a bounded cache keyed by chunk coordinate.

Data Contract:
---------------
- Inputs:
    - A TerrainSampler and the resolved settings (chunk size, resolution,
      terrain levels, cache capacity and policy).
    - A ChunkCoordinate (cx, cz).
- Outputs:
    - A read-only float64 array of shape (resolution, resolution), indexed
      [z, x], with values in [0, 1].
- Side Effects: Logs cache activity at DEBUG level.
- Invariants:
    - Adjacent chunks sample identical world positions along shared edges.
    - The cache never holds more than `capacity` entries.
    - Returned height fields are never modified after shaping.
================================================================================
"""
import logging
import threading
import time
from collections import OrderedDict
from typing import Mapping, NamedTuple

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .sampler import TerrainSampler


class ChunkCoordinate(NamedTuple):
    """Integer position of a chunk on the infinite chunk grid."""
    cx: int
    cz: int


def chunk_axis(chunk_index: int, resolution: int, chunk_size: float) -> np.ndarray:
    """
    World positions of the vertices along one chunk axis. The last sample of
    one chunk equals the first sample of the next.
    """
    fractions = np.arange(resolution, dtype=np.float64) / (resolution - 1)
    return (chunk_index + fractions) * chunk_size


# --- Shaping Kernels ---
@njit(nogil=True)
def apply_erosion(heights, water_level, erosion_strength, sediment_factor):
    """
    Pulls interior peaks toward the 4-neighbour average and lifts valleys.
    Works in place, row by row, so later cells see earlier updates.
    """
    rows, cols = heights.shape
    for z in range(1, rows - 1):
        for x in range(1, cols - 1):
            h = heights[z, x]
            if h <= water_level:
                continue

            avg = (heights[z, x - 1] + heights[z, x + 1] + heights[z - 1, x] + heights[z + 1, x]) / 4.0

            if h > avg:
                factor = erosion_strength * (h - avg) / h
                heights[z, x] = h - (h - avg) * factor
            elif h < avg:
                heights[z, x] = h + (avg - h) * sediment_factor

@njit(nogil=True)
def carve_rivers(heights, moisture, river_noise, water_level, mountain_level, min_moisture,
                 noise_threshold, depth, bed_offset):
    """Lowers wet, mid-altitude cells that sit below a neighbour."""
    rows, cols = heights.shape
    floor_level = water_level - bed_offset
    for z in range(1, rows - 1):
        for x in range(1, cols - 1):
            h = heights[z, x]
            if moisture[z, x] <= min_moisture or h <= water_level or h >= mountain_level:
                continue

            has_higher_neighbour = (
                heights[z, x - 1] > h or heights[z, x + 1] > h or
                heights[z - 1, x] > h or heights[z + 1, x] > h
            )
            if has_higher_neighbour and river_noise[z, x] > noise_threshold:
                heights[z, x] = max(floor_level, h - depth)


class HeightmapCache:
    """
    A bounded mapping of ChunkCoordinate -> height field.

    Policies:
        'lru':   on overflow, evict the least recently used entry.
        'clear': on overflow, drop every entry before inserting.
    """

    def __init__(self, capacity: int = DEFAULTS.HEIGHTMAP_CACHE_CAPACITY,
                 policy: str = DEFAULTS.HEIGHTMAP_CACHE_POLICY, logger: logging.Logger = None):
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if policy not in DEFAULTS.CACHE_POLICIES:
            raise ValueError(f"policy must be one of {DEFAULTS.CACHE_POLICIES}, got '{policy}'")
        self.capacity = capacity
        self.policy = policy
        self.logger = logger or logging.getLogger(__name__)
        self._entries: "OrderedDict[ChunkCoordinate, np.ndarray]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, coord) -> bool:
        return coord in self._entries

    def get(self, coord: ChunkCoordinate):
        """Returns the cached field or None, updating hit/miss counters."""
        field = self._entries.get(coord)
        if field is None:
            self.misses += 1
            return None
        self.hits += 1
        if self.policy == 'lru':
            self._entries.move_to_end(coord)
        return field

    def put(self, coord: ChunkCoordinate, field: np.ndarray):
        if coord in self._entries:
            self._entries[coord] = field
            self._entries.move_to_end(coord)
            return

        if len(self._entries) >= self.capacity:
            if self.policy == 'clear':
                self.logger.debug(f"Height cache full ({len(self._entries)} entries); clearing.")
                self.evictions += len(self._entries)
                self._entries.clear()
            else:
                while len(self._entries) >= self.capacity:
                    evicted, _ = self._entries.popitem(last=False)
                    self.evictions += 1
                    self.logger.debug(f"Height cache evicted chunk {tuple(evicted)}.")

        self._entries[coord] = field

    def clear(self):
        self._entries.clear()

    def stats(self) -> dict:
        return {
            'size': len(self._entries),
            'capacity': self.capacity,
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
        }


class HeightFieldGenerator:
    """
    Generates, shapes and memoizes chunk height fields.
    Cache access is serialized by a lock so chunks may be generated from
    worker threads; the generation itself runs outside the lock.
    """

    def __init__(self, sampler: TerrainSampler, settings: Mapping = None, logger: logging.Logger = None,
                 cache: HeightmapCache = None):
        self.logger = logger or logging.getLogger(__name__)
        self.sampler = sampler
        self.settings = DEFAULTS.resolve_settings(settings if settings is not None else sampler.settings,
                                                  logger=self.logger)
        self.chunk_size = float(self.settings['chunk_size'])
        self.resolution = self.settings['chunk_resolution']
        self.levels = self.settings['terrain_levels']
        self.cache = cache if cache is not None else HeightmapCache(
            capacity=self.settings['cache_capacity'],
            policy=self.settings['cache_policy'],
            logger=self.logger,
        )
        self._cache_lock = threading.Lock()

    def get_coordinate_grid(self, coord: ChunkCoordinate) -> tuple[np.ndarray, np.ndarray]:
        """World-space (x, z) grids for a chunk, indexed [z, x]."""
        x_axis = chunk_axis(coord[0], self.resolution, self.chunk_size)
        z_axis = chunk_axis(coord[1], self.resolution, self.chunk_size)
        return np.meshgrid(x_axis, z_axis)

    def height_field(self, coord) -> np.ndarray:
        """The shaped height field for a chunk, computed at most once while cached."""
        coord = ChunkCoordinate(int(coord[0]), int(coord[1]))
        with self._cache_lock:
            cached = self.cache.get(coord)
        if cached is not None:
            self.logger.debug(f"Height cache hit for chunk {tuple(coord)}.")
            return cached

        field = self.generate(coord)

        with self._cache_lock:
            self.cache.put(coord, field)
        return field

    def generate(self, coord: ChunkCoordinate) -> np.ndarray:
        """Samples and shapes a chunk's height field, bypassing the cache."""
        start_time = time.perf_counter()
        x_grid, z_grid = self.get_coordinate_grid(coord)

        heights = self.sampler.get_height(x_grid, z_grid)
        moisture = self.sampler.get_moisture(x_grid, z_grid)
        river_noise = self.sampler.get_river_noise(x_grid, z_grid)

        heights = np.ascontiguousarray(heights, dtype=np.float64)
        apply_erosion(heights, self.levels['water'], DEFAULTS.EROSION_STRENGTH, DEFAULTS.SEDIMENT_FACTOR)
        carve_rivers(
            heights, moisture, river_noise,
            self.levels['water'], self.levels['mountain'],
            DEFAULTS.RIVER_MIN_MOISTURE, DEFAULTS.RIVER_NOISE_THRESHOLD,
            DEFAULTS.RIVER_CARVE_DEPTH, DEFAULTS.RIVER_BED_BELOW_WATER,
        )

        heights.flags.writeable = False
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.debug(f"Generated height field for chunk {tuple(coord)} in {elapsed_ms:.1f} ms.")
        return heights
