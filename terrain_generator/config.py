# terrain_generator/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
generator and the chunk streamer. These values are used if they are not
explicitly provided by the user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC WORLD.
Instead, pass a configuration dictionary to resolve_settings() and hand the
resulting settings to the TerrainSampler / ChunkStreamer.
================================================================================
"""
import logging
from types import MappingProxyType
from typing import Mapping

# --- Noise Generation ---
DEFAULT_SEED = 1337
# Sub-seeds for the four noise layers are derived as seed + offset.
TERRAIN_SEED_OFFSET = 0
DETAIL_SEED_OFFSET = 1
MOISTURE_SEED_OFFSET = 2
TEMPERATURE_SEED_OFFSET = 3

# Base terrain layer. World coordinates are divided by the scale before
# sampling, so a larger scale means broader landforms.
NOISE_SCALE = 100.0
NOISE_OCTAVES = 6
NOISE_PERSISTENCE = 0.65
NOISE_LACUNARITY = 2.5
# Frequency of the terrain field itself (applied after the scale division).
TERRAIN_NOISE_FREQUENCY = 0.01

# Detail layer: small bumps layered on top of the base terrain.
DETAIL_NOISE_FREQUENCY = 0.05
DETAIL_EXTRA_OCTAVES = 2
DETAIL_COORD_FACTOR = 0.1
DETAIL_WEIGHT = 0.1

# Climate layers. Low frequencies give very large moisture/temperature regions.
MOISTURE_NOISE_FREQUENCY = 0.003
MOISTURE_NOISE_OCTAVES = 4
TEMPERATURE_NOISE_FREQUENCY = 0.002
TEMPERATURE_NOISE_OCTAVES = 3

# Higher terrain is colder: temperature -= height * LAPSE_RATE.
TEMPERATURE_LAPSE_RATE = 0.3

# Fractal defaults shared by every NoiseField.
FRACTAL_WEIGHTED_STRENGTH = 0.0
FRACTAL_PING_PONG_STRENGTH = 2.0

NOISE_KINDS = ("gradient", "simplex")
FRACTAL_KINDS = ("none", "fbm", "ridged", "pingpong")

# --- Terrain & Biome Levels (Normalized 0.0 to 1.0) ---
TERRAIN_LEVELS = {
    "water": 0.18,
    "plain": 0.25,
    "hill": 0.45,
    "mountain": 0.65,
}

# Control points (input, output) of the height remapping curve.
HEIGHT_CURVE_KEYS = (
    (0.0, 0.0),                                 # Deep ocean
    (TERRAIN_LEVELS["water"] - 0.05, 0.1),      # Ocean shelf
    (TERRAIN_LEVELS["water"], 0.2),             # Coastline
    (TERRAIN_LEVELS["plain"], 0.3),             # Plains
    (TERRAIN_LEVELS["hill"], 0.5),              # Hills
    (TERRAIN_LEVELS["mountain"], 0.7),          # Mountain base
    (0.8, 0.85),                                # Mountain
    (0.9, 0.95),                                # High mountain
    (1.0, 1.0),                                 # Peak
)

# --- Terrain Shaping ---
EROSION_STRENGTH = 0.2
SEDIMENT_FACTOR = 0.1
RIVER_MIN_MOISTURE = 0.7
RIVER_NOISE_THRESHOLD = 0.7
RIVER_COORD_FACTOR = 0.5
RIVER_CARVE_DEPTH = 0.1
RIVER_BED_BELOW_WATER = 0.02

# --- Heightmap Cache ---
HEIGHTMAP_CACHE_CAPACITY = 20
# 'lru': evict only the least recently used entry on overflow.
# 'clear': drop every entry on overflow (parity with the legacy behaviour).
HEIGHTMAP_CACHE_POLICY = 'lru'
CACHE_POLICIES = ('lru', 'clear')

# --- Meshing & Streaming ---
CHUNK_SIZE = 200.0          # World units along one side of a chunk.
CHUNK_RESOLUTION = 64       # Vertices along one side of a chunk.
HEIGHT_MULTIPLIER = 250.0   # World-space height of a normalized 1.0.
VIEW_DISTANCE = 6           # Radius of the visible set, in chunks.
# Extra chunks beyond the view distance before a hidden chunk is retired.
HYSTERESIS_MARGIN = 2
# Chunk generation workers. 1 keeps all generation on the calling thread.
MAX_WORKERS = 1

# --- Vertex Colouring ---
ROCK_COLOR = (100, 100, 100)
SLOPE_ROCK_THRESHOLD = 0.5
SLOPE_ROCK_MAX_BLEND = 0.8
HEIGHT_SHADE_RANGE = (0.7, 1.2)
MOISTURE_TINT_STRENGTH = 0.4
TEMPERATURE_TINT_STRENGTH = 0.3
# Normals whose up component is below this are darkened (steeper than ~37 deg).
STEEP_NORMAL_THRESHOLD = 0.8
STEEP_SHADE_RANGE = (0.6, 1.0)


_DEFAULTS = {
    'seed': DEFAULT_SEED,
    'noise_scale': NOISE_SCALE,
    'octaves': NOISE_OCTAVES,
    'persistence': NOISE_PERSISTENCE,
    'lacunarity': NOISE_LACUNARITY,
    'terrain_noise_frequency': TERRAIN_NOISE_FREQUENCY,
    'detail_noise_frequency': DETAIL_NOISE_FREQUENCY,
    'moisture_noise_frequency': MOISTURE_NOISE_FREQUENCY,
    'temperature_noise_frequency': TEMPERATURE_NOISE_FREQUENCY,
    'height_multiplier': HEIGHT_MULTIPLIER,
    'terrain_levels': TERRAIN_LEVELS,
    'height_curve_keys': HEIGHT_CURVE_KEYS,
    'chunk_size': CHUNK_SIZE,
    'chunk_resolution': CHUNK_RESOLUTION,
    'view_distance': VIEW_DISTANCE,
    'hysteresis_margin': HYSTERESIS_MARGIN,
    'cache_capacity': HEIGHTMAP_CACHE_CAPACITY,
    'cache_policy': HEIGHTMAP_CACHE_POLICY,
    'max_workers': MAX_WORKERS,
}


def resolve_settings(user_config: dict = None, logger: logging.Logger = None) -> Mapping:
    """
    Consolidates a user configuration dictionary with the internal defaults.

    Args:
        user_config (dict, optional): Parameters overriding the defaults.
        logger (logging.Logger, optional): Receives warnings about ignored keys.

    Returns:
        A read-only mapping holding every setting.

    Raises:
        ValueError: If a value is outside its valid range.
    """
    logger = logger or logging.getLogger(__name__)
    user_config = dict(user_config or {})

    unknown = sorted(set(user_config) - set(_DEFAULTS))
    for key in unknown:
        logger.warning(f"Ignoring unknown terrain setting '{key}'.")

    settings = {key: user_config.get(key, default) for key, default in _DEFAULTS.items()}
    settings['seed'] = int(settings['seed'])
    settings['octaves'] = int(settings['octaves'])
    settings['chunk_resolution'] = int(settings['chunk_resolution'])
    settings['view_distance'] = int(settings['view_distance'])
    settings['hysteresis_margin'] = int(settings['hysteresis_margin'])
    settings['cache_capacity'] = int(settings['cache_capacity'])
    settings['max_workers'] = int(settings['max_workers'])
    levels = dict(settings['terrain_levels'])
    for key in sorted(set(levels) - set(TERRAIN_LEVELS)):
        logger.warning(f"Ignoring unknown terrain level '{key}'.")
        del levels[key]
    settings['terrain_levels'] = MappingProxyType({**TERRAIN_LEVELS, **levels})
    settings['height_curve_keys'] = tuple(
        (float(t), float(v)) for t, v in settings['height_curve_keys']
    )

    _validate(settings)
    return MappingProxyType(settings)


def _validate(settings: dict):
    """Raises ValueError naming the first offending key."""
    if settings['noise_scale'] <= 0:
        raise ValueError(f"noise_scale must be positive, got {settings['noise_scale']}")
    if settings['octaves'] < 1:
        raise ValueError(f"octaves must be at least 1, got {settings['octaves']}")
    if settings['chunk_size'] <= 0:
        raise ValueError(f"chunk_size must be positive, got {settings['chunk_size']}")
    if settings['chunk_resolution'] < 2:
        raise ValueError(f"chunk_resolution must be at least 2, got {settings['chunk_resolution']}")
    if settings['view_distance'] < 0:
        raise ValueError(f"view_distance must not be negative, got {settings['view_distance']}")
    if settings['hysteresis_margin'] < 0:
        raise ValueError(f"hysteresis_margin must not be negative, got {settings['hysteresis_margin']}")
    if settings['cache_capacity'] < 1:
        raise ValueError(f"cache_capacity must be at least 1, got {settings['cache_capacity']}")
    if settings['cache_policy'] not in CACHE_POLICIES:
        raise ValueError(f"cache_policy must be one of {CACHE_POLICIES}, got '{settings['cache_policy']}'")
    if settings['max_workers'] < 1:
        raise ValueError(f"max_workers must be at least 1, got {settings['max_workers']}")
    levels = settings['terrain_levels']
    if not levels['water'] < levels['plain'] < levels['hill'] < levels['mountain']:
        raise ValueError(f"terrain_levels must be strictly increasing, got {dict(levels)}")
