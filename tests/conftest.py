import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from terrain_generator import TerrainSampler, resolve_settings

# Small chunks keep the suite fast; scenario tests build their own settings.
SMALL_CONFIG = {
    "seed": 4242,
    "chunk_size": 50.0,
    "chunk_resolution": 9,
    "view_distance": 2,
    "hysteresis_margin": 2,
    "cache_capacity": 8,
}


@pytest.fixture
def small_settings():
    return resolve_settings(SMALL_CONFIG)


@pytest.fixture
def sampler(small_settings):
    return TerrainSampler(small_settings)
