# terrain_generator/__init__.py

# Public API of the terrain generator package.

from .config import resolve_settings
from .noise import NoiseField
from .curve import HeightCurve
from .biomes import BiomeType, BiomeSample, classify_biome, calculate_biome_map
from .sampler import TerrainSampler
from .heightmap import ChunkCoordinate, HeightmapCache, HeightFieldGenerator
from .mesh import VERTEX_DTYPE, TerrainMesh, MeshBuilder
from .chunks import (
    ChunkGenerationError,
    ChunkReleaseHook,
    ChunkStreamer,
    StreamerStateError,
    TerrainChunk,
    TerrainGenerationError,
)

__all__ = [
    "resolve_settings",
    "NoiseField",
    "HeightCurve",
    "BiomeType",
    "BiomeSample",
    "classify_biome",
    "calculate_biome_map",
    "TerrainSampler",
    "ChunkCoordinate",
    "HeightmapCache",
    "HeightFieldGenerator",
    "VERTEX_DTYPE",
    "TerrainMesh",
    "MeshBuilder",
    "ChunkStreamer",
    "ChunkReleaseHook",
    "TerrainChunk",
    "TerrainGenerationError",
    "ChunkGenerationError",
    "StreamerStateError",
]
