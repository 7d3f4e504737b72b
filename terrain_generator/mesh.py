# terrain_generator/mesh.py

"""
================================================================================
CHUNK MESH BUILDER
================================================================================
Converts a chunk height field into renderable geometry: a grid of vertices
(position, normal, colour, texture coordinate) and a triangle index list.

Data Contract:
---------------
- Inputs:
    - A square height field (resolution x resolution, indexed [z, x]).
    - The chunk coordinate, chunk size (world units) and height scale.
- Outputs:
    - A TerrainMesh holding a structured VERTEX_DTYPE array of
      resolution**2 vertices, a uint32 index array of 6 * (resolution - 1)**2
      entries, and the axis-aligned bounds of all vertex positions.
- Side Effects: None. Output arrays are read-only.
- Invariants:
    - Vertex (x, z) lives at index z * resolution + x.
    - Triangles wind TL, BL, TR / TR, BL, BR so normals point up (+Y).
    - Identical inputs produce byte-identical vertex and index buffers.
================================================================================
"""
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from . import color_maps
from .heightmap import ChunkCoordinate, chunk_axis
from .sampler import TerrainSampler

VERTEX_DTYPE = np.dtype([
    ('position', np.float32, (3,)),
    ('normal', np.float32, (3,)),
    ('color', np.uint8, (4,)),
    ('texcoord', np.float32, (2,)),
])


@dataclass(frozen=True)
class TerrainMesh:
    vertices: np.ndarray
    indices: np.ndarray
    bounds_min: tuple[float, float, float]
    bounds_max: tuple[float, float, float]

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3


def build_grid_indices(resolution: int) -> np.ndarray:
    """Two triangles per quad, row-major over quads."""
    z, x = np.meshgrid(np.arange(resolution - 1), np.arange(resolution - 1), indexing='ij')
    top_left = (z * resolution + x).ravel()
    top_right = top_left + 1
    bottom_left = top_left + resolution
    bottom_right = bottom_left + 1

    quads = np.stack([top_left, bottom_left, top_right, top_right, bottom_left, bottom_right], axis=1)
    return quads.ravel().astype(np.uint32)

def calculate_vertex_normals(positions: np.ndarray, indices: np.ndarray) -> np.ndarray:
    """
    Smooth normals: each triangle's (unnormalized) face normal is added to its
    three vertices, then every sum is normalized.
    """
    scratch = np.zeros(positions.shape, dtype=np.float64)
    tris = indices.reshape(-1, 3).astype(np.intp)
    p = positions.astype(np.float64)

    v1, v2, v3 = p[tris[:, 0]], p[tris[:, 1]], p[tris[:, 2]]
    face_normals = np.cross(v2 - v1, v3 - v1)
    for corner in range(3):
        np.add.at(scratch, tris[:, corner], face_normals)

    lengths = np.linalg.norm(scratch, axis=1)
    normals = np.zeros_like(scratch)
    normals[:, 1] = 1.0
    nonzero = lengths > 0
    normals[nonzero] = scratch[nonzero] / lengths[nonzero, np.newaxis]
    return normals

def calculate_slope(heights: np.ndarray, spacing: float) -> np.ndarray:
    """
    Central-difference slope magnitude in world units; boundary cells are 0
    because their neighbours belong to another chunk.
    """
    slope = np.zeros_like(heights, dtype=np.float64)
    slope_x = (heights[1:-1, 2:] - heights[1:-1, :-2]) / (2 * spacing)
    slope_z = (heights[2:, 1:-1] - heights[:-2, 1:-1]) / (2 * spacing)
    slope[1:-1, 1:-1] = np.sqrt(slope_x ** 2 + slope_z ** 2)
    return slope


class MeshBuilder:
    def __init__(self, sampler: TerrainSampler, palette: Mapping = None):
        self.sampler = sampler
        self.color_lut = color_maps.create_biome_color_lut(palette)

    def build(self, height_field: np.ndarray, coord, chunk_size: float, height_scale: float) -> TerrainMesh:
        height_field = np.asarray(height_field, dtype=np.float64)
        if height_field.ndim != 2 or height_field.shape[0] != height_field.shape[1]:
            raise ValueError(f"Height field must be square, got shape {height_field.shape}")
        resolution = height_field.shape[0]
        if resolution < 2:
            raise ValueError(f"Height field resolution must be at least 2, got {resolution}")

        coord = ChunkCoordinate(int(coord[0]), int(coord[1]))
        chunk_size = float(chunk_size)

        # --- Positions ---
        x_axis = chunk_axis(coord.cx, resolution, chunk_size)
        z_axis = chunk_axis(coord.cz, resolution, chunk_size)
        x_grid, z_grid = np.meshgrid(x_axis, z_axis)
        world_heights = height_field * height_scale

        positions = np.stack([x_grid.ravel(), world_heights.ravel(), z_grid.ravel()], axis=1).astype(np.float32)
        indices = build_grid_indices(resolution)

        # --- Colours ---
        colors = self._vertex_colors(height_field, world_heights, x_grid, z_grid, chunk_size / (resolution - 1))

        # --- Normals ---
        normals = calculate_vertex_normals(positions, indices)
        colors = color_maps.apply_steepness_shade(colors, normals[:, 1])

        # --- Texture Coordinates ---
        fractions = np.arange(resolution, dtype=np.float32) / (resolution - 1)
        u_grid, v_grid = np.meshgrid(fractions, fractions)

        vertices = np.empty(resolution * resolution, dtype=VERTEX_DTYPE)
        vertices['position'] = positions
        vertices['normal'] = normals.astype(np.float32)
        vertices['color'][:, :3] = colors
        vertices['color'][:, 3] = 255
        vertices['texcoord'] = np.stack([u_grid.ravel(), v_grid.ravel()], axis=1)

        vertices.flags.writeable = False
        indices.flags.writeable = False
        return TerrainMesh(
            vertices=vertices,
            indices=indices,
            bounds_min=tuple(float(v) for v in positions.min(axis=0)),
            bounds_max=tuple(float(v) for v in positions.max(axis=0)),
        )

    def _vertex_colors(self, height_field, world_heights, x_grid, z_grid, spacing) -> np.ndarray:
        biome_map, _, moisture, temperature = self.sampler.get_biome_map(x_grid, z_grid)
        biome_ids = biome_map.ravel()

        colors = self.color_lut[biome_ids]
        colors = color_maps.apply_climate_tint(colors, biome_ids, moisture.ravel(), temperature.ravel())
        colors = color_maps.apply_height_shade(colors, height_field.ravel())

        interior = np.zeros(height_field.shape, dtype=bool)
        interior[1:-1, 1:-1] = True
        slope = calculate_slope(world_heights, spacing)
        return color_maps.apply_slope_rock(colors, slope.ravel(), biome_ids, mask=interior.ravel())
