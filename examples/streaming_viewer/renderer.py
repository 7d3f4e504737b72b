# examples/streaming_viewer/renderer.py

import logging
import math

import numpy as np
import pygame

from terrain_generator import TerrainChunk
from camera import Camera


class ChunkSurfaceRenderer:
    """
    Draws streamed chunks top-down using their vertex colours.
    Surfaces are cached per chunk coordinate and freed through release(),
    which the ChunkStreamer calls when a chunk is disposed.
    """

    def __init__(self, chunk_size: float, logger: logging.Logger):
        self.chunk_size = chunk_size
        self.logger = logger
        self._surfaces: dict[tuple[int, int], pygame.Surface] = {}
        self._scaled: dict[tuple[int, int], pygame.Surface] = {}
        self._scaled_size = None

    def release(self, chunk: TerrainChunk):
        """ChunkReleaseHook: drops every surface derived from the chunk."""
        key = tuple(chunk.coord)
        self._surfaces.pop(key, None)
        self._scaled.pop(key, None)

    def _surface_for(self, chunk: TerrainChunk) -> pygame.Surface:
        key = tuple(chunk.coord)
        surface = self._surfaces.get(key)
        if surface is None:
            colors = chunk.vertices['color'][:, :3]
            resolution = math.isqrt(len(colors))
            # Vertices are stored [z, x]; surfarray expects [x, y].
            grid = colors.reshape(resolution, resolution, 3).transpose(1, 0, 2)
            surface = pygame.surfarray.make_surface(np.ascontiguousarray(grid))
            self._surfaces[key] = surface
        return surface

    def draw(self, screen: pygame.Surface, camera: Camera, chunks: list[TerrainChunk]) -> int:
        """Blits the visible chunks that overlap the screen. Returns the number drawn."""
        scaled_chunk_size = math.ceil(self.chunk_size * camera.zoom)
        if scaled_chunk_size <= 1:
            return 0

        if scaled_chunk_size != self._scaled_size:
            self._scaled.clear()
            self._scaled_size = scaled_chunk_size

        screen_width, screen_height = screen.get_size()
        rendered_chunks = 0
        for chunk in chunks:
            cx, cz = chunk.coord
            screen_pos = camera.world_to_screen(cx * self.chunk_size, cz * self.chunk_size)

            if screen_pos[0] < screen_width and screen_pos[1] < screen_height and \
               screen_pos[0] + scaled_chunk_size > 0 and screen_pos[1] + scaled_chunk_size > 0:

                key = tuple(chunk.coord)
                scaled_surface = self._scaled.get(key)
                if scaled_surface is None:
                    scaled_surface = pygame.transform.scale(
                        self._surface_for(chunk), (scaled_chunk_size, scaled_chunk_size)
                    )
                    self._scaled[key] = scaled_surface
                screen.blit(scaled_surface, screen_pos)
                rendered_chunks += 1
        return rendered_chunks
