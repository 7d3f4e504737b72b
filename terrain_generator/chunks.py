# terrain_generator/chunks.py

"""
================================================================================
CHUNK STREAMING
================================================================================
The ChunkStreamer keeps a set of terrain chunks alive around a moving
viewpoint. Each update maps the viewpoint to a chunk coordinate; when that
coordinate changes, chunks within the view distance are created or shown,
everything else is hidden, and hidden chunks beyond the hysteresis band are
retired to a removal queue that is drained on the next update.

Chunk lifecycle:
    absent -> visible <-> hidden -> pending removal -> disposed

Data Contract:
---------------
- Inputs:
    - settings: a configuration dict or resolved settings mapping.
    - logger: a configured Python logging object.
    - on_dispose (optional): called with each TerrainChunk right before its
      resources are released.
    - update(viewpoint): a world position (x, y, z) or (x, z).
- Outputs:
    - visible_chunks(): live, visible chunks in sorted coordinate order.
    - height_at(x, z): world-space surface height, independent of streaming.
- Side Effects: Logs chunk-set changes at INFO and failures at CRITICAL.
- Invariants:
    - A coordinate is either live or pending removal, never both for the
      same chunk object.
    - A failed chunk is never inserted into the live set.
================================================================================
"""
import logging
import math
import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Protocol

from . import config as DEFAULTS
from .heightmap import ChunkCoordinate, HeightFieldGenerator
from .mesh import MeshBuilder, TerrainMesh
from .sampler import TerrainSampler


# --- Errors ---
class TerrainGenerationError(RuntimeError):
    """Base class for terrain generation failures."""


class ChunkGenerationError(TerrainGenerationError):
    def __init__(self, coord: ChunkCoordinate, cause: BaseException):
        self.coord = coord
        super().__init__(f"Failed to generate chunk {tuple(coord)}: {cause}")


class StreamerStateError(TerrainGenerationError):
    """The chunk state machine was driven into an impossible state."""


class ChunkReleaseHook(Protocol):
    """Receives a chunk whose GPU-side resources should be freed."""
    def __call__(self, chunk: 'TerrainChunk') -> None: ...


class TerrainChunk:
    """A generated chunk. Owned by the ChunkStreamer; renderers only read it."""

    def __init__(self, coord: ChunkCoordinate, mesh: TerrainMesh):
        self.coord = coord
        self._mesh = mesh
        self.is_visible = True
        self.disposed = False

    def __repr__(self) -> str:
        state = 'disposed' if self.disposed else ('visible' if self.is_visible else 'hidden')
        return f"TerrainChunk({tuple(self.coord)}, {state})"

    @property
    def mesh(self) -> TerrainMesh:
        if self._mesh is None:
            raise StreamerStateError(f"Chunk {tuple(self.coord)} has already been disposed")
        return self._mesh

    @property
    def vertices(self):
        return self.mesh.vertices

    @property
    def indices(self):
        return self.mesh.indices

    @property
    def bounding_box(self) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        return self.mesh.bounds_min, self.mesh.bounds_max

    def dispose(self):
        if self.disposed:
            raise StreamerStateError(f"Chunk {tuple(self.coord)} disposed twice")
        self.disposed = True
        self.is_visible = False
        self._mesh = None


class ChunkStreamer:
    def __init__(self, settings: Mapping = None, logger: logging.Logger = None, sampler: TerrainSampler = None,
                 on_dispose: Optional[ChunkReleaseHook] = None, palette: Mapping = None, max_workers: int = None):
        self.logger = logger or logging.getLogger(__name__)
        if sampler is not None and settings is None:
            settings = sampler.settings
        self.settings = DEFAULTS.resolve_settings(settings, logger=self.logger)

        self.sampler = sampler or TerrainSampler(self.settings, self.logger)
        self.height_fields = HeightFieldGenerator(self.sampler, self.settings, self.logger)
        self.mesh_builder = MeshBuilder(self.sampler, palette=palette)
        self.on_dispose = on_dispose

        self.chunk_size = float(self.settings['chunk_size'])
        self.height_scale = float(self.settings['height_multiplier'])
        self.view_distance = self.settings['view_distance']
        self.retire_distance = self.view_distance + self.settings['hysteresis_margin']

        self._chunks: dict[ChunkCoordinate, TerrainChunk] = {}
        self._removal_queue: deque[TerrainChunk] = deque()
        self._lock = threading.Lock()
        self._center: Optional[ChunkCoordinate] = None
        self._closed = False
        self.created_count = 0
        self.disposed_count = 0

        workers = max_workers if max_workers is not None else self.settings['max_workers']
        if workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {workers}")
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunkgen") if workers > 1 else None

        self.logger.info(
            f"ChunkStreamer initialized: chunk size {self.chunk_size}, resolution "
            f"{self.settings['chunk_resolution']}, view distance {self.view_distance}, workers {workers}"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()

    # --- Queries ---
    @property
    def chunks(self) -> Mapping[ChunkCoordinate, TerrainChunk]:
        """Read-only view of the live chunk map."""
        return MappingProxyType(self._chunks)

    @property
    def center(self) -> Optional[ChunkCoordinate]:
        return self._center

    @property
    def pending_removals(self) -> tuple[ChunkCoordinate, ...]:
        return tuple(chunk.coord for chunk in self._removal_queue)

    def chunk_coord_for(self, position) -> ChunkCoordinate:
        """Floors a world position (x, y, z) or (x, z) onto the chunk grid."""
        x = position[0]
        z = position[2] if len(position) > 2 else position[1]
        return ChunkCoordinate(math.floor(x / self.chunk_size), math.floor(z / self.chunk_size))

    def required_coords(self, center: ChunkCoordinate) -> list[ChunkCoordinate]:
        """Coordinates within the view distance of `center`, in sorted order."""
        vd = self.view_distance
        return [
            ChunkCoordinate(center.cx + dx, center.cz + dz)
            for dx in range(-vd, vd + 1)
            for dz in range(-vd, vd + 1)
            if dx * dx + dz * dz <= vd * vd
        ]

    def visible_chunks(self) -> list[TerrainChunk]:
        with self._lock:
            return [chunk for coord, chunk in sorted(self._chunks.items()) if chunk.is_visible]

    def height_at(self, world_x: float, world_z: float) -> float:
        return self.sampler.height_at(world_x, world_z)

    def diagnostics(self) -> dict:
        with self._lock:
            visible = sum(1 for chunk in self._chunks.values() if chunk.is_visible)
            snapshot = {
                'center': tuple(self._center) if self._center is not None else None,
                'live': len(self._chunks),
                'visible': visible,
                'hidden': len(self._chunks) - visible,
                'pending_removal': len(self._removal_queue),
                'created': self.created_count,
                'disposed': self.disposed_count,
            }
        for key, value in self.height_fields.cache.stats().items():
            snapshot[f'cache_{key}'] = value
        return snapshot

    # --- Streaming ---
    def update(self, viewpoint) -> bool:
        """
        Drains the removal queue left by the previous update, then recomputes
        the chunk set if the viewpoint entered a different chunk.

        Returns:
            True if the chunk set was recomputed.

        Raises:
            ChunkGenerationError: If a chunk could not be built.
            StreamerStateError: If the streamer has been disposed.
        """
        if self._closed:
            raise StreamerStateError("update() called on a disposed ChunkStreamer")

        self.drain_removals()

        center = self.chunk_coord_for(viewpoint)
        if center == self._center:
            return False

        start_time = time.perf_counter()
        created, retired = self._update_visible_chunks(center)
        self._center = center

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Chunk update at {tuple(center)}: {created} created, {retired} retired, "
            f"{len(self._chunks)} live ({elapsed_ms:.1f} ms)"
        )
        return True

    def _update_visible_chunks(self, center: ChunkCoordinate) -> tuple[int, int]:
        required = self.required_coords(center)

        with self._lock:
            for chunk in self._chunks.values():
                chunk.is_visible = False
            missing = []
            for coord in required:
                chunk = self._chunks.get(coord)
                if chunk is None:
                    missing.append(coord)
                else:
                    chunk.is_visible = True

        for chunk in self._generate(missing):
            with self._lock:
                self._chunks[chunk.coord] = chunk
            self.created_count += 1

        return len(missing), self._retire_hidden(center)

    def _generate(self, coords: list[ChunkCoordinate]) -> Iterable[TerrainChunk]:
        """Yields new chunks in the order of `coords`; stops at the first failure."""
        if self._executor is None or len(coords) < 2:
            for coord in coords:
                yield self._build_chunk(coord)
            return

        futures = [self._executor.submit(self._build_chunk, coord) for coord in coords]
        try:
            for future in futures:
                yield future.result()
        finally:
            for future in futures:
                future.cancel()

    def _build_chunk(self, coord: ChunkCoordinate) -> TerrainChunk:
        try:
            height_field = self.height_fields.height_field(coord)
            mesh = self.mesh_builder.build(height_field, coord, self.chunk_size, self.height_scale)
        except Exception as exc:
            self.logger.critical(f"Failed to generate chunk {tuple(coord)}.", exc_info=True)
            raise ChunkGenerationError(coord, exc) from exc
        return TerrainChunk(coord, mesh)

    def _retire_hidden(self, center: ChunkCoordinate) -> int:
        limit = self.retire_distance * self.retire_distance
        with self._lock:
            retired = [
                coord for coord, chunk in sorted(self._chunks.items())
                if not chunk.is_visible
                and (coord.cx - center.cx) ** 2 + (coord.cz - center.cz) ** 2 > limit
            ]
            for coord in retired:
                chunk = self._chunks.pop(coord)
                if any(queued is chunk for queued in self._removal_queue):
                    raise StreamerStateError(f"Chunk {tuple(coord)} is already queued for removal")
                self._removal_queue.append(chunk)
        return len(retired)

    def drain_removals(self) -> int:
        """
        Releases every chunk waiting in the removal queue.
        A chunk leaves the queue only once it is disposed. If the release hook
        raises, the remaining chunks are still released and the first error is
        re-raised afterwards.
        """
        released = 0
        first_error = None
        while self._removal_queue:
            chunk = self._removal_queue[0]
            if self._chunks.get(chunk.coord) is chunk:
                raise StreamerStateError(f"Chunk {tuple(chunk.coord)} queued for removal while still live")
            try:
                self._release(chunk)
            except Exception as exc:
                first_error = first_error or exc
            finally:
                self._removal_queue.popleft()
            released += 1
        if released:
            self.logger.debug(f"Disposed {released} retired chunks.")
        if first_error is not None:
            raise first_error
        return released

    def _release(self, chunk: TerrainChunk):
        try:
            if self.on_dispose is not None:
                self.on_dispose(chunk)
        except Exception:
            self.logger.error(f"Release hook failed for chunk {tuple(chunk.coord)}.", exc_info=True)
            raise
        finally:
            chunk.dispose()
            self.disposed_count += 1

    def dispose(self):
        """
        Releases every live and pending chunk and stops the worker pool.
        Every chunk is disposed even if the release hook raises; the first
        hook error is re-raised once the streamer is closed.
        """
        if self._closed:
            return
        first_error = None
        try:
            with self._lock:
                live = [chunk for _, chunk in sorted(self._chunks.items())]
            for chunk in live:
                try:
                    self._release(chunk)
                except Exception as exc:
                    first_error = first_error or exc
                finally:
                    with self._lock:
                        self._chunks.pop(chunk.coord, None)
            try:
                self.drain_removals()
            except Exception as exc:
                first_error = first_error or exc
        finally:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
            self._closed = True
            self.logger.info(f"ChunkStreamer disposed ({self.disposed_count} chunks released in total).")
        if first_error is not None:
            raise first_error
