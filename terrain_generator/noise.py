# terrain_generator/noise.py

"""
================================================================================
NOISE GENERATION UTILITIES
================================================================================
This module provides seeded 2D gradient noise and its fractal compositions
(FBm, Ridged, PingPong). The numeric kernels are pure functions compiled with
Numba; the NoiseField class is an immutable bundle of parameters that calls
into them.

Data Contract:
---------------
- Inputs:
    - NoiseField parameters: seed, frequency, noise kind, fractal kind,
      octaves, lacunarity, gain, weighted strength, ping-pong strength.
    - x, y: scalars (evaluate) or NumPy arrays of any shape (evaluate_grid).
- Outputs:
    - Noise values in the range [-1, 1]. Grid outputs match the input shape.
- Side Effects: None.
- Invariants: Identical parameters and coordinates always produce identical
  values. Scalar and grid evaluation share one kernel, so they agree exactly.
================================================================================
"""

from dataclasses import dataclass, field, replace

import numpy as np
from numba import njit

from . import config as DEFAULTS

# --- Kind Codes (passed into the compiled kernels) ---
NOISE_KIND_CODES = {"gradient": 0, "simplex": 1}
FRACTAL_KIND_CODES = {"none": 0, "fbm": 1, "ridged": 2, "pingpong": 3}

# Large primes used to spread lattice coordinates before hashing.
PRIME_X = 501125321
PRIME_Y = 1136930381
HASH_MULTIPLIER = 0x27d4eb2d

# Skew factor for simplex-family noise: rotates the sampling lattice to hide
# axis-aligned artifacts.
SKEW_F2 = 0.5 * (np.sqrt(3.0) - 1.0)

# Unit gradients spaced at 15 degrees, starting 7.5 degrees off the y axis.
_angles = np.radians(7.5 + 15.0 * np.arange(24))
_GRADIENTS_2D = np.stack([np.sin(_angles), np.cos(_angles)], axis=1)
_GRADIENT_COUNT = _GRADIENTS_2D.shape[0]

# With unit gradients the raw interpolated value lies in [-sqrt(0.5), sqrt(0.5)].
GRADIENT_NORMALIZER = np.sqrt(2.0)


@njit(nogil=True)
def _u32(x):
    return x & 0xFFFFFFFF

@njit(nogil=True)
def _lerp(a, b, t):
    "Linear interpolation."
    return a + t * (b - a)

@njit(nogil=True)
def _fade(t):
    "6t^5 - 15t^4 + 10t^3"
    return t * t * t * (t * (t * 6 - 15) + 10)

@njit(nogil=True)
def _ping_pong(t):
    t -= int(t * 0.5) * 2
    if t < 1:
        return t
    return 2 - t

@njit(nogil=True)
def _hash(seed, x_primed, y_primed):
    h = _u32(seed ^ x_primed ^ y_primed)
    h = _u32(h * HASH_MULTIPLIER)
    return h ^ (h >> 15)

@njit(nogil=True)
def _grad_coord(seed, x_primed, y_primed, xd, yd):
    """Dot product of the lattice corner's hashed gradient and the offset."""
    g = _GRADIENTS_2D[_hash(seed, x_primed, y_primed) % _GRADIENT_COUNT]
    return g[0] * xd + g[1] * yd

@njit(nogil=True)
def single_gradient(seed, x, y):
    """
    One octave of 2D gradient noise at (x, y).
    Corner gradients are chosen by hashing the seed with the lattice
    coordinates and blended with a quintic fade of the fractional offset.
    """
    x0 = int(np.floor(x))
    y0 = int(np.floor(y))

    xd0 = x - x0
    yd0 = y - y0
    xd1 = xd0 - 1
    yd1 = yd0 - 1

    xs = _fade(xd0)
    ys = _fade(yd0)

    seed = _u32(seed)
    xp0 = _u32(x0 * PRIME_X)
    yp0 = _u32(y0 * PRIME_Y)
    xp1 = _u32(xp0 + PRIME_X)
    yp1 = _u32(yp0 + PRIME_Y)

    xf0 = _lerp(_grad_coord(seed, xp0, yp0, xd0, yd0), _grad_coord(seed, xp1, yp0, xd1, yd0), xs)
    xf1 = _lerp(_grad_coord(seed, xp0, yp1, xd0, yd1), _grad_coord(seed, xp1, yp1, xd1, yd1), xs)

    return _lerp(xf0, xf1, ys) * GRADIENT_NORMALIZER

@njit(nogil=True)
def _fractal_fbm(seed, x, y, octaves, lacunarity, gain, weighted_strength, bounding):
    total = 0.0
    amp = bounding
    for i in range(octaves):
        n = single_gradient(seed + i, x, y)
        total += n * amp
        amp *= _lerp(1.0, min(n + 1, 2.0) * 0.5, weighted_strength)
        x *= lacunarity
        y *= lacunarity
        amp *= gain
    return total

@njit(nogil=True)
def _fractal_ridged(seed, x, y, octaves, lacunarity, gain, weighted_strength, bounding):
    total = 0.0
    amp = bounding
    for i in range(octaves):
        n = abs(single_gradient(seed + i, x, y))
        total += (n * -2 + 1) * amp
        amp *= _lerp(1.0, 1 - n, weighted_strength)
        x *= lacunarity
        y *= lacunarity
        amp *= gain
    return total

@njit(nogil=True)
def _fractal_ping_pong(seed, x, y, octaves, lacunarity, gain, weighted_strength, ping_pong_strength, bounding):
    total = 0.0
    amp = bounding
    for i in range(octaves):
        n = _ping_pong((single_gradient(seed + i, x, y) + 1) * ping_pong_strength)
        total += (n - 0.5) * 2 * amp
        amp *= _lerp(1.0, n, weighted_strength)
        x *= lacunarity
        y *= lacunarity
        amp *= gain
    return total

@njit(nogil=True)
def evaluate_point(seed, frequency, noise_kind, fractal_kind, octaves, lacunarity, gain,
                   weighted_strength, ping_pong_strength, bounding, x, y):
    """Scales, optionally skews, and dispatches to the configured fractal."""
    x *= frequency
    y *= frequency

    if noise_kind == 1:
        t = (x + y) * SKEW_F2
        x += t
        y += t

    if fractal_kind == 1:
        return _fractal_fbm(seed, x, y, octaves, lacunarity, gain, weighted_strength, bounding)
    if fractal_kind == 2:
        return _fractal_ridged(seed, x, y, octaves, lacunarity, gain, weighted_strength, bounding)
    if fractal_kind == 3:
        return _fractal_ping_pong(seed, x, y, octaves, lacunarity, gain, weighted_strength,
                                  ping_pong_strength, bounding)
    return single_gradient(seed, x, y)

@njit(nogil=True)
def evaluate_flat(seed, frequency, noise_kind, fractal_kind, octaves, lacunarity, gain,
                  weighted_strength, ping_pong_strength, bounding, xs, ys):
    """Evaluates noise for every (xs[i], ys[i]) pair of two 1D arrays."""
    out = np.empty(xs.shape[0])
    for i in range(xs.shape[0]):
        out[i] = evaluate_point(seed, frequency, noise_kind, fractal_kind, octaves, lacunarity,
                                gain, weighted_strength, ping_pong_strength, bounding, xs[i], ys[i])
    return out


def calculate_fractal_bounding(gain: float, octaves: int) -> float:
    """1 / (sum of |gain|^i for i < octaves): keeps fractal sums within [-1, 1]."""
    gain = abs(gain)
    amp = gain
    amp_fractal = 1.0
    for _ in range(1, octaves):
        amp_fractal += amp
        amp *= gain
    return 1.0 / amp_fractal


@dataclass(frozen=True)
class NoiseField:
    """
    An immutable, seeded 2D noise generator.

    Use with_params() to derive a variant; fields cannot be changed in place.
    """
    seed: int = DEFAULTS.DEFAULT_SEED
    frequency: float = 0.01
    noise_kind: str = "simplex"
    fractal_kind: str = "none"
    octaves: int = 3
    lacunarity: float = 2.0
    gain: float = 0.5
    weighted_strength: float = DEFAULTS.FRACTAL_WEIGHTED_STRENGTH
    ping_pong_strength: float = DEFAULTS.FRACTAL_PING_PONG_STRENGTH
    fractal_bounding: float = field(init=False, repr=False)

    def __post_init__(self):
        if self.noise_kind not in NOISE_KIND_CODES:
            raise ValueError(f"noise_kind must be one of {tuple(NOISE_KIND_CODES)}, got '{self.noise_kind}'")
        if self.fractal_kind not in FRACTAL_KIND_CODES:
            raise ValueError(f"fractal_kind must be one of {tuple(FRACTAL_KIND_CODES)}, got '{self.fractal_kind}'")
        if self.octaves < 1:
            raise ValueError(f"octaves must be at least 1, got {self.octaves}")
        object.__setattr__(self, 'fractal_bounding', calculate_fractal_bounding(self.gain, self.octaves))

    def with_params(self, **changes) -> 'NoiseField':
        """Returns a copy with the given fields replaced."""
        return replace(self, **changes)

    def _kernel_args(self) -> tuple:
        return (
            int(self.seed), float(self.frequency),
            NOISE_KIND_CODES[self.noise_kind], FRACTAL_KIND_CODES[self.fractal_kind],
            int(self.octaves), float(self.lacunarity), float(self.gain),
            float(self.weighted_strength), float(self.ping_pong_strength),
            float(self.fractal_bounding),
        )

    def evaluate(self, x: float, y: float) -> float:
        """Noise value in [-1, 1] at a single point."""
        return float(evaluate_point(*self._kernel_args(), float(x), float(y)))

    def evaluate_grid(self, x_coords: np.ndarray, y_coords: np.ndarray) -> np.ndarray:
        """Noise values for arrays of coordinates; the result has the input shape."""
        x_coords = np.asarray(x_coords, dtype=np.float64)
        y_coords = np.asarray(y_coords, dtype=np.float64)
        if x_coords.shape != y_coords.shape:
            raise ValueError(f"Coordinate arrays differ in shape: {x_coords.shape} vs {y_coords.shape}")
        flat = evaluate_flat(
            *self._kernel_args(),
            np.ascontiguousarray(x_coords).ravel(),
            np.ascontiguousarray(y_coords).ravel(),
        )
        return flat.reshape(x_coords.shape)
