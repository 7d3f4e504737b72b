# terrain_generator/curve.py

"""
================================================================================
HEIGHT REMAPPING CURVE
================================================================================
A piecewise-linear curve over sorted (time, value) control points, used to
reshape raw normalized noise into a more realistic height distribution
(wide ocean floors, a steep coastline, compressed peaks).

Data Contract:
---------------
- Inputs: control points as (time, value) pairs, in any order.
- Outputs: evaluate(t) -> float, evaluate_array(t) -> np.ndarray.
- Side Effects: None. Curves are immutable; with_key() returns a new curve.
- Invariants:
    - Points are stably sorted by time.
    - Inputs are clamped to [first time, last time].
    - Zero points evaluate to 0.0; one point evaluates to its value.
================================================================================
"""
from typing import Iterable

import numpy as np
from numba import njit


@njit(nogil=True)
def evaluate_curve(times, values, t):
    """Linear scan for the bracketing pair, then linear interpolation."""
    count = times.shape[0]
    if count == 0:
        return 0.0
    if count == 1:
        return values[0]

    if t < times[0]:
        t = times[0]
    elif t > times[count - 1]:
        t = times[count - 1]

    for i in range(count - 1):
        t0 = times[i]
        t1 = times[i + 1]
        if t >= t0 and t <= t1:
            if t1 == t0:
                return values[i]
            u = (t - t0) / (t1 - t0)
            return values[i] + (values[i + 1] - values[i]) * u

    return values[count - 1]

@njit(nogil=True)
def evaluate_curve_flat(times, values, ts):
    out = np.empty(ts.shape[0])
    for i in range(ts.shape[0]):
        out[i] = evaluate_curve(times, values, ts[i])
    return out


class HeightCurve:
    """An immutable piecewise-linear remapping function."""

    def __init__(self, keys: Iterable[tuple[float, float]] = ()):
        # sorted() is stable, so points sharing a time keep insertion order.
        ordered = sorted(((float(t), float(v)) for t, v in keys), key=lambda k: k[0])
        self._keys = tuple(ordered)
        self._times = np.array([k[0] for k in ordered], dtype=np.float64)
        self._values = np.array([k[1] for k in ordered], dtype=np.float64)

    @property
    def keys(self) -> tuple[tuple[float, float], ...]:
        return self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"HeightCurve({list(self._keys)!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, HeightCurve) and self._keys == other._keys

    def __hash__(self) -> int:
        return hash(self._keys)

    def with_key(self, time: float, value: float) -> 'HeightCurve':
        """Returns a new curve with one more control point."""
        return HeightCurve(self._keys + ((time, value),))

    def evaluate(self, t: float) -> float:
        return float(evaluate_curve(self._times, self._values, float(t)))

    def evaluate_array(self, t: np.ndarray) -> np.ndarray:
        """Element-wise evaluate(); the result has the input shape."""
        t = np.asarray(t, dtype=np.float64)
        flat = evaluate_curve_flat(self._times, self._values, np.ascontiguousarray(t).ravel())
        return flat.reshape(t.shape)
