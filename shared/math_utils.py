"""
WiFi Sentry Mathematical Utilities
==================================

Geodesic distance and scoring primitives used by the change engine.

Distances use the haversine great-circle formula on a spherical Earth of
radius 6,371,000 m; the pairwise variant is vectorised with NumPy so that a
long GPS-tagged timeline is handled in one broadcast rather than a double
Python loop.

References:
    [1] Sinnott, R. W. (1984). Virtues of the Haversine.
        Sky and Telescope, 68(2), 159.
    [2] Moritz, H. (2000). Geodetic Reference System 1980.
        Journal of Geodesy, 74(1), 128-133.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

FloatArray = NDArray[np.floating]

EARTH_RADIUS_M: float = 6_371_000.0


# ========================== Geodesy ========================================


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two WGS-84 coordinates.

    .. math::

        d = 2R \\arcsin\\sqrt{\\sin^2\\frac{\\Delta\\phi}{2}
            + \\cos\\phi_1\\cos\\phi_2\\sin^2\\frac{\\Delta\\lambda}{2}}
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def pairwise_haversine(points: Sequence[tuple[float, float]]) -> FloatArray:
    """Symmetric matrix of haversine distances between ``(lat, lon)`` points.

    Returns an ``(n, n)`` array with zeros on the diagonal; an empty input
    yields a ``(0, 0)`` array.
    """
    if len(points) == 0:
        return np.zeros((0, 0), dtype=np.float64)

    coords = np.radians(np.asarray(points, dtype=np.float64))
    lat = coords[:, 0][:, np.newaxis]
    lon = coords[:, 1][:, np.newaxis]

    dlat = lat - lat.T
    dlon = lon - lon.T
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat) * np.cos(lat.T) * np.sin(dlon / 2.0) ** 2
    return 2.0 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def max_pairwise_distance(points: Sequence[tuple[float, float]]) -> float:
    """Largest great-circle distance between any two points (0.0 for < 2)."""
    if len(points) < 2:
        return 0.0
    return float(np.max(pairwise_haversine(points)))


# ========================== Scoring helpers ================================


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positives.

    Python's :func:`round` uses banker's rounding (``round(2.5) == 2``),
    which would make scores on a .5 boundary fall one point short.
    """
    return int(math.floor(value + 0.5))
