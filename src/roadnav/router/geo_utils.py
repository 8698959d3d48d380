# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, no imports from other project modules except models.

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .models import Coord


EARTH_RADIUS_M = 6_371_000.0


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SegmentProjection:
    """Foot of the perpendicular from a point onto a segment."""
    distance_m: float
    foot: Coord
    fraction: float              # 0.0 at segment start, 1.0 at segment end


@dataclass(frozen=True)
class PolylineMatch:
    """Closest position on a polyline for a query point."""
    segment_index: int
    distance_m: float
    distance_along_m: float


# ---------------------------------------------------------------------------
# Point to point
# ---------------------------------------------------------------------------

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push `a` a hair past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance(a: Coord, b: Coord) -> float:
    """Great-circle distance between two coordinates in metres."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Forward azimuth (bearing) from point 1 to point 2 in degrees [0, 360).

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Bearing in degrees.
    """
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def bearing(a: Coord, b: Coord) -> float:
    """Bearing from a to b in degrees [0, 360)."""
    return calculate_bearing(a.lat, a.lon, b.lat, b.lon)


# ---------------------------------------------------------------------------
# Local planar frame
# ---------------------------------------------------------------------------

def _metres_per_degree(origin_lat: float):
    """(metres per degree of longitude, metres per degree of latitude) at origin_lat."""
    m_per_deg_lat = math.radians(1.0) * EARTH_RADIUS_M
    return m_per_deg_lat * math.cos(math.radians(origin_lat)), m_per_deg_lat


def _wrap_lon(d_lon):
    # Keeps longitude deltas in [-180, 180) across the antimeridian
    return (d_lon + 180.0) % 360.0 - 180.0


# ---------------------------------------------------------------------------
# Point to segment / polyline
# ---------------------------------------------------------------------------

def distance_to_segment(point: Coord, seg_start: Coord, seg_end: Coord) -> SegmentProjection:
    """
    Perpendicular (or endpoint) distance from a point to a segment.

    The segment is projected into an equirectangular frame centred on
    the query point, which is accurate at street scale.

    Args:
        point:     Query coordinate.
        seg_start: Segment start.
        seg_end:   Segment end.

    Returns:
        SegmentProjection with the distance, clamped foot and fraction.
    """
    kx, ky = _metres_per_degree(point.lat)
    ax = _wrap_lon(seg_start.lon - point.lon) * kx
    ay = (seg_start.lat - point.lat) * ky
    bx = _wrap_lon(seg_end.lon - point.lon) * kx
    by = (seg_end.lat - point.lat) * ky

    dx, dy = bx - ax, by - ay
    len_sq = dx * dx + dy * dy

    # Zero-length segment: distance to its single point
    if len_sq == 0.0:
        return SegmentProjection(math.hypot(ax, ay), seg_start, 0.0)

    t = -(ax * dx + ay * dy) / len_sq
    if t <= 0.0:
        return SegmentProjection(math.hypot(ax, ay), seg_start, 0.0)
    if t >= 1.0:
        return SegmentProjection(math.hypot(bx, by), seg_end, 1.0)

    fx, fy = ax + t * dx, ay + t * dy
    foot = Coord(
        lat=seg_start.lat + t * (seg_end.lat - seg_start.lat),
        lon=seg_start.lon + t * _wrap_lon(seg_end.lon - seg_start.lon),
    )
    return SegmentProjection(math.hypot(fx, fy), foot, t)


def _segment_lengths(lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """Vectorised haversine length of every consecutive pair."""
    rlat = np.radians(lats)
    d_lat = np.diff(rlat)
    d_lon = np.radians(_wrap_lon(np.diff(lons)))
    a = np.sin(d_lat / 2) ** 2 + np.cos(rlat[:-1]) * np.cos(rlat[1:]) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def polyline_length(polyline: Sequence[Coord]) -> float:
    """Total length of a polyline in metres."""
    if len(polyline) < 2:
        return 0.0
    lats = np.array([c.lat for c in polyline], dtype=float)
    lons = np.array([c.lon for c in polyline], dtype=float)
    return float(_segment_lengths(lats, lons).sum())


def nearest_point_on_polyline(point: Coord, polyline: Sequence[Coord]) -> PolylineMatch:
    """
    Locate the closest position on a polyline.

    Scans every consecutive segment (O(n), vectorised) and keeps the
    minimum perpendicular distance. Ties resolve to the earliest segment.

    Args:
        point:    Query coordinate.
        polyline: Ordered path coordinates.

    Returns:
        PolylineMatch with segment index, distance to the path and the
        distance travelled along the path up to the projected foot.
    """
    if not polyline:
        return PolylineMatch(0, 0.0, 0.0)
    if len(polyline) == 1:
        return PolylineMatch(0, distance(point, polyline[0]), 0.0)

    lats = np.array([c.lat for c in polyline], dtype=float)
    lons = np.array([c.lon for c in polyline], dtype=float)

    kx, ky = _metres_per_degree(point.lat)
    xs = _wrap_lon(lons - point.lon) * kx
    ys = (lats - point.lat) * ky

    ax, ay = xs[:-1], ys[:-1]
    dx, dy = xs[1:] - ax, ys[1:] - ay
    len_sq = dx * dx + dy * dy

    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(len_sq > 0.0, -(ax * dx + ay * dy) / len_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)

    dists = np.hypot(ax + t * dx, ay + t * dy)
    idx = int(np.argmin(dists))

    seg_lengths = _segment_lengths(lats, lons)
    along = float(seg_lengths[:idx].sum() + t[idx] * seg_lengths[idx])
    return PolylineMatch(idx, float(dists[idx]), along)
