"""Parcel boundary geometry — edge side labels and a buildable-area estimate.

Boundaries are outer rings of (lng, lat) pairs as Regrid returns them.
Bearings are initial great-circle bearings in degrees, normalised to
[0, 360). Distances use a local flat-earth approximation, which is fine
at parcel scale.

Two labelling methods:

    compass — no street point known. North is the front; the bearing from
              the centroid to each edge midpoint is bucketed into 90° ranges.
    street  — the edge nearest the geocoded address point is the front and
              the others are labelled relative to it.
"""

import logging
import math

import mlflow
from mlflow.entities import SpanType

from citywise.core.types import BuildableArea, EdgeLabel, ZoningRule
from citywise.zoning.districts import max_lot_coverage_pct, setbacks_from_rules

logger = logging.getLogger(__name__)

Point = tuple[float, float]

FEET_PER_DEGREE_LAT = 364_000.0
REAR_ANGLE_DEG = 135.0


def normalize_ring(ring: list[Point]) -> list[Point]:
    """Drop the duplicated closing vertex, if any."""
    pts = [(float(p[0]), float(p[1])) for p in ring]
    if len(pts) > 3 and pts[0] == pts[-1]:
        pts = pts[:-1]
    return pts


def centroid(ring: list[Point]) -> Point:
    """Vertex mean of an open ring."""
    n = len(ring)
    return (sum(p[0] for p in ring) / n, sum(p[1] for p in ring) / n)


def bearing(start: Point, end: Point) -> float:
    """Initial bearing from start to end in degrees, [0, 360). 0 = north."""
    lng1, lat1 = map(math.radians, start)
    lng2, lat2 = map(math.radians, end)
    d_lng = lng2 - lng1
    y = math.sin(d_lng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lng)
    deg = math.degrees(math.atan2(y, x))
    return deg + 360 if deg < 0 else deg


def compass_side(bearing_deg: float) -> str:
    """Bucket a bearing: front [315, 45), right [45, 135), rear [135, 225), left [225, 315).

    Lower bounds are inclusive, so 45.0 is right and 315.0 is front.
    """
    b = bearing_deg % 360
    if b >= 315 or b < 45:
        return "front"
    if b < 135:
        return "right"
    if b < 225:
        return "rear"
    return "left"


def _to_feet(origin: Point, pt: Point) -> Point:
    scale = math.cos(math.radians(origin[1]))
    return (
        (pt[0] - origin[0]) * FEET_PER_DEGREE_LAT * scale,
        (pt[1] - origin[1]) * FEET_PER_DEGREE_LAT,
    )


def distance_to_segment_ft(pt: Point, a: Point, b: Point) -> float:
    """Distance in feet from a point to segment a–b."""
    px, py = _to_feet(a, pt)
    bx, by = _to_feet(a, b)
    seg_len_sq = bx * bx + by * by
    t = 0.0 if seg_len_sq == 0 else max(0.0, min(1.0, (px * bx + py * by) / seg_len_sq))
    return math.hypot(px - t * bx, py - t * by)


def _midpoints(ring: list[Point]) -> list[Point]:
    n = len(ring)
    return [
        ((ring[i][0] + ring[(i + 1) % n][0]) / 2, (ring[i][1] + ring[(i + 1) % n][1]) / 2)
        for i in range(n)
    ]


@mlflow.trace(name="label_edges", span_type=SpanType.TOOL)
def label_edges(boundary: list[Point], street_point: Point | None = None) -> list[EdgeLabel]:
    """Label every boundary edge front/rear/left/right.

    Edge i runs from vertex i to vertex i+1 (wrapping).

    Raises:
        ValueError: Fewer than three distinct vertices.
    """
    ring = normalize_ring(boundary)
    if len(ring) < 3:
        raise ValueError("Boundary needs at least 3 vertices")

    center = centroid(ring)
    bearings = [bearing(center, mid) for mid in _midpoints(ring)]

    if street_point is None:
        labels = [EdgeLabel(i, compass_side(b), b) for i, b in enumerate(bearings)]
        logger.debug("Labelled %d edges by compass", len(labels))
        return labels

    n = len(ring)
    distances = [distance_to_segment_ft(street_point, ring[i], ring[(i + 1) % n]) for i in range(n)]
    front_idx = min(range(n), key=lambda i: distances[i])
    front_bearing = bearings[front_idx]

    labels = []
    for i, b in enumerate(bearings):
        diff = (b - front_bearing) % 360
        if diff > 180:
            diff = 360 - diff
        if i == front_idx:
            side = "front"
        elif diff > REAR_ANGLE_DEG:
            side = "rear"
        else:
            side = "right" if math.sin(math.radians(b - front_bearing)) > 0 else "left"
        labels.append(EdgeLabel(i, side, b))

    logger.debug("Labelled %d edges from street point; front edge %d", len(labels), front_idx)
    return labels


def estimate_buildable_area(
    lot_width_ft: float | None,
    lot_depth_ft: float | None,
    zoning_rules: list[ZoningRule],
) -> BuildableArea | None:
    """Setback-reduced envelope of a rectangular lot, capped by lot coverage.

    Side setback applies to both sides. Returns None when either dimension
    is unknown or non-positive.
    """
    if lot_width_ft is None or lot_depth_ft is None:
        return None
    if lot_width_ft <= 0 or lot_depth_ft <= 0:
        return None

    notes: list[str] = []
    setbacks = setbacks_from_rules(zoning_rules)
    front = setbacks.get("front", 0)
    rear = setbacks.get("rear", 0)
    side = setbacks.get("side", 0)

    lot_area = lot_width_ft * lot_depth_ft
    width = lot_width_ft - (2 * side)
    depth = lot_depth_ft - front - rear

    if width <= 0 or depth <= 0:
        notes.append(
            f"Setbacks ({front:g}' front, {rear:g}' rear, {side:g}' each side) "
            f"exceed lot dimensions ({lot_width_ft:g}' x {lot_depth_ft:g}')."
        )
        return BuildableArea(lot_area, 0.0, 0.0, 0.0, 0.0, "setbacks", notes)

    envelope = width * depth
    max_footprint = envelope
    governing = "setbacks"

    coverage = max_lot_coverage_pct(zoning_rules)
    if coverage is not None:
        coverage_cap = lot_area * coverage / 100
        if coverage_cap < envelope:
            max_footprint = coverage_cap
            governing = "lot_coverage"
            notes.append(f"Lot coverage ({coverage:g}%) limits footprint to {coverage_cap:,.0f} sq ft.")

    return BuildableArea(
        lot_area_sqft=lot_area,
        buildable_width_ft=width,
        buildable_depth_ft=depth,
        envelope_sqft=envelope,
        max_footprint_sqft=max_footprint,
        governing=governing,
        notes=notes,
    )
