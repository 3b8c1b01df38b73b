"""
slider_path.py - 슬라이더 경로 근사

Rasterizes a slider curve definition (linear / perfect circle / bezier /
catmull) into a polyline and parameterizes it by arc length, the way the
game client approximates slider bodies.

All points are relative to the slider head.
"""

import math

import numpy as np

from beatmap import PathType
from constants import BEZIER_TOLERANCE, CATMULL_DETAIL, CIRCULAR_ARC_TOLERANCE


# ----------------------------
# 1. Curve approximations
# ----------------------------
def approximate_linear(points):
    return np.asarray(points, dtype=float)


def _is_flat_enough(cp):
    # Second differences small enough -> the segment can be treated as flat
    second_diff = cp[:-2] - 2.0 * cp[1:-1] + cp[2:]
    return not np.any(np.sum(second_diff ** 2, axis=1) > BEZIER_TOLERANCE * BEZIER_TOLERANCE * 4.0)


def _subdivide(cp):
    """de Casteljau midpoint split -> (left, right) control points."""
    count = len(cp)
    midpoints = cp.copy()
    left = np.empty_like(cp)
    right = np.empty_like(cp)

    for i in range(count):
        left[i] = midpoints[0]
        right[count - i - 1] = midpoints[count - i - 1]
        midpoints[:count - i - 1] = (midpoints[:count - i - 1] + midpoints[1:count - i]) / 2.0

    return left, right


def _approximate_flat(cp, output):
    count = len(cp)
    left, right = _subdivide(cp)
    # l[0..count) followed by r[1..count) is the full subdivided polygon
    merged = np.concatenate([left, right[1:]])

    output.append(cp[0])
    for i in range(1, count - 1):
        index = 2 * i
        output.append(0.25 * (merged[index - 1] + 2.0 * merged[index] + merged[index + 1]))


def approximate_bezier(points):
    """
    Adaptive subdivision until every piece is flat enough, then each piece
    contributes its smoothed subdivision points.
    """
    points = np.asarray(points, dtype=float)
    if len(points) < 2:
        return points.copy()

    output = []
    to_flatten = [points]

    while to_flatten:
        parent = to_flatten.pop()

        if _is_flat_enough(parent):
            _approximate_flat(parent, output)
            continue

        left, right = _subdivide(parent)
        # Right goes on the stack first so the left half is handled first
        to_flatten.append(right)
        to_flatten.append(left)

    output.append(points[-1])
    return np.asarray(output)


def approximate_circular_arc(points):
    """
    Circle through three points. Returns None when the points are (almost)
    collinear so the caller can fall back to a bezier.
    """
    a, b, c = (np.asarray(p, dtype=float) for p in points)

    a_sq = float(np.sum((b - c) ** 2))
    b_sq = float(np.sum((a - c) ** 2))
    c_sq = float(np.sum((a - b) ** 2))

    if math.isclose(a_sq, 0.0, abs_tol=1e-3) or math.isclose(b_sq, 0.0, abs_tol=1e-3) \
            or math.isclose(c_sq, 0.0, abs_tol=1e-3):
        return None

    s = a_sq * (b_sq + c_sq - a_sq)
    t = b_sq * (a_sq + c_sq - b_sq)
    u = c_sq * (a_sq + b_sq - c_sq)
    total = s + t + u

    if math.isclose(total, 0.0, abs_tol=1e-3):
        return None

    centre = (s * a + t * b + u * c) / total
    d_a = a - centre
    d_c = c - centre
    radius = float(np.hypot(*d_a))

    theta_start = math.atan2(d_a[1], d_a[0])
    theta_end = math.atan2(d_c[1], d_c[0])
    while theta_end < theta_start:
        theta_end += 2.0 * math.pi

    direction = 1.0
    theta_range = theta_end - theta_start

    # Decide in which direction to draw the circle, depending on which side of AC B lies
    ortho_a_to_c = c - a
    ortho_a_to_c = np.array([ortho_a_to_c[1], -ortho_a_to_c[0]])
    if float(np.dot(ortho_a_to_c, b - a)) < 0.0:
        direction = -direction
        theta_range = 2.0 * math.pi - theta_range

    if 2.0 * radius <= CIRCULAR_ARC_TOLERANCE:
        amount_points = 2
    else:
        amount_points = max(2, int(math.ceil(
            theta_range / (2.0 * math.acos(1.0 - CIRCULAR_ARC_TOLERANCE / radius)))))

    fract = np.linspace(0.0, 1.0, amount_points)
    theta = theta_start + direction * fract * theta_range
    return np.column_stack([centre[0] + np.cos(theta) * radius,
                            centre[1] + np.sin(theta) * radius])


def _catmull_find_point(v1, v2, v3, v4, t):
    t2 = t * t
    t3 = t * t2
    return 0.5 * (2.0 * v2
                  + (-v1 + v3) * t
                  + (2.0 * v1 - 5.0 * v2 + 4.0 * v3 - v4) * t2
                  + (-v1 + 3.0 * v2 - 3.0 * v3 + v4) * t3)


def approximate_catmull(points):
    points = np.asarray(points, dtype=float)
    output = []

    for i in range(len(points) - 1):
        v1 = points[i - 1] if i > 0 else points[i]
        v2 = points[i]
        v3 = points[i + 1] if i < len(points) - 1 else v2 + v2 - v1
        v4 = points[i + 2] if i < len(points) - 2 else v3 + v3 - v2

        for c in range(CATMULL_DETAIL):
            output.append(_catmull_find_point(v1, v2, v3, v4, c / CATMULL_DETAIL))
            output.append(_catmull_find_point(v1, v2, v3, v4, (c + 1) / CATMULL_DETAIL))

    return np.asarray(output) if output else points.copy()


# ----------------------------
# 2. Slider path
# ----------------------------
class SliderPath:
    """
    Arc-length parameterized slider body.

    control_points: points relative to the head (first point is (0, 0)).
    expected_distance: pixel length from the map; the calculated polyline
    is trimmed or extended to match it.
    """

    def __init__(self, path_type, control_points, expected_distance=None):
        self.path_type = path_type
        self.control_points = np.asarray(control_points, dtype=float).reshape(-1, 2)
        self.expected_distance = expected_distance

        self.calculated_path = self._calculate_path()
        self.cumulative_length = self._calculate_length()

    @property
    def distance(self) -> float:
        if len(self.cumulative_length) == 0:
            return 0.0
        return float(self.cumulative_length[-1])

    @property
    def is_valid(self) -> bool:
        return len(self.calculated_path) >= 2 and self.distance > 0.0 and math.isfinite(self.distance)

    def _segment_points(self, points):
        path_type = self.path_type

        if path_type is PathType.LINEAR:
            return approximate_linear(points)

        if path_type is PathType.PERFECT and len(points) == 3:
            arc = approximate_circular_arc(points)
            if arc is not None:
                return arc
            return approximate_bezier(points)

        if path_type is PathType.CATMULL:
            return approximate_catmull(points)

        return approximate_bezier(points)

    def _calculate_path(self):
        cp = self.control_points
        if len(cp) == 0:
            return np.zeros((0, 2))

        path = []
        start = 0

        # Consecutive identical points ("red anchors") split the curve into segments
        for i in range(len(cp)):
            is_end = i == len(cp) - 1
            if not is_end and not np.array_equal(cp[i], cp[i + 1]):
                continue

            segment = cp[start:i + 1]
            if len(segment) > 1:
                for point in self._segment_points(segment):
                    if not path or not np.array_equal(path[-1], point):
                        path.append(point)
            start = i + 1

        if not path:
            path.append(cp[0])

        return np.asarray(path, dtype=float)

    def _calculate_length(self):
        path = self.calculated_path
        if len(path) == 0:
            return np.zeros(0)

        segment_lengths = np.hypot(*np.diff(path, axis=0).T) if len(path) > 1 else np.zeros(0)
        cumulative = list(np.concatenate([[0.0], np.cumsum(segment_lengths)]))
        calculated_length = cumulative[-1]

        expected = self.expected_distance
        if expected is None or calculated_length == expected:
            return np.asarray(cumulative)

        cp = self.control_points
        # No extension when the last two control points are equal
        if len(cp) >= 2 and np.array_equal(cp[-1], cp[-2]) and expected > calculated_length:
            return np.asarray(cumulative)

        # The last length is always incorrect
        cumulative.pop()
        path_end_index = len(path) - 1

        if calculated_length > expected:
            while cumulative and cumulative[-1] >= expected:
                cumulative.pop()
                path_end_index -= 1

        self.calculated_path = path = path[:path_end_index + 1].copy()

        if path_end_index <= 0:
            self.calculated_path = path[:1] if len(path) else np.zeros((1, 2))
            return np.asarray([0.0])

        direction = path[path_end_index] - path[path_end_index - 1]
        norm = float(np.hypot(*direction))
        if norm > 0.0:
            direction = direction / norm
        path[path_end_index] = path[path_end_index - 1] + direction * (expected - cumulative[-1])
        cumulative.append(expected)

        return np.asarray(cumulative)

    def position_at(self, progress):
        """Point on the path at progress in [0, 1] of its length."""
        path = self.calculated_path
        if len(path) == 0:
            return np.zeros(2)

        d = min(max(progress, 0.0), 1.0) * self.distance
        i = int(np.searchsorted(self.cumulative_length, d, side='left'))

        if i <= 0:
            return path[0].copy()
        if i >= len(path):
            return path[-1].copy()

        d0 = self.cumulative_length[i - 1]
        d1 = self.cumulative_length[i]
        if math.isclose(d0, d1):
            return path[i - 1].copy()

        w = (d - d0) / (d1 - d0)
        return path[i - 1] + (path[i] - path[i - 1]) * w
