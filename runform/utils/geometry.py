#!/usr/bin/env python3
"""
Geometry utilities for angle operations on 2D image points.

Image coordinates grow downwards, so callers flip the y delta where an upward
vector is meant.
"""

import math

import numpy as np

Point = np.ndarray | tuple[float, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def midpoint(a: Point | None, b: Point | None) -> np.ndarray | None:
    """
    Midpoint of two points.

    Returns:
        Array [x, y], or None if either point is missing
    """
    if a is None or b is None:
        return None
    return (np.asarray(a, dtype=float) + np.asarray(b, dtype=float)) / 2.0


def angle_from_vertical(dx: float, dy: float) -> int:
    """
    Signed angle of the vector (dx, dy) from the vertical axis.

    Args:
        dx: Horizontal component (positive = forward/right)
        dy: Vertical component (positive = up)

    Returns:
        Angle in whole degrees, positive for a forward/right lean
    """
    return round_half_up(math.degrees(math.atan2(dx, dy)))


def angle_between_three_points(
    a: Point | None, vertex: Point | None, c: Point | None
) -> int:
    """
    Calculate the angle at ``vertex`` formed by the points a and c.

    Args:
        a: First outer point [x, y]
        vertex: Point where the angle is measured
        c: Second outer point [x, y]

    Returns:
        Angle in whole degrees within [0, 180], or 0 if any point is missing
    """
    if a is None or vertex is None or c is None:
        return 0

    a = np.asarray(a, dtype=float)
    vertex = np.asarray(vertex, dtype=float)
    c = np.asarray(c, dtype=float)

    v1 = a - vertex
    v2 = c - vertex

    angle = abs(np.arctan2(v2[1], v2[0]) - np.arctan2(v1[1], v1[0]))
    degrees = float(np.degrees(angle))
    if degrees > 180:
        degrees = 360 - degrees

    return round_half_up(degrees)
