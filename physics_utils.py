# physics_utils.py

import math

import numpy as np

TWO_PI = 2.0 * math.pi


class PhysicsError(Exception):
    """Custom exception for physics-related misuse, such as orbital elements
    that cannot describe a closed ellipse."""
    pass


def normalize_angle(angle: float) -> float:
    """
    Wraps an angle into the half-open range [0, 2*pi).

    Args:
        angle (float): Angle in radians, any magnitude.

    Returns:
        float: The equivalent angle in [0, 2*pi).
    """
    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    # fmod of a tiny negative value can round up to exactly 2*pi
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value to the inclusive range [lower, upper]."""
    return max(lower, min(upper, value))


def magnitude(vector) -> float:
    """Euclidean length of a 2D vector."""
    return math.hypot(vector[0], vector[1])


def dot(a, b) -> float:
    """Dot product of two 2D vectors."""
    return a[0] * b[0] + a[1] * b[1]


def cross(a, b) -> float:
    """Z-component of the cross product of two 2D vectors."""
    return a[0] * b[1] - a[1] * b[0]


def rotate(vector, angle: float) -> np.ndarray:
    """Rotates a 2D vector counter-clockwise about the origin by angle (radians)."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return np.array([vector[0] * cos_a - vector[1] * sin_a,
                     vector[0] * sin_a + vector[1] * cos_a], dtype=np.float64)


def distance_squared(a, b) -> float:
    """Squared Euclidean distance between two 2D points."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def random_range(rng: np.random.Generator, low: float, high: float) -> float:
    """Uniform float in [low, high)."""
    return float(low + rng.random() * (high - low))


def random_power_law(rng: np.random.Generator, low: float, high: float, power: float = 2.0) -> float:
    """
    Samples a float in [low, high] biased towards low.

    Computes `low + (high - low) * u**power` for uniform u, so larger powers
    produce more small values. Used for asteroid sizes: many small, few large.
    """
    u = rng.random()
    return float(low + (high - low) * u ** power)
