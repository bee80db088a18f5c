# orbital_mechanics.py
"""
Two-body Keplerian orbit math for bodies circling a fixed central mass.

Every orbit lies in the XY plane with the central mass at the origin, so an
orbit is fully described by four elements: semi-major axis `a`, eccentricity
`e`, argument of periapsis `omega` and mean anomaly at epoch `m0`. Time is a
free-running scalar; t = 0 is the epoch of every orbit.

Functions take the gravitational parameter and solver tunables as keyword
arguments. When omitted they fall back to the values in `config`, so tests
can exercise several `mu` values without touching shared state.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from config import config
from physics_utils import PhysicsError, TWO_PI, clamp, cross, dot, magnitude, normalize_angle, rotate


def _mu(mu: Optional[float]) -> float:
    return config.Physics.MU if mu is None else mu


@dataclass(frozen=True)
class OrbitalElements:
    """
    Immutable snapshot of a closed orbit.

    Attributes:
        a (float): Semi-major axis in simulation length units (> 0).
        e (float): Eccentricity, 0 <= e < 1.
        omega (float): Argument of periapsis in radians, stored in [0, 2*pi).
        m0 (float): Mean anomaly at t = 0 in radians, stored in [0, 2*pi).

    Raises:
        PhysicsError: If `a` and `e` do not describe a closed ellipse.
    """
    a: float
    e: float
    omega: float = 0.0
    m0: float = 0.0

    def __post_init__(self):
        if not (self.a > 0.0 and math.isfinite(self.a)):
            raise PhysicsError(f"Semi-major axis a={self.a} must be positive and finite for a closed orbit.")
        if not (0.0 <= self.e < 1.0):
            raise PhysicsError(f"Eccentricity e={self.e} is out of bounds [0, 1) for a closed orbit.")
        object.__setattr__(self, 'a', float(self.a))
        object.__setattr__(self, 'e', float(self.e))
        object.__setattr__(self, 'omega', normalize_angle(float(self.omega)))
        object.__setattr__(self, 'm0', normalize_angle(float(self.m0)))

    @property
    def semi_latus_rectum(self) -> float:
        return self.a * (1.0 - self.e * self.e)

    @property
    def periapsis(self) -> float:
        return self.a * (1.0 - self.e)

    @property
    def apoapsis(self) -> float:
        return self.a * (1.0 + self.e)


@dataclass(frozen=True, eq=False)
class StateVector:
    """Cartesian position and velocity relative to the central mass."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=np.float64))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=np.float64))

    def __post_init__(self):
        object.__setattr__(self, 'position', np.array(self.position, dtype=np.float64))
        object.__setattr__(self, 'velocity', np.array(self.velocity, dtype=np.float64))


def solve_kepler_equation(mean_anomaly: float, e: float,
                          max_iterations: Optional[int] = None,
                          tolerance: Optional[float] = None) -> float:
    """
    Solves Kepler's Equation M = E - e * sin(E) for eccentric anomaly E using Newton-Raphson.

    M is wrapped into [0, 2*pi) first. The initial guess is M itself, or pi
    for eccentricities above `config.Kepler.HIGH_ECCENTRICITY_THRESHOLD`, where
    the derivative 1 - e*cos(E) is small near periapsis and M converges poorly.

    Args:
        mean_anomaly: Mean anomaly in radians.
        e: Eccentricity (0 <= e < 1).
        max_iterations: Iteration cap. Defaults to `config.Kepler.MAX_ITERATIONS`.
        tolerance: Stop once |dE| falls below this. Defaults to `config.Kepler.TOLERANCE`.

    Returns:
        Eccentric anomaly E in radians. If the cap is reached first, the last
        iterate is returned as the best available approximation.
    """
    if max_iterations is None:
        max_iterations = config.Kepler.MAX_ITERATIONS
    if tolerance is None:
        tolerance = config.Kepler.TOLERANCE

    M = normalize_angle(mean_anomaly)
    E = math.pi if e > config.Kepler.HIGH_ECCENTRICITY_THRESHOLD else M

    for _ in range(max_iterations):
        f_E = E - e * math.sin(E) - M
        f_prime_E = 1.0 - e * math.cos(E)
        delta_E = f_E / f_prime_E
        E -= delta_E
        if abs(delta_E) < tolerance:
            return E

    if config.Debug.KEPLER_SOLVER:
        logging.warning(f"Kepler's equation solver did not converge after {max_iterations} iterations "
                        f"for M={M}, e={e}. Returning last E={E}.")
    return E


def true_anomaly_from_eccentric(E: float, e: float) -> float:
    """True anomaly from eccentric anomaly, valid for 0 <= e < 1."""
    return 2.0 * math.atan2(math.sqrt(1.0 + e) * math.sin(E / 2.0),
                            math.sqrt(1.0 - e) * math.cos(E / 2.0))


def mean_motion(a: float, mu: Optional[float] = None) -> float:
    return math.sqrt(_mu(mu) / a ** 3)


def mean_anomaly_at_time(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> float:
    """Mean anomaly at time t, wrapped into [0, 2*pi)."""
    return normalize_angle(orbit.m0 + mean_motion(orbit.a, mu) * t)


def get_true_anomaly_at_time(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> float:
    """Mean anomaly -> eccentric anomaly -> true anomaly at time t."""
    M = mean_anomaly_at_time(orbit, t, mu)
    E = solve_kepler_equation(M, orbit.e)
    return true_anomaly_from_eccentric(E, orbit.e)


def orbital_period(a: float, mu: Optional[float] = None) -> float:
    """Orbital period T = 2*pi*sqrt(a^3 / mu). Depends only on a for a given mu."""
    return TWO_PI * math.sqrt(a ** 3 / _mu(mu))


def circular_velocity(r: float, mu: Optional[float] = None) -> float:
    """Speed of a circular orbit of radius r."""
    if r <= 0:
        return 0.0
    return math.sqrt(_mu(mu) / r)


def escape_velocity(r: float, mu: Optional[float] = None) -> float:
    """Speed at which the specific orbital energy at radius r reaches zero."""
    if r <= 0:
        return 0.0
    return math.sqrt(2.0 * _mu(mu) / r)


def _to_world(orbit: OrbitalElements, x_orbital: float, y_orbital: float) -> np.ndarray:
    # Periapsis-aligned frame -> world frame
    return rotate((x_orbital, y_orbital), orbit.omega)


def get_position_from_true_anomaly(orbit: OrbitalElements, theta: float) -> np.ndarray:
    """
    Position on the orbit at true anomaly theta, in world coordinates.

    Uses the focal radius r = a(1 - e^2) / (1 + e*cos(theta)), places the point
    in the periapsis-aligned frame and rotates it by `omega`.
    """
    r = orbit.semi_latus_rectum / (1.0 + orbit.e * math.cos(theta))
    return _to_world(orbit, r * math.cos(theta), r * math.sin(theta))


def get_position_at_time(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> np.ndarray:
    theta = get_true_anomaly_at_time(orbit, t, mu)
    return get_position_from_true_anomaly(orbit, theta)


def _velocity_from_true_anomaly(orbit: OrbitalElements, theta: float, mu: float) -> np.ndarray:
    e = orbit.e
    h = math.sqrt(mu * orbit.semi_latus_rectum)  # specific angular momentum
    v_r = mu / h * e * math.sin(theta)
    v_theta = mu / h * (1.0 + e * math.cos(theta))

    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return _to_world(orbit,
                     v_r * cos_t - v_theta * sin_t,
                     v_r * sin_t + v_theta * cos_t)


def get_velocity_at_time(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> np.ndarray:
    """
    Velocity at time t, in world coordinates.

    The speed satisfies vis-viva, v^2 = mu(2/r - 1/a). It is built from the
    radial component (mu/h)*e*sin(theta) and the tangential component
    (mu/h)*(1 + e*cos(theta)), with h = sqrt(mu * p) and p = a(1 - e^2),
    then rotated by `omega` exactly like the position.
    """
    theta = get_true_anomaly_at_time(orbit, t, mu)
    return _velocity_from_true_anomaly(orbit, theta, _mu(mu))


def get_state_at_time(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> StateVector:
    """Position and velocity at time t from a single Kepler solve."""
    theta = get_true_anomaly_at_time(orbit, t, mu)
    return StateVector(get_position_from_true_anomaly(orbit, theta),
                       _velocity_from_true_anomaly(orbit, theta, _mu(mu)))


def compute_orbit_from_state_vectors(position, velocity, mu: Optional[float] = None) -> Optional[OrbitalElements]:
    """
    Recovers orbital elements from a position/velocity pair.

    The returned `m0` is the mean anomaly at the given state, i.e. the state is
    treated as the new epoch. Callers that need the orbit to continue from
    simulation time t must account for that shift themselves.

    Elements describe counter-clockwise motion only. For a clockwise state
    (h < 0) the result is the counter-clockwise ellipse with the same shape
    and orientation that passes through `position`; speed is preserved there,
    the direction of travel is not.

    Args:
        position: (x, y) relative to the central mass.
        velocity: (vx, vy) in the same frame.
        mu: Gravitational parameter. Defaults to `config.Physics.MU`.

    Returns:
        OrbitalElements, or None when the specific orbital energy is
        non-negative (parabolic or hyperbolic escape trajectory) or the
        trajectory is otherwise not a closed ellipse. Escape is an expected
        outcome of a large burn and is not raised as an error.

    Raises:
        PhysicsError: If `mu` is not positive or the position is at the origin.
    """
    mu = _mu(mu)
    if mu <= 0:
        raise PhysicsError(f"Gravitational parameter mu={mu} must be positive.")

    r_mag = magnitude(position)
    v_mag = magnitude(velocity)
    if r_mag == 0.0:
        raise PhysicsError("Cannot compute an orbit for a body located at the central mass.")

    h = cross(position, velocity)
    energy = v_mag * v_mag / 2.0 - mu / r_mag

    if energy >= 0.0:
        if config.Debug.ORBITAL_MECHANICS:
            logging.debug(f"Escape trajectory: energy={energy:.6e} at r={r_mag:.3f}, v={v_mag:.6f}")
        return None

    a = -mu / (2.0 * energy)

    # e = ((v^2 - mu/r) * r - (r . v) * v) / mu
    r_dot_v = dot(position, velocity)
    radial_term = v_mag * v_mag - mu / r_mag
    ex = (radial_term * position[0] - r_dot_v * velocity[0]) / mu
    ey = (radial_term * position[1] - r_dot_v * velocity[1]) / mu
    e = math.hypot(ex, ey)

    if e >= 1.0:
        # Bound but degenerate (purely radial) trajectory
        if config.Debug.ORBITAL_MECHANICS:
            logging.debug(f"Degenerate trajectory: e={e:.12f}, h={h:.6e}")
        return None

    if e < config.Orbit.CIRCULAR_ECCENTRICITY_EPSILON:
        # Periapsis direction is undefined; measure from the reference direction
        omega = 0.0
        theta = math.atan2(position[1], position[0]) - omega
    elif h < 0.0:
        # Clockwise motion: take the signed angle from periapsis to the body so the
        # counter-clockwise ellipse with the same e vector passes through the position
        omega = normalize_angle(math.atan2(ey, ex))
        theta = math.atan2(cross((ex, ey), position), dot((ex, ey), position))
    else:
        omega = normalize_angle(math.atan2(ey, ex))
        cos_theta = (ex * position[0] + ey * position[1]) / (e * r_mag)
        theta = math.acos(clamp(cos_theta, -1.0, 1.0))
        # acos cannot tell inbound from outbound
        if r_dot_v < 0.0:
            theta = TWO_PI - theta

    E = 2.0 * math.atan(math.sqrt((1.0 - e) / (1.0 + e)) * math.tan(theta / 2.0))
    M = normalize_angle(E - e * math.sin(E))

    return OrbitalElements(a=a, e=e, omega=omega, m0=M)


def rebase_epoch(orbit: OrbitalElements, t: float, mu: Optional[float] = None) -> OrbitalElements:
    """
    Re-expresses an orbit whose `m0` refers to time t so that `m0` refers to t = 0.

    `compute_orbit_from_state_vectors` returns the mean anomaly at the state it
    was given. A body sampled at simulation time t must have that value moved
    back by n*t, otherwise `get_position_at_time(orbit, t)` would jump ahead.
    """
    if t == 0.0:
        return orbit
    return OrbitalElements(a=orbit.a, e=orbit.e, omega=orbit.omega,
                           m0=orbit.m0 - mean_motion(orbit.a, mu) * t)


def generate_orbit_path(orbit: OrbitalElements, num_points: Optional[int] = None) -> np.ndarray:
    """
    Samples the full ellipse for rendering.

    Args:
        orbit: Orbital elements.
        num_points: Number of segments. Defaults to `config.Orbit.PATH_POINTS`.

    Returns:
        np.ndarray of shape (num_points + 1, 2). Samples are evenly spaced in
        true anomaly over [0, 2*pi] inclusive and the last row equals the first,
        so the polyline closes exactly.
    """
    if num_points is None:
        num_points = config.Orbit.PATH_POINTS

    theta = np.linspace(0.0, TWO_PI, num_points + 1)
    r = orbit.semi_latus_rectum / (1.0 + orbit.e * np.cos(theta))
    x_orbital = r * np.cos(theta)
    y_orbital = r * np.sin(theta)

    cos_w = math.cos(orbit.omega)
    sin_w = math.sin(orbit.omega)
    path = np.empty((num_points + 1, 2), dtype=np.float64)
    path[:, 0] = x_orbital * cos_w - y_orbital * sin_w
    path[:, 1] = x_orbital * sin_w + y_orbital * cos_w
    path[-1] = path[0]
    return path
