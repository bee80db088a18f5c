# asteroid.py
import logging
from typing import Dict, Optional, Tuple

import numpy as np

from config import config
from orbital_mechanics import (OrbitalElements, compute_orbit_from_state_vectors, generate_orbit_path,
                               get_state_at_time, orbital_period, rebase_epoch)
from physics_utils import TWO_PI, distance_squared, magnitude, random_power_law, random_range


class Asteroid:
    """
    A body on a closed Keplerian orbit around the central mass.

    The asteroid owns exactly one `OrbitalElements` snapshot. The orbit is only
    ever replaced wholesale, and every replacement regenerates the cached
    `path` and `period` before they can be read again. `position` and
    `velocity` are transient and recomputed by `update(t)` once per step.

    Attributes:
        id (int): Unique identifier within the belt.
        radius (float): Visual and hit-test radius in sim units.
        color (Tuple[int, int, int]): RGB color, independent of orbital state.
        position (np.ndarray): Current [x, y] relative to the central mass.
        velocity (np.ndarray): Current [vx, vy].
        mu (float): Gravitational parameter this asteroid's orbit is evaluated with.
    """

    def __init__(self, asteroid_id: int, orbit: OrbitalElements, radius: float,
                 color: Optional[Tuple[int, int, int]] = None, mu: Optional[float] = None):
        self.id = asteroid_id
        self.radius = float(radius)
        self.color = tuple(color) if color is not None else config.Belt.DEFAULT_COLOR
        self.mu = config.Physics.MU if mu is None else mu
        self.position = np.zeros(2, dtype=np.float64)
        self.velocity = np.zeros(2, dtype=np.float64)
        self._orbit = orbit
        self._path = generate_orbit_path(orbit)
        self._period = orbital_period(orbit.a, self.mu)

    @classmethod
    def random(cls, asteroid_id: int, rng: np.random.Generator, mu: Optional[float] = None) -> 'Asteroid':
        """
        Creates an asteroid with randomly sampled orbital elements.

        Semi-major axis is uniform over the belt (converted from AU to sim units),
        eccentricity uniform over the configured range, `omega` and `m0` uniform
        over [0, 2*pi), and radius drawn from a power law favouring small bodies.
        """
        belt = config.Belt
        a_au = random_range(rng, belt.INNER_RADIUS_AU, belt.OUTER_RADIUS_AU)
        orbit = OrbitalElements(
            a=a_au * config.Display.AU_SCALE,
            e=random_range(rng, belt.MIN_ECCENTRICITY, belt.MAX_ECCENTRICITY),
            omega=random_range(rng, 0.0, TWO_PI),
            m0=random_range(rng, 0.0, TWO_PI),
        )
        radius = random_power_law(rng, belt.MIN_ASTEROID_RADIUS, belt.MAX_ASTEROID_RADIUS, belt.RADIUS_POWER)
        return cls(asteroid_id, orbit, radius, mu=mu)

    @classmethod
    def from_orbit(cls, asteroid_id: int, orbit: OrbitalElements, radius: float,
                   color: Optional[Tuple[int, int, int]] = None, mu: Optional[float] = None) -> 'Asteroid':
        """Creates an asteroid on the given orbit."""
        return cls(asteroid_id, orbit, radius, color=color, mu=mu)

    @property
    def orbit(self) -> OrbitalElements:
        return self._orbit

    @property
    def path(self) -> np.ndarray:
        """Closed polyline of the current orbit. Read-only view."""
        view = self._path.view()
        view.flags.writeable = False
        return view

    @property
    def period(self) -> float:
        return self._period

    @property
    def speed(self) -> float:
        return magnitude(self.velocity)

    def update(self, t: float):
        """Recomputes position and velocity at simulation time t. The orbit is untouched."""
        state = get_state_at_time(self._orbit, t, self.mu)
        self.position = state.position
        self.velocity = state.velocity

    def set_orbit(self, orbit: OrbitalElements):
        """Replaces the orbit unconditionally and regenerates path and period."""
        self._orbit = orbit
        self._path = generate_orbit_path(orbit)
        self._period = orbital_period(orbit.a, self.mu)

    def apply_delta_v(self, delta_v, t: float) -> bool:
        """
        Adds an instantaneous velocity change at simulation time t.

        The new orbit is recovered from the current position and the new
        velocity, then its epoch is moved so the asteroid continues from where
        it is at time t.

        Args:
            delta_v: (dvx, dvy) velocity increment.
            t: Current simulation time. `update(t)` is expected to have run.

        Returns:
            bool: True if the orbit was replaced. False for an escape trajectory,
                  in which case orbit, path, period and velocity are unchanged.
        """
        new_velocity = self.velocity + np.asarray(delta_v, dtype=np.float64)
        new_orbit = compute_orbit_from_state_vectors(self.position, new_velocity, self.mu)
        if new_orbit is None:
            logging.info(f"Asteroid {self.id}: delta-v {tuple(delta_v)} leads to an escape trajectory. Orbit unchanged.")
            return False

        self.set_orbit(rebase_epoch(new_orbit, t, self.mu))
        self.velocity = new_velocity
        return True

    def contains_point(self, point, tolerance: float = 0.0) -> bool:
        """Exact circle test: inside iff squared distance <= (radius + tolerance)^2."""
        hit_radius = self.radius + tolerance
        return distance_squared(point, self.position) <= hit_radius * hit_radius

    def get_info(self) -> Dict[str, float]:
        """Summary for display: semi-major axis in AU, eccentricity, period and radius."""
        return {
            'id': self.id,
            'semiMajorAxis': round(self._orbit.a / config.Display.AU_SCALE, 2),
            'eccentricity': round(self._orbit.e, 3),
            'period': round(self._period, 1),
            'radius': round(self.radius, 1),
        }

    def __repr__(self) -> str:
        return (f"Asteroid(id={self.id}, a={self._orbit.a:.2f}, e={self._orbit.e:.3f}, "
                f"radius={self.radius:.1f})")
