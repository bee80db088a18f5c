# maneuver.py
import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from asteroid import Asteroid
from config import config
from orbital_mechanics import (OrbitalElements, compute_orbit_from_state_vectors, generate_orbit_path,
                               orbital_period, rebase_epoch)
from physics_utils import clamp, normalize_angle


class ManeuverOutcome(enum.Enum):
    APPLIED = "applied"
    ESCAPE = "escape"
    MISSING_BODY = "missing_body"


@dataclass(frozen=True)
class ManeuverCommand:
    """Request to burn `delta_v` on the asteroid with id `body_id`, consumed by the belt's next step."""
    body_id: int
    delta_v: Tuple[float, float]

    def __post_init__(self):
        object.__setattr__(self, 'delta_v', (float(self.delta_v[0]), float(self.delta_v[1])))


@dataclass(frozen=True)
class ManeuverResult:
    command: ManeuverCommand
    outcome: ManeuverOutcome
    orbit: Optional[OrbitalElements] = None

    @property
    def applied(self) -> bool:
        return self.outcome is ManeuverOutcome.APPLIED


@dataclass(frozen=True, eq=False)
class ProjectedOrbit:
    """
    Preview of a burn.

    Attributes:
        orbit (Optional[OrbitalElements]): Resulting orbit, None on escape.
        path (Optional[np.ndarray]): Polyline of the resulting orbit, None on escape.
        period (Optional[float]): Period of the resulting orbit, None on escape.
        delta_v (np.ndarray): Velocity increment the preview was computed for.
    """
    orbit: Optional[OrbitalElements]
    path: Optional[np.ndarray]
    period: Optional[float]
    delta_v: np.ndarray

    @property
    def escape(self) -> bool:
        return self.orbit is None


class ManeuverPlanner:
    """
    Plans a burn for one selected asteroid.

    Holds a magnitude in slider units (clamped to [0, MAX_DELTA_V]) and a
    direction in radians. Each change re-runs the state-vector conversion to
    refresh the projection; there is no debouncing, so every adjustment costs
    one element recovery and one path generation.

    Committing uses `Asteroid.set_orbit` with the projected orbit, so what is
    applied is exactly what was previewed.
    """

    def __init__(self):
        self.asteroid: Optional[Asteroid] = None
        self.magnitude = 0.0
        self.direction = 0.0
        self.projection: Optional[ProjectedOrbit] = None
        self.time = 0.0

    def attach(self, asteroid: Optional[Asteroid], t: float = 0.0):
        """Targets a new asteroid (or none). Resets magnitude and points the burn prograde."""
        self.asteroid = asteroid
        self.time = t
        self.reset()
        if asteroid is not None:
            self.set_prograde()

    def reset(self):
        self.magnitude = 0.0
        self.projection = None

    def refresh(self, t: float) -> Optional[ProjectedOrbit]:
        """Re-projects from the asteroid's state at time t, after it has been updated."""
        self.time = t
        return self.update_projection()

    def set_magnitude(self, magnitude: float) -> Optional[ProjectedOrbit]:
        self.magnitude = clamp(float(magnitude), 0.0, config.Maneuver.MAX_DELTA_V)
        return self.update_projection()

    def set_direction(self, direction: float) -> Optional[ProjectedOrbit]:
        self.direction = normalize_angle(float(direction))
        return self.update_projection()

    def set_direction_degrees(self, degrees: float) -> Optional[ProjectedOrbit]:
        return self.set_direction(math.radians(degrees))

    @property
    def direction_degrees(self) -> float:
        return math.degrees(self.direction)

    # Direction presets, relative to the asteroid's current state
    def set_prograde(self) -> Optional[ProjectedOrbit]:
        if self.asteroid is None:
            return None
        return self.set_direction(math.atan2(self.asteroid.velocity[1], self.asteroid.velocity[0]))

    def set_retrograde(self) -> Optional[ProjectedOrbit]:
        if self.asteroid is None:
            return None
        return self.set_direction(math.atan2(-self.asteroid.velocity[1], -self.asteroid.velocity[0]))

    def set_radial_in(self) -> Optional[ProjectedOrbit]:
        if self.asteroid is None:
            return None
        return self.set_direction(math.atan2(-self.asteroid.position[1], -self.asteroid.position[0]))

    def set_radial_out(self) -> Optional[ProjectedOrbit]:
        if self.asteroid is None:
            return None
        return self.set_direction(math.atan2(self.asteroid.position[1], self.asteroid.position[0]))

    def delta_v(self) -> np.ndarray:
        """Velocity increment for the current magnitude and direction."""
        dv = self.magnitude * config.Maneuver.DELTA_V_SCALE
        return np.array([dv * math.cos(self.direction), dv * math.sin(self.direction)], dtype=np.float64)

    def update_projection(self) -> Optional[ProjectedOrbit]:
        """
        Recomputes the projected orbit.

        Returns:
            None when there is no asteroid or the magnitude is zero; otherwise a
            `ProjectedOrbit`, whose `escape` flag is set when the burn would
            unbind the asteroid.
        """
        if self.asteroid is None or self.magnitude == 0.0:
            self.projection = None
            return None

        delta_v = self.delta_v()
        orbit = compute_orbit_from_state_vectors(self.asteroid.position, self.asteroid.velocity + delta_v,
                                                 self.asteroid.mu)
        if orbit is None:
            self.projection = ProjectedOrbit(None, None, None, delta_v)
        else:
            orbit = rebase_epoch(orbit, self.time, self.asteroid.mu)
            self.projection = ProjectedOrbit(orbit, generate_orbit_path(orbit),
                                             orbital_period(orbit.a, self.asteroid.mu), delta_v)
        return self.projection

    @property
    def can_apply(self) -> bool:
        return self.projection is not None and not self.projection.escape

    def apply(self) -> bool:
        """
        Commits the projected orbit to the asteroid and resets the planner.

        Returns:
            bool: False, with nothing changed, if there is no valid projection.
        """
        if not self.can_apply:
            return False
        self.asteroid.set_orbit(self.projection.orbit)
        self.asteroid.velocity = self.asteroid.velocity + self.projection.delta_v
        logging.info(f"Applied planned maneuver to asteroid {self.asteroid.id}: "
                     f"a={self.projection.orbit.a:.2f}, e={self.projection.orbit.e:.4f}")
        self.reset()
        return True
