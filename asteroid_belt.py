# asteroid_belt.py
import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

import numpy as np

from asteroid import Asteroid
from config import config
from maneuver import ManeuverCommand, ManeuverOutcome, ManeuverPlanner, ManeuverResult
from spatial_partition import Rectangle, SpatialIndex


class AsteroidBelt:
    """Step-driven simulation of many asteroids orbiting a fixed central mass.

    Each asteroid follows its own closed Keplerian orbit; there is no
    interaction between asteroids. One call to `step()` corresponds to one
    rendered frame and does, in order:

    1.  Advance simulation time (unless paused).
    2.  `update(t)` every asteroid.
    3.  Rebuild the spatial index from the new positions.
    4.  Drain queued `ManeuverCommand`s, each fully applied or rejected.
    5.  Refresh the maneuver planner's projection for the selected asteroid.

    UI code never mutates an orbit directly. It submits commands, which are
    consumed at the single point in step 4, or commits a previewed burn
    through `planner.apply()` between steps.

    Attributes:
        asteroids (List[Asteroid]): All asteroids, in id order.
        time (float): Current simulation time.
        paused (bool): While True, `advance` does not move time forward.
        index (SpatialIndex): Point-picking index over current positions.
        bounds (Rectangle): Index bounds of the last rebuild, see `compute_bounds`.
        planner (ManeuverPlanner): Burn planner bound to the current selection.
        selected (Optional[Asteroid]): Currently selected asteroid.
        on_selection_change (Optional[Callable]): Called with the new selection
            whenever it changes.
        mu (float): Gravitational parameter shared by every asteroid in the belt.
    """

    def __init__(self, count: Optional[int] = None, seed: Optional[int] = None,
                 mu: Optional[float] = None, rng: Optional[np.random.Generator] = None,
                 asteroids: Optional[List[Asteroid]] = None):
        """Creates a belt.

        Args:
            count: Number of random asteroids. Defaults to `config.Belt.ASTEROID_COUNT`.
                   Ignored when `asteroids` is given.
            seed: Seed for the default random generator.
            mu: Gravitational parameter. Defaults to `config.Physics.MU`.
            rng: Random generator to sample the population with. Overrides `seed`.
            asteroids: Explicit population instead of a random one.
        """
        self.mu = config.Physics.MU if mu is None else mu
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.time = 0.0
        self.paused = False
        self.step_count = 0

        if asteroids is not None:
            self.asteroids = list(asteroids)
        else:
            self.asteroids = self.generate_asteroids(config.Belt.ASTEROID_COUNT if count is None else count)
        self._by_id: Dict[int, Asteroid] = {a.id: a for a in self.asteroids}

        half_extent = config.index_half_extent_sim
        self.bounds = Rectangle(0.0, 0.0, half_extent, half_extent)
        self.index = SpatialIndex()
        self.planner = ManeuverPlanner()
        self.selected: Optional[Asteroid] = None
        self.on_selection_change: Optional[Callable[[Optional[Asteroid]], None]] = None
        self._pending: Deque[ManeuverCommand] = deque()

        logging.info(f"AsteroidBelt initialized with {len(self.asteroids)} asteroids (mu={self.mu}).")

    def generate_asteroids(self, count: int) -> List[Asteroid]:
        return [Asteroid.random(i, self.rng, mu=self.mu) for i in range(count)]

    def get_asteroid(self, asteroid_id: int) -> Asteroid:
        """Raises KeyError for an unknown id."""
        return self._by_id[asteroid_id]

    def __len__(self) -> int:
        return len(self.asteroids)

    # --- Time ---
    def advance(self, elapsed_ms: float):
        """Moves simulation time forward by `elapsed_ms * config.Time.TIME_SCALE` unless paused."""
        if not self.paused:
            self.time += elapsed_ms * config.Time.TIME_SCALE

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        return self.paused

    # --- Step ---
    def update(self):
        """Updates every asteroid at the current time and rebuilds the index."""
        for asteroid in self.asteroids:
            asteroid.update(self.time)
        self.bounds = self.compute_bounds()
        self.index.rebuild(self.asteroids, self.bounds)

    def compute_bounds(self) -> Rectangle:
        """
        Square index bounds centered on the central mass that hold every current position.

        The configured belt extent is the minimum. Once a burn carries a body
        beyond it, the half-width becomes the farthest coordinate times
        `config.Belt.INDEX_BOUNDS_FACTOR`, plus one unit so the open max edge
        never coincides with a body.
        """
        half_extent = config.index_half_extent_sim
        if self.asteroids:
            farthest = float(np.max(np.abs([a.position for a in self.asteroids])))
            if farthest >= half_extent:
                half_extent = farthest * config.Belt.INDEX_BOUNDS_FACTOR + 1.0
                if config.Debug.SPATIAL_INDEX:
                    logging.debug(f"Index bounds grown to half-width {half_extent:.1f} "
                                  f"for a body at {farthest:.1f}.")
        return Rectangle(0.0, 0.0, half_extent, half_extent)

    def step(self, elapsed_ms: float = 0.0) -> List[ManeuverResult]:
        """Runs one simulation step. Returns the outcomes of the maneuvers consumed in it."""
        self.advance(elapsed_ms)
        self.update()
        results = self.process_maneuvers()
        if self.planner.asteroid is not None and self.planner.magnitude > 0.0:
            self.planner.refresh(self.time)
        self.step_count += 1
        return results

    # --- Maneuvers ---
    def submit_maneuver(self, command: ManeuverCommand):
        self._pending.append(command)

    @property
    def pending_maneuvers(self) -> int:
        return len(self._pending)

    def process_maneuvers(self) -> List[ManeuverResult]:
        results = []
        while self._pending:
            results.append(self._execute(self._pending.popleft()))
        return results

    def _execute(self, command: ManeuverCommand) -> ManeuverResult:
        asteroid = self._by_id.get(command.body_id)
        if asteroid is None:
            logging.warning(f"Maneuver for unknown asteroid id {command.body_id} ignored.")
            return ManeuverResult(command, ManeuverOutcome.MISSING_BODY)

        if asteroid.apply_delta_v(command.delta_v, self.time):
            logging.info(f"Maneuver applied to asteroid {asteroid.id}: new a={asteroid.orbit.a:.2f}, "
                         f"e={asteroid.orbit.e:.4f}, period={asteroid.period:.1f}")
            return ManeuverResult(command, ManeuverOutcome.APPLIED, asteroid.orbit)
        logging.warning(f"Maneuver on asteroid {asteroid.id} rejected: escape trajectory.")
        return ManeuverResult(command, ManeuverOutcome.ESCAPE)

    # --- Selection ---
    def find_asteroid_at(self, point, tolerance: Optional[float] = None) -> Optional[Asteroid]:
        """Nearest asteroid whose hit circle contains `point`, as of the last index rebuild."""
        if tolerance is None:
            tolerance = config.Selection.CLICK_TOLERANCE
        return self.index.query_nearest(point, tolerance)

    def select_at(self, point, tolerance: Optional[float] = None) -> Optional[Asteroid]:
        """Selects the asteroid under `point`, or clears the selection if there is none."""
        asteroid = self.find_asteroid_at(point, tolerance)
        self.select(asteroid)
        return asteroid

    def select(self, asteroid: Optional[Asteroid]):
        if asteroid is self.selected:
            return
        self.selected = asteroid
        self.planner.attach(asteroid, self.time)
        if self.on_selection_change is not None:
            self.on_selection_change(asteroid)

    def deselect(self):
        self.select(None)

    def is_selected(self, asteroid: Asteroid) -> bool:
        return self.selected is asteroid
