import math
import unittest

import numpy as np

from asteroid import Asteroid
from asteroid_belt import AsteroidBelt
from config import config
from maneuver import ManeuverCommand, ManeuverOutcome
from orbital_mechanics import OrbitalElements

MU = 1000.0


def small_belt():
    asteroids = [
        Asteroid.from_orbit(0, OrbitalElements(a=300.0, e=0.0), 5.0, mu=MU),
        Asteroid.from_orbit(1, OrbitalElements(a=450.0, e=0.0), 5.0, mu=MU),
        Asteroid.from_orbit(2, OrbitalElements(a=400.0, e=0.1, m0=math.pi), 8.0, mu=MU),
    ]
    return AsteroidBelt(asteroids=asteroids, mu=MU)


class TestBeltGeneration(unittest.TestCase):

    def test_generates_requested_count_with_unique_ids(self):
        belt = AsteroidBelt(count=40, seed=1)
        self.assertEqual(len(belt), 40)
        self.assertEqual(sorted(a.id for a in belt.asteroids), list(range(40)))
        self.assertIs(belt.get_asteroid(7), belt.asteroids[7])

    def test_same_seed_same_population(self):
        first = AsteroidBelt(count=20, seed=5)
        second = AsteroidBelt(count=20, seed=5)
        self.assertEqual([a.orbit for a in first.asteroids], [a.orbit for a in second.asteroids])

    def test_unknown_id_raises(self):
        with self.assertRaises(KeyError):
            AsteroidBelt(count=3, seed=0).get_asteroid(99)

    def test_every_asteroid_is_indexed(self):
        belt = AsteroidBelt(count=300, seed=2)
        for _ in range(5):
            belt.step(5000.0)
            self.assertEqual(len(belt.index), 300)


class TestBeltTime(unittest.TestCase):

    def test_step_advances_time_by_scaled_elapsed(self):
        belt = small_belt()
        belt.step(1000.0)
        self.assertAlmostEqual(belt.time, 1000.0 * config.Time.TIME_SCALE)
        self.assertEqual(belt.step_count, 1)

    def test_pause_freezes_time_but_still_steps(self):
        belt = small_belt()
        belt.step(500.0)
        self.assertTrue(belt.toggle_pause())
        t = belt.time
        belt.step(500.0)
        self.assertEqual(belt.time, t)
        self.assertEqual(belt.step_count, 2)
        self.assertFalse(belt.toggle_pause())

    def test_update_moves_asteroids(self):
        belt = small_belt()
        belt.step()
        start = belt.asteroids[0].position.copy()
        belt.step(100000.0)
        self.assertFalse(np.allclose(belt.asteroids[0].position, start))


class TestBeltManeuvers(unittest.TestCase):

    def setUp(self):
        self.belt = small_belt()
        self.belt.step()

    def test_commands_wait_for_next_step(self):
        orbit = self.belt.get_asteroid(0).orbit
        self.belt.submit_maneuver(ManeuverCommand(0, (0.0, 0.05)))
        self.assertEqual(self.belt.pending_maneuvers, 1)
        self.assertIs(self.belt.get_asteroid(0).orbit, orbit)

        results = self.belt.step()
        self.assertEqual(self.belt.pending_maneuvers, 0)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].outcome, ManeuverOutcome.APPLIED)
        self.assertIs(results[0].orbit, self.belt.get_asteroid(0).orbit)
        self.assertGreater(self.belt.get_asteroid(0).orbit.a, 300.0)

    def test_escape_command_is_rejected(self):
        orbit = self.belt.get_asteroid(1).orbit
        self.belt.submit_maneuver(ManeuverCommand(1, (0.0, 5.0)))
        results = self.belt.step()
        self.assertEqual(results[0].outcome, ManeuverOutcome.ESCAPE)
        self.assertFalse(results[0].applied)
        self.assertIsNone(results[0].orbit)
        self.assertIs(self.belt.get_asteroid(1).orbit, orbit)

    def test_unknown_body_is_reported(self):
        self.belt.submit_maneuver(ManeuverCommand(42, (0.0, 0.1)))
        with self.assertLogs(level='WARNING'):
            results = self.belt.step()
        self.assertEqual(results[0].outcome, ManeuverOutcome.MISSING_BODY)

    def test_commands_processed_in_submission_order(self):
        self.belt.submit_maneuver(ManeuverCommand(0, (0.0, 0.02)))
        self.belt.submit_maneuver(ManeuverCommand(0, (0.0, 0.02)))
        results = self.belt.step()
        self.assertEqual([r.outcome for r in results], [ManeuverOutcome.APPLIED] * 2)
        self.assertGreater(results[1].orbit.a, results[0].orbit.a)


class TestBeltSelection(unittest.TestCase):

    def setUp(self):
        self.belt = small_belt()
        self.belt.step()
        self.changes = []
        self.belt.on_selection_change = self.changes.append

    def test_find_asteroid_at_position(self):
        self.assertIs(self.belt.find_asteroid_at((301.0, 0.0), tolerance=2.0), self.belt.get_asteroid(0))
        self.assertIs(self.belt.find_asteroid_at((452.0, 0.0), tolerance=2.0), self.belt.get_asteroid(1))
        self.assertIsNone(self.belt.find_asteroid_at((375.0, 0.0), tolerance=2.0))

    def test_select_at_attaches_planner_and_notifies(self):
        target = self.belt.get_asteroid(0)
        self.assertIs(self.belt.select_at((300.0, 1.0)), target)
        self.assertTrue(self.belt.is_selected(target))
        self.assertIs(self.belt.planner.asteroid, target)
        self.assertEqual(self.changes, [target])

        # Selecting the same asteroid again is not a change
        self.belt.select_at((300.0, 2.0))
        self.assertEqual(self.changes, [target])

    def test_clicking_empty_space_clears_selection(self):
        self.belt.select_at((300.0, 0.0))
        self.assertIsNone(self.belt.select_at((0.0, 0.0)))
        self.assertIsNone(self.belt.selected)
        self.assertIsNone(self.belt.planner.asteroid)
        self.assertEqual(self.changes[-1], None)

    def test_deselect(self):
        self.belt.select(self.belt.get_asteroid(1))
        self.belt.deselect()
        self.assertIsNone(self.belt.selected)
        self.assertEqual(len(self.changes), 2)

    def test_body_raised_beyond_belt_stays_pickable(self):
        target = self.belt.get_asteroid(0)
        self.belt.select(target)
        projection = self.belt.planner.set_magnitude(config.Maneuver.MAX_DELTA_V)
        self.assertGreater(projection.orbit.apoapsis, config.index_half_extent_sim)
        self.assertTrue(self.belt.planner.apply())

        # Half a period after a burn at periapsis the body is at apoapsis
        self.belt.step(target.period / 2 / config.Time.TIME_SCALE)
        self.assertAlmostEqual(float(np.linalg.norm(target.position)), target.orbit.apoapsis, places=3)
        self.assertGreater(self.belt.bounds.w, target.orbit.apoapsis)
        self.assertEqual(len(self.belt.index), len(self.belt))
        self.assertIs(self.belt.find_asteroid_at(target.position), target)

    def test_default_bounds_kept_while_belt_fits(self):
        self.assertEqual(self.belt.bounds.w, config.index_half_extent_sim)

    def test_planner_projection_follows_steps(self):
        self.belt.select(self.belt.get_asteroid(0))
        self.belt.planner.set_magnitude(1.0)
        self.belt.step(2000.0)
        self.assertEqual(self.belt.planner.time, self.belt.time)
        self.assertIsNotNone(self.belt.planner.projection)
        self.assertTrue(self.belt.planner.apply())
        self.assertGreater(self.belt.get_asteroid(0).orbit.a, 300.0)


if __name__ == '__main__':
    unittest.main()
