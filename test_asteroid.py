import math
import unittest

import numpy as np

from asteroid import Asteroid
from config import config
from orbital_mechanics import OrbitalElements, get_position_at_time, orbital_period

MU = 1000.0


class TestAsteroidConstruction(unittest.TestCase):

    def test_random_asteroid_within_belt_ranges(self):
        rng = np.random.default_rng(42)
        for i in range(200):
            asteroid = Asteroid.random(i, rng, mu=MU)
            self.assertGreaterEqual(asteroid.orbit.a, config.belt_inner_radius_sim)
            self.assertLess(asteroid.orbit.a, config.belt_outer_radius_sim)
            self.assertGreaterEqual(asteroid.orbit.e, config.Belt.MIN_ECCENTRICITY)
            self.assertLess(asteroid.orbit.e, config.Belt.MAX_ECCENTRICITY)
            self.assertGreaterEqual(asteroid.radius, config.Belt.MIN_ASTEROID_RADIUS)
            self.assertLessEqual(asteroid.radius, config.Belt.MAX_ASTEROID_RADIUS)

    def test_same_seed_same_asteroid(self):
        first = Asteroid.random(0, np.random.default_rng(7), mu=MU)
        second = Asteroid.random(0, np.random.default_rng(7), mu=MU)
        self.assertEqual(first.orbit, second.orbit)
        self.assertEqual(first.radius, second.radius)

    def test_cached_path_and_period(self):
        orbit = OrbitalElements(a=300.0, e=0.2, omega=1.0)
        asteroid = Asteroid.from_orbit(3, orbit, 5.0, mu=MU)
        self.assertAlmostEqual(asteroid.period, orbital_period(300.0, MU))
        self.assertEqual(asteroid.path.shape, (config.Orbit.PATH_POINTS + 1, 2))
        self.assertEqual(asteroid.color, config.Belt.DEFAULT_COLOR)

    def test_path_is_read_only(self):
        asteroid = Asteroid.from_orbit(0, OrbitalElements(a=300.0, e=0.1), 5.0, mu=MU)
        with self.assertRaises(ValueError):
            asteroid.path[0, 0] = 1.0

    def test_get_info(self):
        asteroid = Asteroid.from_orbit(9, OrbitalElements(a=300.0, e=0.12345), 4.56, mu=MU)
        info = asteroid.get_info()
        self.assertEqual(info['id'], 9)
        self.assertEqual(info['semiMajorAxis'], 2.0)
        self.assertEqual(info['eccentricity'], 0.123)
        self.assertEqual(info['period'], round(orbital_period(300.0, MU), 1))
        self.assertEqual(info['radius'], 4.6)


class TestAsteroidMotion(unittest.TestCase):

    def setUp(self):
        self.asteroid = Asteroid.from_orbit(1, OrbitalElements(a=500.0, e=0.0), 5.0, mu=MU)

    def test_update_sets_state(self):
        self.asteroid.update(0.0)
        np.testing.assert_allclose(self.asteroid.position, [500.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(self.asteroid.velocity, [0.0, math.sqrt(2.0)], atol=1e-12)
        self.assertAlmostEqual(self.asteroid.speed, math.sqrt(2.0))

    def test_update_does_not_touch_orbit(self):
        orbit = self.asteroid.orbit
        self.asteroid.update(123.0)
        self.assertIs(self.asteroid.orbit, orbit)

    def test_contains_point(self):
        self.asteroid.update(0.0)
        self.assertTrue(self.asteroid.contains_point((503.0, 0.0)))
        self.assertFalse(self.asteroid.contains_point((506.0, 0.0)))
        self.assertTrue(self.asteroid.contains_point((506.0, 0.0), tolerance=1.0))
        self.assertFalse(self.asteroid.contains_point((506.01, 0.0), tolerance=1.0))

    def test_set_orbit_regenerates_path_and_period(self):
        new_orbit = OrbitalElements(a=250.0, e=0.5, omega=0.0)
        self.asteroid.set_orbit(new_orbit)
        self.assertIs(self.asteroid.orbit, new_orbit)
        self.assertAlmostEqual(self.asteroid.period, orbital_period(250.0, MU))
        np.testing.assert_allclose(self.asteroid.path[0], [125.0, 0.0], atol=1e-9)


class TestApplyDeltaV(unittest.TestCase):

    def test_zero_delta_v_keeps_circular_orbit(self):
        asteroid = Asteroid.from_orbit(1, OrbitalElements(a=500.0, e=0.0), 5.0, mu=MU)
        asteroid.update(0.0)
        self.assertTrue(asteroid.apply_delta_v((0.0, 0.0), 0.0))
        self.assertAlmostEqual(asteroid.orbit.a, 500.0, places=6)
        self.assertLess(asteroid.orbit.e, 1e-9)

    def test_burn_mid_flight_continues_from_current_position(self):
        orbit = OrbitalElements(a=400.0, e=0.25, omega=0.8, m0=2.0)
        asteroid = Asteroid.from_orbit(2, orbit, 5.0, mu=MU)
        t = 37.0
        asteroid.update(t)
        before = asteroid.position.copy()

        self.assertTrue(asteroid.apply_delta_v((0.05, -0.02), t))
        asteroid.update(t)
        np.testing.assert_allclose(asteroid.position, before, atol=1e-6)

    def test_zero_burn_mid_flight_keeps_trajectory(self):
        orbit = OrbitalElements(a=400.0, e=0.25, omega=0.8, m0=2.0)
        asteroid = Asteroid.from_orbit(2, orbit, 5.0, mu=MU)
        asteroid.update(55.0)
        self.assertTrue(asteroid.apply_delta_v((0.0, 0.0), 55.0))
        for t in (55.0, 100.0, 900.0):
            np.testing.assert_allclose(get_position_at_time(asteroid.orbit, t, MU),
                                       get_position_at_time(orbit, t, MU), atol=1e-5)

    def test_escape_leaves_everything_unchanged(self):
        asteroid = Asteroid.from_orbit(1, OrbitalElements(a=500.0, e=0.0), 5.0, mu=MU)
        asteroid.update(0.0)
        orbit = asteroid.orbit
        path = asteroid.path.copy()
        period = asteroid.period
        velocity = asteroid.velocity.copy()

        self.assertFalse(asteroid.apply_delta_v((0.0, 1.0), 0.0))
        self.assertIs(asteroid.orbit, orbit)
        np.testing.assert_array_equal(asteroid.path, path)
        self.assertEqual(asteroid.period, period)
        np.testing.assert_array_equal(asteroid.velocity, velocity)

    def test_burn_reversing_direction_keeps_position(self):
        asteroid = Asteroid.from_orbit(1, OrbitalElements(a=500.0, e=0.0), 5.0, mu=MU)
        asteroid.update(0.0)
        self.assertTrue(asteroid.apply_delta_v((0.3, -2.4), 0.0))
        committed_speed = asteroid.speed
        self.assertLess(asteroid.velocity[1], 0.0)

        asteroid.update(0.0)
        np.testing.assert_allclose(asteroid.position, [500.0, 0.0], atol=1e-6)
        self.assertAlmostEqual(asteroid.speed, committed_speed, places=9)
        # The orbit itself runs counter-clockwise
        self.assertGreater(asteroid.velocity[1], 0.0)

    def test_successful_burn_updates_velocity(self):
        asteroid = Asteroid.from_orbit(1, OrbitalElements(a=500.0, e=0.0), 5.0, mu=MU)
        asteroid.update(0.0)
        self.assertTrue(asteroid.apply_delta_v((0.0, 0.1), 0.0))
        np.testing.assert_allclose(asteroid.velocity, [0.0, math.sqrt(2.0) + 0.1], atol=1e-12)
        self.assertGreater(asteroid.orbit.a, 500.0)
        self.assertGreater(asteroid.period, orbital_period(500.0, MU))


if __name__ == '__main__':
    unittest.main()
