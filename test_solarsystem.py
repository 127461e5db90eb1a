import math
import unittest
from dataclasses import FrozenInstanceError, replace
from datetime import datetime, timedelta, timezone

import numpy as np

from config import config, ConfigurationError
from catalogue import BodyCategory, BodyDefinition, get_body_definitions
from solarsystem import SolarSystem, VisualBody, compute_rotation_speed, compute_initial_rotation

START = datetime(2024, 3, 20, 3, 6, tzinfo=timezone.utc)
TWO_PI = 2 * math.pi


class TestRotationHelpers(unittest.TestCase):

    def test_rotation_speed(self):
        self.assertEqual(compute_rotation_speed(None), 0.0)
        self.assertEqual(compute_rotation_speed(0), 0.0)
        self.assertAlmostEqual(compute_rotation_speed(24.0), TWO_PI / 86400.0)

    def test_retrograde_rotation_speed_is_negative(self):
        self.assertAlmostEqual(compute_rotation_speed(-24.0), -TWO_PI / 86400.0)

    def test_clock_aligned_initial_rotation(self):
        earth = {d.id: d for d in get_body_definitions()}['earth']
        midnight = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        self.assertAlmostEqual(compute_initial_rotation(earth, midnight), math.pi / 2)

        six_am = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)
        omega = TWO_PI / (config.Rotation.CLOCK_ALIGNED_PERIOD_HOURS * 3600.0)
        expected = (math.pi / 2 - omega * 6 * 3600.0) % TWO_PI
        self.assertAlmostEqual(compute_initial_rotation(earth, six_am), expected)

    def test_clock_aligned_rotation_uses_utc(self):
        earth = {d.id: d for d in get_body_definitions()}['earth']
        utc = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        offset = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
        self.assertAlmostEqual(compute_initial_rotation(earth, utc), compute_initial_rotation(earth, offset))

    def test_catalogue_initial_rotation(self):
        body = BodyDefinition(id='rock', name='Rock', category=BodyCategory.PLANET, radius_km=1.0,
                              color=(1, 1, 1), parent_id='sun', initial_rotation_deg=-90.0)
        self.assertAlmostEqual(compute_initial_rotation(body, START), 1.5 * math.pi)
        self.assertEqual(compute_initial_rotation(replace(body, initial_rotation_deg=None), START), 0.0)


class TestSolarSystemConstruction(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.system = SolarSystem(start_instant=START)

    def test_all_bodies_built_parent_first(self):
        self.assertEqual(len(self.system.bodies), 31)
        seen = set()
        for body in self.system.bodies:
            self.assertIsInstance(body, VisualBody)
            if body.parent_id is not None:
                self.assertIn(body.parent_id, seen)
            seen.add(body.id)

    def test_plan_values_copied_onto_bodies(self):
        for body in self.system.bodies:
            self.assertEqual(body.visual_radius, self.system.plan.visual_radii[body.id])
            self.assertEqual(body.orbit_scale, self.system.plan.orbit_scales[body.id])
            self.assertEqual(body.min_distance, self.system.plan.min_distances[body.id])

    def test_orbit_paths_only_for_orbiting_bodies(self):
        self.assertIsNone(self.system.get_body('sun').orbit_path)
        path = self.system.get_body('titan').orbit_path
        self.assertIsNotNone(path)
        self.assertEqual(len(path), config.OrbitSolver.ORBIT_PATH_SEGMENTS + 1)

    def test_ring_radii(self):
        saturn = self.system.get_body('saturn')
        inner, outer = saturn.ring_radii()
        self.assertAlmostEqual(inner, saturn.visual_radius * 1.5)
        self.assertAlmostEqual(outer, saturn.visual_radius * 2.7)
        self.assertIsNone(self.system.get_body('earth').ring_radii())

    def test_alignment_only_for_ringed_parent_moons(self):
        self.assertIsNotNone(self.system.get_body('rhea').alignment)
        self.assertIsNone(self.system.get_body('moon').alignment)

    def test_unordered_catalogue_is_reordered(self):
        shuffled = list(reversed(get_body_definitions()))
        system = SolarSystem(shuffled, start_instant=START)
        self.assertEqual(system.bodies[0].id, 'sun')
        np.testing.assert_array_almost_equal(system.get_body('moon').position,
                                             self.system.get_body('moon').position)

    def test_broken_catalogue_logs_and_raises(self):
        definitions = get_body_definitions()
        definitions.append(replace(definitions[-1], id='ghost', parent_id='vulcan'))
        with self.assertLogs(level='CRITICAL'):
            with self.assertRaises(ConfigurationError):
                SolarSystem(definitions, start_instant=START)


class TestSolarSystemUpdate(unittest.TestCase):

    def setUp(self):
        self.system = SolarSystem(start_instant=START)

    def test_star_stays_at_origin(self):
        for days in (-40000, -1, 0, 3.5, 90000):
            self.system.update(START + timedelta(days=days), 0.0)
            np.testing.assert_array_equal(self.system.get_body('sun').position, np.zeros(3))

    def test_child_position_is_parent_plus_relative(self):
        instant = START + timedelta(days=12.25)
        self.system.update(instant, 0.0)
        for moon_id in ('moon', 'titan', 'phobos'):
            moon = self.system.get_body(moon_id)
            parent = self.system.parent_of(moon)
            relative = self.system.mechanics.resolve_orbit(
                moon.definition.orbit, instant, moon.orbit_scale, moon.min_distance, moon.alignment)
            np.testing.assert_array_almost_equal(moon.position - parent.position, relative)

    def test_positions_independent_of_history(self):
        target = START + timedelta(days=100)
        self.system.update(target, 0.0)
        first = {b.id: b.position.copy() for b in self.system.bodies}
        self.system.update(START - timedelta(days=5000), 0.0)
        self.system.update(target, 0.0)
        for body in self.system.bodies:
            np.testing.assert_array_equal(body.position, first[body.id])

    def test_moons_never_inside_parent_over_full_period(self):
        for body in self.system.bodies:
            if body.definition.category is not BodyCategory.MOON:
                continue
            period = body.definition.orbit.resolved_period_days
            for step in range(48):
                instant = START + timedelta(days=period * step / 48)
                self.system.update(instant, 0.0)
                parent = self.system.parent_of(body)
                distance = np.linalg.norm(body.position - parent.position)
                self.assertGreaterEqual(distance, body.min_distance - 1e-9, f"{body.id} at step {step}")

    def test_sibling_moons_never_touch(self):
        siblings = {}
        for body in self.system.bodies:
            if body.definition.category is BodyCategory.MOON:
                siblings.setdefault(body.parent_id, []).append(body)
        pairs = [(a, b) for moons in siblings.values() for i, a in enumerate(moons) for b in moons[i + 1:]]
        self.assertTrue(any(a.id == 'phobos' or b.id == 'phobos' for a, b in pairs))

        # A fine sweep over several Phobos periods, then a coarse one over the longest sibling period.
        longest = max(a.definition.orbit.resolved_period_days for moons in siblings.values() for a in moons)
        instants = [START + timedelta(minutes=2 * step) for step in range(2000)]
        instants += [START + timedelta(days=longest * step / 240) for step in range(240)]
        for instant in instants:
            self.system.update(instant, 0.0)
            for a, b in pairs:
                gap = np.linalg.norm(a.position - b.position)
                self.assertGreater(gap, a.visual_radius + b.visual_radius, f"{a.id} / {b.id} at {instant}")

    def test_update_writes_positions_in_place(self):
        held = {body.id: body.position for body in self.system.bodies}
        self.system.update(START + timedelta(days=40), 0.0)
        for body in self.system.bodies:
            self.assertIs(body.position, held[body.id])
        earth = self.system.get_body('earth')
        expected = self.system.mechanics.resolve_orbit(earth.definition.orbit, START + timedelta(days=40))
        np.testing.assert_array_almost_equal(held['earth'], expected)

    def test_bodies_without_rotation_period_never_rotate(self):
        mimas = self.system.get_body('mimas')
        self.assertEqual(mimas.rotation_speed, 0.0)
        initial = mimas.rotation
        instant = START
        for delta in (60.0, 86400.0, -1e7, 3.3e9):
            instant += timedelta(seconds=delta)
            self.system.update(instant, delta)
            self.assertEqual(mimas.rotation, initial)

    def test_zero_delta_leaves_rotation_unchanged(self):
        earth = self.system.get_body('earth')
        before = earth.rotation
        self.system.update(START + timedelta(days=3), 0.0)
        self.assertEqual(earth.rotation, before)

    def test_rotation_advances_by_speed_times_delta(self):
        mars = self.system.get_body('mars')
        before = mars.rotation
        self.system.update(START + timedelta(hours=1), 3600.0)
        expected = (before + mars.rotation_speed * 3600.0) % TWO_PI
        self.assertAlmostEqual(mars.rotation, expected)

    def test_backward_time_keeps_rotation_in_range_and_reverses(self):
        earth = self.system.get_body('earth')
        venus = self.system.get_body('venus')
        start_angles = (earth.rotation, venus.rotation)
        instant = START
        for _ in range(50):
            instant -= timedelta(hours=7)
            self.system.update(instant, -7 * 3600.0)
            for body in (earth, venus):
                self.assertGreaterEqual(body.rotation, 0.0)
                self.assertLess(body.rotation, TWO_PI)
        for _ in range(50):
            instant += timedelta(hours=7)
            self.system.update(instant, 7 * 3600.0)
        self.assertAlmostEqual(math.cos(earth.rotation), math.cos(start_angles[0]), places=6)
        self.assertAlmostEqual(math.sin(earth.rotation), math.sin(start_angles[0]), places=6)
        self.assertAlmostEqual(math.cos(venus.rotation), math.cos(start_angles[1]), places=6)

    def test_snapshot_reflects_last_update(self):
        self.system.update(START + timedelta(days=1), 86400.0)
        snapshots = self.system.snapshot()
        self.assertEqual([s.id for s in snapshots], [b.id for b in self.system.bodies])
        earth_snapshot = next(s for s in snapshots if s.id == 'earth')
        earth = self.system.get_body('earth')
        self.assertEqual(earth_snapshot.position, tuple(float(c) for c in earth.position))
        self.assertEqual(earth_snapshot.rotation, earth.rotation)
        with self.assertRaises(FrozenInstanceError):
            earth_snapshot.rotation = 0.0


if __name__ == '__main__':
    unittest.main()
