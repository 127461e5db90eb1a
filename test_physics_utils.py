import math
import unittest
import numpy as np
from physics_utils import (safe_divide, normalize_vector, set_vector_length, normalize_degrees, wrap_angle,
                           IDENTITY_QUATERNION, quaternion_from_axis_angle, quaternion_from_unit_vectors,
                           rotate_by_quaternion)

class TestSafeDivide(unittest.TestCase):

    def test_typical_division_scalar(self):
        self.assertAlmostEqual(safe_divide(10, 2), 5.0)
        self.assertAlmostEqual(safe_divide(7, 3), 7/3)
        self.assertAlmostEqual(safe_divide(-10, 2), -5.0)
        self.assertAlmostEqual(safe_divide(10, -2), -5.0)
        self.assertAlmostEqual(safe_divide(0, 5), 0.0)

    def test_division_by_zero_scalar_default_zero(self):
        self.assertAlmostEqual(safe_divide(5, 0), 0.0)
        self.assertAlmostEqual(safe_divide(5, 1e-13), 0.0) # Denominator smaller than default epsilon
        self.assertAlmostEqual(safe_divide(0, 0), 0.0)
        self.assertAlmostEqual(safe_divide(-5, 0), 0.0)

    def test_division_by_zero_scalar_custom_default(self):
        self.assertAlmostEqual(safe_divide(5, 0, default_on_zero_denom=99.0), 99.0)
        self.assertAlmostEqual(safe_divide(0, 0, default_on_zero_denom=99.0), 99.0)

    def test_custom_epsilon_scalar(self):
        self.assertAlmostEqual(safe_divide(1, 1e-3, epsilon=1e-2), 0.0)
        self.assertAlmostEqual(safe_divide(1, 1e-3, epsilon=1e-4), 1000.0)

    def test_typical_division_numpy_array(self):
        num = np.array([10.0, 7.0, 0.0, -4.0])
        den = np.array([2.0, 3.0, 5.0, -2.0])
        expected = np.array([5.0, 7/3, 0.0, 2.0])
        np.testing.assert_array_almost_equal(safe_divide(num, den), expected)

    def test_division_by_zero_numpy_array_default_zero(self):
        num = np.array([5.0, 0.0, -5.0, 1.0])
        den = np.array([0.0, 0.0, 1e-14, 2.0])
        expected = np.array([0.0, 0.0, 0.0, 0.5])
        np.testing.assert_array_almost_equal(safe_divide(num, den), expected)

    def test_division_by_zero_numpy_array_custom_default(self):
        num = np.array([5.0, 0.0])
        den = np.array([0.0, 1e-14])
        expected = np.array([99.0, 99.0])
        np.testing.assert_array_almost_equal(safe_divide(num, den, default_on_zero_denom=99.0), expected)

    def test_scalar_numerator_broadcasts_over_array(self):
        den = np.array([2.0, 0.0, 4.0])
        np.testing.assert_array_almost_equal(safe_divide(8.0, den), np.array([4.0, 0.0, 2.0]))


class TestNormalizeVector(unittest.TestCase):

    def test_normalize_typical_vector(self):
        v = np.array([3.0, 4.0, 0.0])
        np.testing.assert_array_almost_equal(normalize_vector(v), np.array([0.6, 0.8, 0.0]))

    def test_normalize_already_normalized_vector(self):
        v = np.array([0.0, 1.0, 0.0])
        np.testing.assert_array_almost_equal(normalize_vector(v), v)

    def test_normalize_zero_vector(self):
        np.testing.assert_array_equal(normalize_vector(np.zeros(3)), np.zeros(3))

    def test_normalize_small_magnitude_vector(self):
        v = np.array([1e-13, 0.0, 0.0])
        np.testing.assert_array_equal(normalize_vector(v), np.zeros(3)) # Below default epsilon
        np.testing.assert_array_almost_equal(normalize_vector(v, epsilon=1e-14), np.array([1.0, 0.0, 0.0]))

    def test_normalize_list_input(self):
        result = normalize_vector([0.0, 0.0, 2.0])
        self.assertIsInstance(result, np.ndarray)
        np.testing.assert_array_almost_equal(result, np.array([0.0, 0.0, 1.0]))

    def test_set_vector_length(self):
        np.testing.assert_array_almost_equal(set_vector_length([3.0, 0.0, 4.0], 10.0), np.array([6.0, 0.0, 8.0]))
        np.testing.assert_array_equal(set_vector_length(np.zeros(3), 5.0), np.zeros(3))


class TestAngleWrapping(unittest.TestCase):

    def test_normalize_degrees(self):
        self.assertAlmostEqual(normalize_degrees(30.0), 30.0)
        self.assertAlmostEqual(normalize_degrees(370.5), 10.5)
        self.assertAlmostEqual(normalize_degrees(-30.0), 330.0)
        self.assertEqual(normalize_degrees(720.0), 0.0)
        self.assertEqual(normalize_degrees(-720.0), 0.0)

    def test_normalize_degrees_large_negative(self):
        result = normalize_degrees(-1e9 - 45.0)
        self.assertGreaterEqual(result, 0.0)
        self.assertLess(result, 360.0)

    def test_normalize_degrees_tiny_negative_stays_in_range(self):
        result = normalize_degrees(-1e-15)
        self.assertGreaterEqual(result, 0.0)
        self.assertLess(result, 360.0)

    def test_wrap_angle_positive_and_negative(self):
        self.assertAlmostEqual(wrap_angle(7.0), 7.0 - 2 * math.pi)
        self.assertAlmostEqual(wrap_angle(-0.5), 2 * math.pi - 0.5)
        self.assertEqual(wrap_angle(0.0), 0.0)

    def test_wrap_angle_tiny_negative_stays_in_range(self):
        result = wrap_angle(-1e-20)
        self.assertGreaterEqual(result, 0.0)
        self.assertLess(result, 2 * math.pi)


class TestQuaternions(unittest.TestCase):

    def test_identity_leaves_vector_unchanged(self):
        v = np.array([1.0, -2.0, 3.0])
        np.testing.assert_array_almost_equal(rotate_by_quaternion(v, IDENTITY_QUATERNION), v)

    def test_axis_angle_quarter_turn_about_z(self):
        q = quaternion_from_axis_angle([0.0, 0.0, 1.0], math.pi / 2)
        np.testing.assert_array_almost_equal(rotate_by_quaternion([1.0, 0.0, 0.0], q), np.array([0.0, 1.0, 0.0]))

    def test_axis_angle_accepts_unnormalized_axis(self):
        q = quaternion_from_axis_angle([0.0, 5.0, 0.0], math.pi)
        self.assertAlmostEqual(np.linalg.norm(q), 1.0)
        np.testing.assert_array_almost_equal(rotate_by_quaternion([1.0, 0.0, 0.0], q), np.array([-1.0, 0.0, 0.0]))

    def test_from_unit_vectors_maps_source_to_target(self):
        v_from = normalize_vector([1.0, 1.0, 0.0])
        v_to = normalize_vector([0.0, 0.3, 1.0])
        q = quaternion_from_unit_vectors(v_from, v_to)
        self.assertAlmostEqual(np.linalg.norm(q), 1.0)
        np.testing.assert_array_almost_equal(rotate_by_quaternion(v_from, q), v_to)

    def test_rotation_preserves_length(self):
        q = quaternion_from_axis_angle([1.0, 2.0, 3.0], 1.234)
        v = np.array([4.0, -5.0, 6.0])
        self.assertAlmostEqual(np.linalg.norm(rotate_by_quaternion(v, q)), np.linalg.norm(v))


if __name__ == '__main__':
    unittest.main()
