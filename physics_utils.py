# physics_utils.py

import math
import numpy as np


def safe_divide(numerator, denominator, epsilon=1e-12, default_on_zero_denom=0.0):
    """
    Safely divides two numbers, handling potential division by zero.

    Args:
        numerator (float or np.ndarray): The number(s) to be divided.
        denominator (float or np.ndarray): The number(s) to divide by.
        epsilon (float): Threshold below which the denominator is considered zero.
        default_on_zero_denom (float): Value returned where the denominator is
                                       effectively zero.

    Returns:
        float or np.ndarray: The quotient, or default_on_zero_denom where the
                             denominator is near zero.
    """
    if isinstance(denominator, np.ndarray):
        numerator = np.broadcast_to(np.asarray(numerator, dtype=np.float64), denominator.shape)
        is_zero = np.abs(denominator) < epsilon
        result = np.full(denominator.shape, default_on_zero_denom, dtype=np.float64)
        np.divide(numerator, denominator, out=result, where=~is_zero)
        return result
    if abs(denominator) < epsilon:
        return default_on_zero_denom
    return numerator / denominator


def normalize_vector(vector, epsilon=1e-12):
    """
    Normalizes a vector to unit length.

    Args:
        vector (np.ndarray): The vector to normalize.
        epsilon (float): Threshold below which the vector's magnitude is considered zero.

    Returns:
        np.ndarray: The normalized vector, or a zero vector of the same shape
                    if its magnitude is close to zero.
    """
    vector = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(vector)
    if norm < epsilon:
        return np.zeros_like(vector)
    return vector / norm


def set_vector_length(vector, length, epsilon=1e-12):
    """Returns `vector` rescaled to `length`; a zero vector stays zero."""
    return normalize_vector(vector, epsilon) * length


def normalize_degrees(value: float) -> float:
    """Wraps an angle in degrees into [0, 360)."""
    result = math.fmod(value, 360.0)
    if result < 0:
        result += 360.0
    # fmod of a tiny negative value plus 360 can round up to exactly 360
    return 0.0 if result >= 360.0 else result


def wrap_angle(angle_rad: float, period: float = 2.0 * math.pi) -> float:
    """Wraps an angle into [0, period). Works for negative input (reversed time)."""
    result = angle_rad % period
    return 0.0 if result >= period else result


# --- Quaternions (scalar-first: q = [w, x, y, z]) ---

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)


def quaternion_from_axis_angle(axis, angle_rad: float) -> np.ndarray:
    """Unit quaternion for a rotation of `angle_rad` about `axis` (right-hand rule)."""
    unit_axis = normalize_vector(axis)
    half = 0.5 * angle_rad
    return np.concatenate(([math.cos(half)], unit_axis * math.sin(half)))


def quaternion_from_unit_vectors(v_from, v_to) -> np.ndarray:
    """
    Shortest-arc rotation taking unit vector `v_from` onto unit vector `v_to`.

    The anti-parallel case has no unique shortest arc; callers are expected to
    handle it before calling (see orbit_alignment.compute_alignment).
    """
    v_from = np.asarray(v_from, dtype=np.float64)
    v_to = np.asarray(v_to, dtype=np.float64)
    w = float(np.dot(v_from, v_to)) + 1.0
    q = np.concatenate(([w], np.cross(v_from, v_to)))
    return normalize_vector(q)


def rotate_by_quaternion(vector, quaternion) -> np.ndarray:
    """
    Rotates a 3-vector by a unit quaternion.

    Uses the Rodrigues form optimised for unit quaternions:

        t = 2 * (q_vec x v)
        v' = v + w * t + (q_vec x t)
    """
    v = np.asarray(vector, dtype=np.float64)
    q = np.asarray(quaternion, dtype=np.float64)
    w = q[0]
    q_vec = q[1:4]
    t = 2.0 * np.cross(q_vec, v)
    return v + w * t + np.cross(q_vec, t)
