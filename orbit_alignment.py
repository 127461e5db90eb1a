# orbit_alignment.py
import math
import logging
from typing import Optional

import numpy as np

from config import config
from catalogue import BodyDefinition, OrbitElements
from orbital_mechanics import OrbitalMechanics
from physics_utils import normalize_vector, quaternion_from_axis_angle, quaternion_from_unit_vectors

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)
WORLD_X = np.array([1.0, 0.0, 0.0], dtype=np.float64)

_mechanics = OrbitalMechanics()


def compute_orbit_plane_normal(elements: Optional[OrbitElements]) -> np.ndarray:
    """
    Unit normal of an orbit's plane in world axes.

    Samples the unscaled orbit at true anomalies 0 and 90° and crosses the two
    points. Prograde orbits in the ecliptic give world +Y. A missing orbit, a
    zero semi-major axis or coincident samples also give world +Y.
    """
    if elements is None or elements.semi_major_axis_au == 0:
        return WORLD_UP.copy()

    samples = [
        _mechanics.orbital_to_world(_mechanics.conic_radius(elements, nu), nu, elements)
        for nu in (0.0, math.pi / 2.0)
    ]
    normal = np.cross(samples[0], samples[1])
    if not np.any(normal):
        return WORLD_UP.copy()
    return normalize_vector(normal)


def compute_ring_plane_normal(axial_tilt_deg: Optional[float] = None) -> np.ndarray:
    """Normal of a ring lying in its planet's equator: world +Y tilted about X by the axial tilt."""
    tilt_rad = math.radians(axial_tilt_deg or 0.0)
    return np.array([0.0, math.cos(tilt_rad), math.sin(tilt_rad)], dtype=np.float64)


def compute_alignment(elements: OrbitElements, reference_normal) -> Optional[np.ndarray]:
    """
    Rotation taking a satellite's orbit plane onto a reference plane.

    Returns a unit quaternion [w, x, y, z], or None when no correction is needed
    (normals already parallel, or either normal degenerate). Anti-parallel
    normals get a half turn about an axis perpendicular to the orbit normal.
    """
    orbit_normal = compute_orbit_plane_normal(elements)
    target_normal = normalize_vector(reference_normal)
    if not np.any(orbit_normal) or not np.any(target_normal):
        return None

    threshold = config.Alignment.PARALLEL_DOT_THRESHOLD
    dot = float(np.dot(orbit_normal, target_normal))
    if dot >= threshold:
        return None

    if dot <= -threshold:
        axis = np.cross(WORLD_X, orbit_normal)
        if np.dot(axis, axis) < config.Alignment.AXIS_EPSILON:
            axis = WORLD_UP.copy()
        return quaternion_from_axis_angle(axis, math.pi)

    return quaternion_from_unit_vectors(orbit_normal, target_normal)


def compute_orbit_correction(definition: BodyDefinition, parent: Optional[BodyDefinition]) -> Optional[np.ndarray]:
    """
    Plane correction for one body, or None.

    Only moons of ringed parents are corrected, onto the parent's ring plane, and
    only while `config.Alignment.ALIGN_MOONS_TO_RING_PLANE` is enabled.
    """
    if definition.orbit is None or parent is None:
        return None
    if not config.Alignment.ALIGN_MOONS_TO_RING_PLANE or parent.ring is None:
        return None

    correction = compute_alignment(definition.orbit, compute_ring_plane_normal(parent.axial_tilt_deg))
    if config.Debug.ALIGNMENT:
        logging.debug(f"Orbit correction for {definition.id} (parent {parent.id}): {correction}")
    return correction
