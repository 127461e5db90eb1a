# orbital_mechanics.py
import math
import logging
from datetime import datetime, timezone
from typing import Iterator, Optional

import numpy as np

from config import config, SECONDS_PER_DAY
from catalogue import OrbitElements
from physics_utils import safe_divide, normalize_degrees, set_vector_length, rotate_by_quaternion


def as_utc(instant: datetime) -> datetime:
    """Returns `instant` as an aware UTC datetime. Naive datetimes are taken to be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def apply_distance_floor(position: np.ndarray, min_distance: float) -> np.ndarray:
    """Rescales `position` to `min_distance` if it lies closer to the origin than that."""
    if min_distance > 0 and np.linalg.norm(position) < min_distance:
        return set_vector_length(position, min_distance)
    return position


class OrbitalMechanics:
    """
    Two-body Keplerian orbit solver.

    Every body moves on a fixed osculating ellipse around its parent; there is no
    mutual perturbation and no internal state, so the position for a given
    (elements, instant) pair does not depend on call history. Time may therefore
    run backward or jump arbitrarily.

    Positions are returned in the world axis convention documented on
    `config.World` (ecliptic (x, y, z) -> world (x, z, -y)).
    """

    def days_since_epoch(self, instant: datetime) -> float:
        """Elapsed days from the J2000.0 epoch to `instant` (negative before it)."""
        elapsed = as_utc(instant) - config.World.EPOCH
        return elapsed.total_seconds() / SECONDS_PER_DAY

    def mean_anomaly(self, elements: OrbitElements, instant: datetime) -> float:
        """Mean anomaly in radians at `instant`, normalized into [0, 2π)."""
        mean_motion_deg_per_day = safe_divide(360.0, elements.resolved_period_days)
        mean_anomaly_deg = elements.mean_anomaly_at_epoch_deg + mean_motion_deg_per_day * self.days_since_epoch(instant)
        return math.radians(normalize_degrees(mean_anomaly_deg))

    def solve_kepler_equation(self, M_rad: float, e: float, iterations: Optional[int] = None) -> float:
        """
        Solves Kepler's Equation M = E - e * sin(E) for eccentric anomaly E.

        Runs a fixed number of Newton-Raphson steps starting from E = M, with no
        convergence test. Six steps bring the residual well below 1e-6 rad for
        eccentricities up to 0.9; for e = 0 the first step already returns M.

        Args:
            M_rad: Mean anomaly in radians.
            e: Eccentricity. Values outside [0, 1) are not rejected.
            iterations: Number of Newton steps (default `config.OrbitSolver.KEPLER_ITERATIONS`).

        Returns:
            Eccentric anomaly E in radians.
        """
        if iterations is None:
            iterations = config.OrbitSolver.KEPLER_ITERATIONS

        E_rad = M_rad
        for _ in range(iterations):
            f_E = E_rad - e * math.sin(E_rad) - M_rad
            f_prime_E = 1.0 - e * math.cos(E_rad)
            E_rad -= f_E / f_prime_E

        if config.Debug.KEPLER_SOLVER:
            residual = E_rad - e * math.sin(E_rad) - M_rad
            logging.debug(f"Kepler solve: M={M_rad:.6f} e={e:.6f} E={E_rad:.9f} residual={residual:.3e}")
        return E_rad

    def true_anomaly(self, E_rad: float, e: float) -> float:
        """True anomaly from eccentric anomaly via the half-angle tangent form."""
        return 2.0 * math.atan2(
            math.sqrt(1.0 + e) * math.sin(E_rad / 2.0),
            math.sqrt(1.0 - e) * math.cos(E_rad / 2.0),
        )

    def orbital_to_world(self, r: float, true_anomaly_rad: float, elements: OrbitElements) -> np.ndarray:
        """
        Rotates the polar point (r, ν) out of the orbital plane by ω, i and Ω into
        the ecliptic frame, then remaps the ecliptic axes to world axes.
        """
        x_orb = r * math.cos(true_anomaly_rad)
        y_orb = r * math.sin(true_anomaly_rad)

        w_rad = math.radians(elements.argument_of_periapsis_deg)
        i_rad = math.radians(elements.inclination_deg)
        omega_rad = math.radians(elements.longitude_ascending_node_deg)

        cos_O, sin_O = math.cos(omega_rad), math.sin(omega_rad)
        cos_i, sin_i = math.cos(i_rad), math.sin(i_rad)
        cos_w, sin_w = math.cos(w_rad), math.sin(w_rad)

        x_ecl = (cos_O * cos_w - sin_O * sin_w * cos_i) * x_orb + (-cos_O * sin_w - sin_O * cos_w * cos_i) * y_orb
        y_ecl = (sin_O * cos_w + cos_O * sin_w * cos_i) * x_orb + (-sin_O * sin_w + cos_O * cos_w * cos_i) * y_orb
        z_ecl = (sin_w * sin_i) * x_orb + (cos_w * sin_i) * y_orb

        return np.array([x_ecl, z_ecl, -y_ecl], dtype=np.float64)

    def conic_radius(self, elements: OrbitElements, true_anomaly_rad: float) -> float:
        """Orbit radius in AU at a given true anomaly: a(1 - e²) / (1 + e cos ν)."""
        e = elements.eccentricity
        return safe_divide(elements.semi_major_axis_au * (1.0 - e ** 2), 1.0 + e * math.cos(true_anomaly_rad))

    def solve_position(self, elements: OrbitElements, instant: datetime) -> np.ndarray:
        """
        Position in AU relative to the parent body at `instant`, in world axes.

        Pure function of its inputs: identical arguments give bit-identical output.
        """
        e = elements.eccentricity
        M_rad = self.mean_anomaly(elements, instant)
        E_rad = self.solve_kepler_equation(M_rad, e)
        nu_rad = self.true_anomaly(E_rad, e)
        r_au = elements.semi_major_axis_au * (1.0 - e * math.cos(E_rad))

        if config.Debug.ORBITAL_MECHANICS:
            logging.debug(
                f"Orbit solve at {instant}: M={math.degrees(M_rad):.4f}° E={math.degrees(E_rad):.4f}° "
                f"ν={math.degrees(nu_rad):.4f}° r={r_au:.6f} AU"
            )
        return self.orbital_to_world(r_au, nu_rad, elements)

    def resolve_orbit(self, elements: OrbitElements, instant: datetime, orbit_scale: float = 1.0,
                      min_distance: float = 0.0, alignment: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Parent-relative position in scene units at `instant`.

        The AU position is scaled by DISTANCE_SCALE * orbit_scale, rotated by the
        optional plane-alignment quaternion, and pushed out to `min_distance` if the
        instantaneous radius falls below it.
        """
        position = self.solve_position(elements, instant) * (config.World.DISTANCE_SCALE * orbit_scale)
        if alignment is not None:
            position = rotate_by_quaternion(position, alignment)
        return apply_distance_floor(position, min_distance)

    def orbit_path(self, elements: OrbitElements, orbit_scale: float = 1.0, min_distance: float = 0.0,
                   alignment: Optional[np.ndarray] = None, segments: Optional[int] = None) -> 'OrbitPath':
        return OrbitPath(self, elements, orbit_scale, min_distance, alignment, segments)


class OrbitPath:
    """
    Static sampled outline of an orbit, in parent-relative scene units.

    Iterating yields `segments + 1` points at evenly spaced true anomalies from 0
    to 2π inclusive (the last point closes the loop). Samples are produced lazily
    and every iteration starts over, so the sequence is finite and restartable.
    It depends only on the elements and the planning-time scale, never on time.
    """

    def __init__(self, mechanics: OrbitalMechanics, elements: OrbitElements, orbit_scale: float = 1.0,
                 min_distance: float = 0.0, alignment: Optional[np.ndarray] = None,
                 segments: Optional[int] = None):
        self.mechanics = mechanics
        self.elements = elements
        self.orbit_scale = orbit_scale
        self.min_distance = min_distance
        self.alignment = alignment
        self.segments = segments if segments is not None else config.OrbitSolver.ORBIT_PATH_SEGMENTS

    def __len__(self) -> int:
        return self.segments + 1

    def __iter__(self) -> Iterator[np.ndarray]:
        scale = config.World.DISTANCE_SCALE * self.orbit_scale
        for i in range(self.segments + 1):
            nu_rad = (i / self.segments) * 2.0 * math.pi
            r_au = self.mechanics.conic_radius(self.elements, nu_rad)
            point = self.mechanics.orbital_to_world(r_au, nu_rad, self.elements) * scale
            point = apply_distance_floor(point, self.min_distance)
            if self.alignment is not None:
                point = rotate_by_quaternion(point, self.alignment)
            yield point

    def as_array(self) -> np.ndarray:
        """All samples stacked into an (N, 3) array."""
        return np.array(list(self), dtype=np.float64)
