# solarsystem.py
import math
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from config import config, ConfigurationError, SECONDS_PER_HOUR, TWO_PI
from catalogue import BodyDefinition, get_body_definitions, order_parent_first, validate_catalogue
from orbital_mechanics import OrbitalMechanics, OrbitPath, as_utc
from orbit_alignment import compute_orbit_correction
from visual_scale import ScalePlan, plan_visual_scale
from physics_utils import wrap_angle


def compute_rotation_speed(rotation_period_hours: Optional[float]) -> float:
    """Self-rotation rate in rad/s. Sign follows the period (negative = retrograde); 0 if none."""
    if not rotation_period_hours:
        return 0.0
    return TWO_PI / (rotation_period_hours * SECONDS_PER_HOUR)


def compute_initial_rotation(definition: BodyDefinition, start_instant: datetime) -> float:
    """
    Starting rotation angle in radians, in [0, 2π).

    The clock-aligned body (Earth) is turned so that its orientation matches the
    UTC time of day of `start_instant`; every other body starts at its catalogue
    `initial_rotation_deg` (0 if absent).
    """
    if definition.id == config.Rotation.CLOCK_ALIGNED_BODY:
        start = as_utc(start_instant)
        seconds_of_day = start.hour * 3600 + start.minute * 60 + start.second + start.microsecond / 1e6
        angular_speed = TWO_PI / (config.Rotation.CLOCK_ALIGNED_PERIOD_HOURS * SECONDS_PER_HOUR)
        return wrap_angle(-math.pi / 2.0 - angular_speed * seconds_of_day + math.pi)
    return wrap_angle(math.radians(definition.initial_rotation_deg or 0.0))


@dataclass
class VisualBody:
    """
    Derived per-body state owned by `SolarSystem`.

    Everything except `position` and `rotation` is fixed at construction.
    `parent_id` is a lookup key into the owning system, not a reference.
    """
    definition: BodyDefinition
    visual_radius: float
    orbit_scale: float = 1.0
    min_distance: float = 0.0
    rotation_speed: float = 0.0
    alignment: Optional[np.ndarray] = field(default=None, repr=False)
    orbit_path: Optional[OrbitPath] = field(default=None, repr=False)

    position: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float64))  # world, scene units
    rotation: float = 0.0  # radians, [0, 2π)

    def __post_init__(self):
        self.position = np.array(self.position, dtype=np.float64)

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def parent_id(self) -> Optional[str]:
        return self.definition.parent_id

    def ring_radii(self) -> Optional[Tuple[float, float]]:
        """Absolute (inner, outer) ring radii, or None for ringless bodies."""
        if self.definition.ring is None:
            return None
        return self.definition.ring.ring_radii(self.visual_radius)


@dataclass(frozen=True)
class BodySnapshot:
    """Read-only copy of one body's per-frame output."""
    id: str
    position: Tuple[float, float, float]
    rotation: float


class SolarSystem:
    """
    Arena of `VisualBody` instances in parent-before-child order.

    Built once from the catalogue and the visual scale plan; `update()` then
    mutates positions and rotations in place every frame.
    """

    def __init__(self, definitions: Optional[Sequence[BodyDefinition]] = None,
                 start_instant: Optional[datetime] = None):
        if definitions is None:
            definitions = get_body_definitions()
        if start_instant is None:
            start_instant = datetime.now(timezone.utc)

        try:
            validate_catalogue(definitions)
            ordered = order_parent_first(definitions)
        except ConfigurationError as e:
            logging.critical(f"Failed to build the solar system from the catalogue: {e}", exc_info=True)
            raise

        self.mechanics = OrbitalMechanics()
        self.plan: ScalePlan = plan_visual_scale(ordered)
        self.bodies: List[VisualBody] = []
        self.bodies_by_id: Dict[str, VisualBody] = {}

        lookup = {d.id: d for d in ordered}
        for definition in ordered:
            parent = lookup.get(definition.parent_id) if definition.parent_id else None
            body = VisualBody(
                definition=definition,
                visual_radius=self.plan.visual_radii[definition.id],
                orbit_scale=self.plan.orbit_scales[definition.id],
                min_distance=self.plan.min_distances[definition.id],
                rotation_speed=compute_rotation_speed(definition.rotation_period_hours),
                alignment=compute_orbit_correction(definition, parent),
                rotation=compute_initial_rotation(definition, start_instant),
            )
            if definition.orbit is not None:
                body.orbit_path = self.mechanics.orbit_path(
                    definition.orbit, body.orbit_scale, body.min_distance, body.alignment
                )
            self.bodies.append(body)
            self.bodies_by_id[body.id] = body

        logging.info(f"Solar system initialised with {len(self.bodies)} bodies.")
        self.update(start_instant, 0.0)

    def get_body(self, body_id: str) -> VisualBody:
        return self.bodies_by_id[body_id]

    def parent_of(self, body: VisualBody) -> Optional[VisualBody]:
        if body.parent_id is None:
            return None
        return self.bodies_by_id.get(body.parent_id)

    def update(self, instant: datetime, sim_delta_seconds: float = 0.0):
        """
        Advances every body to `instant`.

        Positions come straight from the orbit solver, so `instant` may jump
        anywhere. Rotations are accumulated by `sim_delta_seconds` (negative while
        time runs backward) and wrapped into [0, 2π).
        """
        for body in self.bodies:
            definition = body.definition
            if definition.orbit is None:
                body.position[:] = 0.0
            else:
                relative = self.mechanics.resolve_orbit(
                    definition.orbit, instant, body.orbit_scale, body.min_distance, body.alignment
                )
                parent = self.parent_of(body)
                body.position[:] = relative + parent.position if parent is not None else relative

            if body.rotation_speed and sim_delta_seconds:
                body.rotation = wrap_angle(body.rotation + body.rotation_speed * sim_delta_seconds)

    def snapshot(self) -> List[BodySnapshot]:
        """Read-only per-body output of the last update pass."""
        return [
            BodySnapshot(body.id, tuple(float(c) for c in body.position), body.rotation)
            for body in self.bodies
        ]
