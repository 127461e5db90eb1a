# visual_scale.py
"""
Visual scale planner.

True proportions would make every moon invisible and every moon orbit collapse
onto its parent, so display sizes and moon orbit distances are exaggerated here.
Relative ordering is preserved: among moons of the same parent, a larger or
farther moon still appears larger or farther.

The planner runs once at startup and is a pure function of the catalogue:

1. `compute_visual_radii`: display radius per body, with a per-parent moon
   scaling policy (see `MoonScalingPolicy`).
2. `compute_outer_moon_scaling`: per outer-planet parent, the spread of its moons'
   unscaled orbit distances.
3. `compute_orbit_scales`: orbit-scale factor and minimum center distance per
   body.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import config
from catalogue import BodyDefinition, definitions_by_id
from physics_utils import safe_divide


class MoonScalingPolicy(Enum):
    """How a moon's display radius is derived from its parent's class."""
    DEFAULT = 'default'  # global floor only
    ROCKY = 'rocky'      # small inner planet: shrink moons so they do not dwarf it
    GIANT = 'giant'      # gas giant: enlarge moons, with a floor of their own


@dataclass(frozen=True)
class DistanceRange:
    """Unscaled orbit-distance spread (scene units) of one parent's moons."""
    minimum: float
    maximum: float

    def normalize(self, distance: float) -> float:
        """Position of `distance` within the range, clamped to [0, 1]. Zero spread gives 0."""
        if self.maximum <= self.minimum:
            return 0.0
        normalized = (distance - self.minimum) / (self.maximum - self.minimum)
        return min(max(normalized, 0.0), 1.0)


@dataclass(frozen=True)
class ScalePlan:
    """Planner output, keyed by body id.

    Attributes:
        visual_radii: Display radius per body.
        orbit_scales: Multiplier applied on top of DISTANCE_SCALE to each orbit
            (1.0 for non-moons).
        min_distances: Minimum center-to-center distance from the parent
            (0.0 for bodies without a floor).
        outer_moon_ranges: Distance spread per outer-planet parent.
    """
    visual_radii: Dict[str, float]
    orbit_scales: Dict[str, float]
    min_distances: Dict[str, float]
    outer_moon_ranges: Dict[str, DistanceRange]


def resolve_moon_policy(parent_id: Optional[str]) -> MoonScalingPolicy:
    name = config.VisualScale.MOON_SCALING_POLICIES.get(parent_id, MoonScalingPolicy.DEFAULT.value)
    return MoonScalingPolicy(name)


def _scale_default_moon(radius: float) -> float:
    return radius


def _scale_rocky_moon(radius: float) -> float:
    return radius * config.VisualScale.ROCKY_MOON_SCALE


def _scale_giant_moon(radius: float) -> float:
    return max(radius * config.VisualScale.GIANT_MOON_SCALE, config.VisualScale.GIANT_MOON_MIN_RADIUS)


MOON_RADIUS_SCALERS: Dict[MoonScalingPolicy, Callable[[float], float]] = {
    MoonScalingPolicy.DEFAULT: _scale_default_moon,
    MoonScalingPolicy.ROCKY: _scale_rocky_moon,
    MoonScalingPolicy.GIANT: _scale_giant_moon,
}


def base_visual_radius(definition: BodyDefinition) -> float:
    """The fixed display radius if given, else the physical radius exaggerated linearly."""
    if definition.render_radius is not None:
        return definition.render_radius
    vs = config.VisualScale
    return definition.radius_km / config.World.KM_IN_AU * config.World.DISTANCE_SCALE * vs.SIZE_MULTIPLIER


def compute_visual_radius(definition: BodyDefinition) -> float:
    radius = base_visual_radius(definition)
    policy = MoonScalingPolicy.DEFAULT
    if definition.is_moon and definition.parent_id is not None:
        policy = resolve_moon_policy(definition.parent_id)
        radius = MOON_RADIUS_SCALERS[policy](radius)

    # Fixed overrides and giant-planet moons (already floored) are exempt from the global floor.
    if definition.render_radius is None and policy is not MoonScalingPolicy.GIANT:
        radius = max(radius, config.VisualScale.MIN_BODY_RADIUS)
    return radius


def compute_visual_radii(definitions: Sequence[BodyDefinition]) -> Dict[str, float]:
    """Display radius per body id."""
    return {d.id: compute_visual_radius(d) for d in definitions}


def compute_outer_moon_scaling(definitions: Sequence[BodyDefinition]) -> Dict[str, DistanceRange]:
    """
    Minimum and maximum unscaled orbit distance (a * DISTANCE_SCALE) among the
    moons of each outer planet. Moons with a non-positive distance are ignored.
    """
    distances: Dict[str, list] = {}
    for definition in definitions:
        if not definition.is_moon or definition.orbit is None:
            continue
        if definition.parent_id not in config.VisualScale.OUTER_PLANETS:
            continue
        base_distance = definition.orbit.semi_major_axis_au * config.World.DISTANCE_SCALE
        if base_distance > 0:
            distances.setdefault(definition.parent_id, []).append(base_distance)

    return {parent_id: DistanceRange(min(values), max(values)) for parent_id, values in distances.items()}


def _outer_moon_target_distance(definition: BodyDefinition, parent: BodyDefinition, parent_radius: float,
                                base_distance: float, distance_range: DistanceRange) -> float:
    """Center distance an outer-planet moon should be drawn at."""
    vs = config.VisualScale
    multiplier = vs.SURFACE_MULTIPLIERS.get(parent.id, {}).get(definition.id)
    if multiplier is not None:
        return parent_radius * (1 + multiplier)

    normalized = distance_range.normalize(base_distance)
    if parent.ring is not None:
        ring_outer = parent_radius * parent.ring.resolved_outer_scale
        nearest = ring_outer + parent_radius * vs.RING_BUFFER_FACTOR
        farthest = max(nearest, parent_radius * vs.RING_MAX_DISTANCE_FACTOR)
        return nearest + (farthest - nearest) * normalized

    surface_factor = vs.OUTER_SURFACE_FACTOR_MIN + normalized * (vs.OUTER_SURFACE_FACTOR_MAX - vs.OUTER_SURFACE_FACTOR_MIN)
    return parent_radius + surface_factor * parent_radius


def _moon_orbit_scale(definition: BodyDefinition, parent: BodyDefinition, parent_radius: float,
                      min_distance: float, outer_moon_ranges: Dict[str, DistanceRange]) -> float:
    """Unclamped orbit-scale factor: outer-planet target, raised so periapsis clears `min_distance`."""
    orbit_scale = 1.0
    base_distance = definition.orbit.semi_major_axis_au * config.World.DISTANCE_SCALE
    if base_distance > 0:
        distance_range = outer_moon_ranges.get(parent.id)
        if distance_range is not None and distance_range.maximum > 0:
            target = _outer_moon_target_distance(definition, parent, parent_radius, base_distance, distance_range)
            orbit_scale = target / base_distance

        periapsis_distance = base_distance * (1.0 - definition.orbit.eccentricity)
        clearance_scale = safe_divide(min_distance, periapsis_distance, default_on_zero_denom=orbit_scale)
        orbit_scale = max(orbit_scale, clearance_scale)
    return orbit_scale


def compute_orbit_scales(definitions: Sequence[BodyDefinition], visual_radii: Dict[str, float],
                         outer_moon_ranges: Optional[Dict[str, DistanceRange]] = None
                         ) -> Tuple[Dict[str, float], Dict[str, float]]:
    """
    Orbit-scale factor and minimum center distance per body id.

    Only moons with an orbit and a parent are rescaled. Siblings are planned
    from the innermost semi-major axis outward. A moon's minimum distance is
    parent radius + moon radius + MOON_CLEARANCE, raised to clear the farthest
    reach of the previous sibling by both radii + MOON_CLEARANCE, so sibling
    shells never overlap and a closer moon is still drawn closer. The scale is
    the outer-planet target distance (if any) divided by the unscaled distance,
    raised so periapsis clears the minimum distance, then clamped to
    [MIN_MOON_ORBIT_SCALE, MAX_MOON_ORBIT_SCALE]. The per-frame distance floor
    holds moons whose clamped scale falls short.
    """
    vs = config.VisualScale
    if outer_moon_ranges is None:
        outer_moon_ranges = compute_outer_moon_scaling(definitions)
    lookup = definitions_by_id(definitions)

    orbit_scales: Dict[str, float] = {}
    min_distances: Dict[str, float] = {}
    moons_by_parent: Dict[str, List[BodyDefinition]] = {}
    for definition in definitions:
        orbit_scales[definition.id] = 1.0
        min_distances[definition.id] = 0.0
        if definition.is_moon and definition.orbit is not None and definition.parent_id in lookup:
            moons_by_parent.setdefault(definition.parent_id, []).append(definition)

    for parent_id, moons in moons_by_parent.items():
        parent = lookup[parent_id]
        parent_radius = visual_radii[parent_id]
        inner_sibling: Optional[Tuple[float, float]] = None  # (farthest reach, radius)

        for definition in sorted(moons, key=lambda d: d.orbit.semi_major_axis_au):
            moon_radius = visual_radii[definition.id]
            min_distance = parent_radius + moon_radius + vs.MOON_CLEARANCE
            if inner_sibling is not None:
                inner_reach, inner_radius = inner_sibling
                min_distance = max(min_distance, inner_reach + inner_radius + moon_radius + vs.MOON_CLEARANCE)

            orbit_scale = _moon_orbit_scale(definition, parent, parent_radius, min_distance, outer_moon_ranges)
            orbit_scale = min(max(orbit_scale, vs.MIN_MOON_ORBIT_SCALE), vs.MAX_MOON_ORBIT_SCALE)
            orbit_scales[definition.id] = orbit_scale
            min_distances[definition.id] = min_distance

            apoapsis_distance = (definition.orbit.semi_major_axis_au * config.World.DISTANCE_SCALE
                                 * (1.0 + definition.orbit.eccentricity) * orbit_scale)
            inner_sibling = (max(min_distance, apoapsis_distance), moon_radius)

    return orbit_scales, min_distances


def plan_visual_scale(definitions: Sequence[BodyDefinition]) -> ScalePlan:
    """Runs every planner pass over the catalogue."""
    visual_radii = compute_visual_radii(definitions)
    outer_moon_ranges = compute_outer_moon_scaling(definitions)
    orbit_scales, min_distances = compute_orbit_scales(definitions, visual_radii, outer_moon_ranges)

    if config.Debug.SCALE_PLANNER:
        for definition in definitions:
            logging.debug(
                f"Scale plan {definition.id}: radius={visual_radii[definition.id]:.4f} "
                f"orbit_scale={orbit_scales[definition.id]:.3f} min_distance={min_distances[definition.id]:.4f}"
            )
    return ScalePlan(visual_radii, orbit_scales, min_distances, outer_moon_ranges)
