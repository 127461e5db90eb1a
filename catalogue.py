# catalogue.py
"""
Static catalogue of solar-system bodies.

Pure data: immutable `BodyDefinition` records with their `OrbitElements` and
optional `RingSpec`. Orbital elements are referenced to the J2000.0 epoch and
the ecliptic frame; periods are in days, angles in degrees, distances in AU.
The catalogue is ordered so that every parent precedes its children, and
`order_parent_first` restores that order for catalogues that are not.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from config import config, ConfigurationError

MAX_TREE_DEPTH = 2  # star -> planet -> moon


class BodyCategory(str, Enum):
    STAR = 'star'
    PLANET = 'planet'
    MOON = 'moon'
    DWARF_PLANET = 'dwarf-planet'


@dataclass(frozen=True)
class OrbitElements:
    """Osculating Keplerian elements at the reference epoch.

    Attributes:
        semi_major_axis_au: Semi-major axis in AU.
        eccentricity: Eccentricity, expected in [0, 1).
        inclination_deg: Inclination to the ecliptic.
        longitude_ascending_node_deg: Longitude of the ascending node (Ω).
        argument_of_periapsis_deg: Argument of periapsis (ω).
        mean_anomaly_at_epoch_deg: Mean anomaly at the epoch (M0).
        period_days: Orbital period. When None it is derived from the semi-major
            axis with Kepler's third law for a solar-mass primary.
    """
    semi_major_axis_au: float
    eccentricity: float
    inclination_deg: float
    longitude_ascending_node_deg: float
    argument_of_periapsis_deg: float
    mean_anomaly_at_epoch_deg: float
    period_days: Optional[float] = None

    @property
    def resolved_period_days(self) -> float:
        if self.period_days is not None:
            return self.period_days
        return (self.semi_major_axis_au ** 3) ** 0.5 * config.OrbitSolver.SIDEREAL_YEAR_DAYS


@dataclass(frozen=True)
class RingSpec:
    """Planetary ring, sized in multiples of the parent's visual radius."""
    inner_scale: Optional[float] = None
    outer_scale: Optional[float] = None
    color: Optional[Tuple[int, int, int]] = None
    opacity: Optional[float] = None
    node_deg: Optional[float] = None

    @property
    def resolved_inner_scale(self) -> float:
        return self.inner_scale if self.inner_scale is not None else config.VisualScale.DEFAULT_RING_INNER_SCALE

    @property
    def resolved_outer_scale(self) -> float:
        return self.outer_scale if self.outer_scale is not None else config.VisualScale.DEFAULT_RING_OUTER_SCALE

    @property
    def resolved_color(self) -> Tuple[int, int, int]:
        return self.color if self.color is not None else config.VisualScale.DEFAULT_RING_COLOR

    @property
    def resolved_opacity(self) -> float:
        return self.opacity if self.opacity is not None else config.VisualScale.DEFAULT_RING_OPACITY

    @property
    def resolved_node_deg(self) -> float:
        return self.node_deg if self.node_deg is not None else 0.0

    def ring_radii(self, parent_visual_radius: float) -> Tuple[float, float]:
        """Absolute (inner, outer) ring radii in scene units."""
        return (parent_visual_radius * self.resolved_inner_scale,
                parent_visual_radius * self.resolved_outer_scale)


@dataclass(frozen=True)
class BodyDefinition:
    """Immutable catalogue entry for one body.

    `render_radius` overrides the computed visual radius. A negative
    `rotation_period_hours` means retrograde spin.
    """
    id: str
    name: str
    category: BodyCategory
    radius_km: float
    color: Tuple[int, int, int]
    parent_id: Optional[str] = None
    render_radius: Optional[float] = None
    orbit: Optional[OrbitElements] = None
    axial_tilt_deg: Optional[float] = None
    rotation_period_hours: Optional[float] = None
    ring: Optional[RingSpec] = None
    initial_rotation_deg: Optional[float] = None

    @property
    def is_moon(self) -> bool:
        return self.category is BodyCategory.MOON


BODY_DEFINITIONS: Tuple[BodyDefinition, ...] = (
    BodyDefinition(
        id='sun', name='Sun', category=BodyCategory.STAR, radius_km=695_700.0,
        color=(255, 210, 127), render_radius=1.4,
        rotation_period_hours=609.12, axial_tilt_deg=7.25,
    ),
    BodyDefinition(
        id='mercury', name='Mercury', category=BodyCategory.PLANET, radius_km=2_439.7,
        color=(193, 172, 171), parent_id='sun',
        rotation_period_hours=1407.5, axial_tilt_deg=0.01,
        orbit=OrbitElements(0.38709927, 0.20563593, 7.00497902, 48.33076593, 29.12427935, 174.79252722, 87.9691),
    ),
    BodyDefinition(
        id='venus', name='Venus', category=BodyCategory.PLANET, radius_km=6_051.8,
        color=(224, 192, 128), parent_id='sun',
        rotation_period_hours=-5832.5, axial_tilt_deg=177.36,
        orbit=OrbitElements(0.72333566, 0.00677672, 3.39467605, 76.67984255, 54.92246763, 50.37663228, 224.7008),
    ),
    BodyDefinition(
        id='earth', name='Earth', category=BodyCategory.PLANET, radius_km=6_371.0,
        color=(74, 144, 226), parent_id='sun',
        rotation_period_hours=23.934, axial_tilt_deg=23.44,
        orbit=OrbitElements(1.00000011, 0.01671022, 0.00005, -11.26064, 114.20783, 357.51716, 365.256363),
    ),
    BodyDefinition(
        id='moon', name='Moon', category=BodyCategory.MOON, radius_km=1_737.4,
        color=(188, 184, 178), parent_id='earth',
        rotation_period_hours=655.728, axial_tilt_deg=6.68,
        orbit=OrbitElements(0.002569555, 0.0549, 5.145, 125.08, 318.15, 115.3654, 27.321661),
    ),
    BodyDefinition(
        id='mars', name='Mars', category=BodyCategory.PLANET, radius_km=3_389.5,
        color=(200, 101, 77), parent_id='sun',
        rotation_period_hours=24.623, axial_tilt_deg=25.19,
        orbit=OrbitElements(1.52371034, 0.09339410, 1.84969142, 49.55953891, 286.502, 19.39019754, 686.980),
    ),
    BodyDefinition(
        id='phobos', name='Phobos', category=BodyCategory.MOON, radius_km=11.2667,
        color=(143, 138, 134), parent_id='mars', render_radius=0.25,
        rotation_period_hours=7.66,
        orbit=OrbitElements(0.000062675, 0.0151, 1.9, 49.0, 150.1, 80.0, 0.31891),
    ),
    BodyDefinition(
        id='deimos', name='Deimos', category=BodyCategory.MOON, radius_km=6.2,
        color=(181, 176, 171), parent_id='mars', render_radius=0.22,
        rotation_period_hours=30.35,
        orbit=OrbitElements(0.000156842, 0.0002, 1.8, 49.6, 70.0, 140.0, 1.26244),
    ),
    BodyDefinition(
        id='jupiter', name='Jupiter', category=BodyCategory.PLANET, radius_km=69_911.0,
        color=(215, 179, 122), parent_id='sun', render_radius=2.6,
        rotation_period_hours=9.925, axial_tilt_deg=3.13,
        orbit=OrbitElements(5.20288700, 0.04838624, 1.30439695, 100.47390909, 274.27305074, 19.66796068, 4332.589),
    ),
    BodyDefinition(
        id='io', name='Io', category=BodyCategory.MOON, radius_km=1_821.6,
        color=(255, 226, 118), parent_id='jupiter',
        orbit=OrbitElements(0.002819, 0.004879458023067604, 2.212625896929864, 336.8522496700484,
                            67.08346085353269, 334.24284160276244, 1.7718964834223734),
    ),
    BodyDefinition(
        id='europa', name='Europa', category=BodyCategory.MOON, radius_km=1_560.8,
        color=(217, 210, 197), parent_id='jupiter',
        orbit=OrbitElements(0.004484, 0.009789867263725448, 1.7909887092581105, 332.6282575700165,
                            254.12181778318993, 345.93160032652116, 3.5531831164380687),
    ),
    BodyDefinition(
        id='ganymede', name='Ganymede', category=BodyCategory.MOON, radius_km=2_634.1,
        color=(188, 164, 140), parent_id='jupiter',
        orbit=OrbitElements(0.007155, 0.0014109763895793213, 2.214133473599043, 343.173070881089,
                            316.987280706706, 279.8660625759672, 7.156822593270807),
    ),
    BodyDefinition(
        id='callisto', name='Callisto', category=BodyCategory.MOON, radius_km=2_410.3,
        color=(149, 129, 114), parent_id='jupiter',
        orbit=OrbitElements(0.012585, 0.007426728567527058, 2.0169160591039708, 337.9427202690351,
                            16.475597133407142, 84.7704510799774, 16.692158624085896),
    ),
    BodyDefinition(
        id='saturn', name='Saturn', category=BodyCategory.PLANET, radius_km=58_232.0,
        color=(244, 201, 140), parent_id='sun', render_radius=2.1,
        ring=RingSpec(inner_scale=1.5, outer_scale=2.7, node_deg=0.0, opacity=0.9),
        rotation_period_hours=10.656, axial_tilt_deg=26.73,
        orbit=OrbitElements(9.53667594, 0.05386179, 2.48599187, 113.66242448, 338.9393318, 317.355366, 10759.22),
    ),
    BodyDefinition(
        id='mimas', name='Mimas', category=BodyCategory.MOON, radius_km=198.2,
        color=(160, 157, 154), parent_id='saturn', render_radius=0.45,
        orbit=OrbitElements(0.001247966, 0.023254490718893114, 27.00219363533106, 172.05495885813778,
                            111.48418723684985, 34.63865465393197, 0.9524895104243762),
    ),
    BodyDefinition(
        id='enceladus', name='Enceladus', category=BodyCategory.MOON, radius_km=252.1,
        color=(216, 240, 255), parent_id='saturn', render_radius=0.5,
        orbit=OrbitElements(0.001598086, 0.00782397030001267, 28.051902047724234, 169.5063751089069,
                            135.52198957313303, 6.905304171394682, 1.3802453328200734),
    ),
    BodyDefinition(
        id='tethys', name='Tethys', category=BodyCategory.MOON, radius_km=531.1,
        color=(226, 231, 237), parent_id='saturn', render_radius=0.55,
        orbit=OrbitElements(0.001976283, 0.0022014883113555092, 27.22120628492098, 167.9993998500507,
                            150.96743452966223, 357.46756390123517, 1.8981465954591739),
    ),
    BodyDefinition(
        id='dione', name='Dione', category=BodyCategory.MOON, radius_km=561.4,
        color=(218, 213, 207), parent_id='saturn', render_radius=0.55,
        orbit=OrbitElements(0.002528997, 0.0038068490726938563, 28.041308782726794, 169.4701294979719,
                            155.42367458880864, 341.5604040819433, 2.747758095465961),
    ),
    BodyDefinition(
        id='rhea', name='Rhea', category=BodyCategory.MOON, radius_km=763.8,
        color=(217, 208, 200), parent_id='saturn', render_radius=0.6,
        orbit=OrbitElements(0.003520505, 0.0013615920996962673, 28.241507765885782, 168.98424305946335,
                            188.92715115459765, 183.7469268557453, 4.512981388162771),
    ),
    BodyDefinition(
        id='titan', name='Titan', category=BodyCategory.MOON, radius_km=2_574.73,
        color=(227, 176, 121), parent_id='saturn', render_radius=0.85,
        orbit=OrbitElements(0.008162535, 0.029040662450052376, 27.718340750856644, 169.23906927048893,
                            164.15095124297517, 163.69436481455034, 15.93285571022866),
    ),
    BodyDefinition(
        id='iapetus', name='Iapetus', category=BodyCategory.MOON, radius_km=734.5,
        color=(197, 179, 157), parent_id='saturn', render_radius=0.7,
        orbit=OrbitElements(0.023810451, 0.02813722580864883, 17.238667187294606, 139.68247227332336,
                            229.25704443877794, 208.46801128737624, 79.37933700695002),
    ),
    BodyDefinition(
        id='uranus', name='Uranus', category=BodyCategory.PLANET, radius_km=25_362.0,
        color=(138, 214, 255), parent_id='sun',
        rotation_period_hours=-17.24, axial_tilt_deg=97.77,
        orbit=OrbitElements(19.18916464, 0.04725744, 0.77263783, 74.01692503, 96.99835327, 142.28382821, 30685.4),
    ),
    BodyDefinition(
        id='miranda', name='Miranda', category=BodyCategory.MOON, radius_km=235.8,
        color=(206, 213, 228), parent_id='uranus', render_radius=0.45,
        orbit=OrbitElements(0.000864919, 0.0013, 4.2, 74.0, 68.0, 30.0, 1.413),
    ),
    BodyDefinition(
        id='ariel', name='Ariel', category=BodyCategory.MOON, radius_km=578.9,
        color=(191, 203, 225), parent_id='uranus', render_radius=0.55,
        orbit=OrbitElements(0.001276088, 0.0012, 0.3, 74.0, 175.0, 120.0, 2.520),
    ),
    BodyDefinition(
        id='umbriel', name='Umbriel', category=BodyCategory.MOON, radius_km=584.7,
        color=(155, 168, 193), parent_id='uranus', render_radius=0.55,
        orbit=OrbitElements(0.0017781, 0.0039, 0.4, 74.0, 80.0, 200.0, 4.144),
    ),
    BodyDefinition(
        id='titania', name='Titania', category=BodyCategory.MOON, radius_km=788.4,
        color=(199, 194, 193), parent_id='uranus', render_radius=0.65,
        orbit=OrbitElements(0.002913878, 0.0011, 0.1, 74.0, 220.0, 340.0, 8.706),
    ),
    BodyDefinition(
        id='oberon', name='Oberon', category=BodyCategory.MOON, radius_km=761.4,
        color=(167, 160, 161), parent_id='uranus', render_radius=0.6,
        orbit=OrbitElements(0.00390059, 0.0014, 0.1, 74.0, 160.0, 60.0, 13.463),
    ),
    BodyDefinition(
        id='neptune', name='Neptune', category=BodyCategory.PLANET, radius_km=24_622.0,
        color=(79, 108, 255), parent_id='sun',
        rotation_period_hours=16.11, axial_tilt_deg=28.32,
        orbit=OrbitElements(30.06992276, 0.00859048, 1.77004347, 131.78422574, 273.18777979, 259.91520804, 60190.0),
    ),
    BodyDefinition(
        id='triton', name='Triton', category=BodyCategory.MOON, radius_km=1_353.4,
        color=(208, 214, 229), parent_id='neptune', render_radius=0.75,
        orbit=OrbitElements(0.002371417, 0.000016, 156.8, 130.0, 20.0, 180.0, 5.876854),
    ),
    BodyDefinition(
        id='proteus', name='Proteus', category=BodyCategory.MOON, radius_km=210.0,
        color=(128, 138, 155), parent_id='neptune', render_radius=0.45,
        orbit=OrbitElements(0.000786107, 0.0005, 0.5, 130.0, 300.0, 45.0, 1.122),
    ),
    BodyDefinition(
        id='ceres', name='Ceres', category=BodyCategory.DWARF_PLANET, radius_km=473.0,
        color=(187, 188, 197), parent_id='sun',
        rotation_period_hours=9.074, axial_tilt_deg=4.0,
        orbit=OrbitElements(2.7675, 0.0758, 10.593, 80.305, 73.597, 95.989, 1680.0),
    ),
)


def get_body_definitions() -> List[BodyDefinition]:
    """Returns the built-in catalogue in parent-before-child order."""
    return list(BODY_DEFINITIONS)


def definitions_by_id(definitions: Sequence[BodyDefinition]) -> Dict[str, BodyDefinition]:
    return {d.id: d for d in definitions}


def order_parent_first(definitions: Sequence[BodyDefinition]) -> List[BodyDefinition]:
    """Orders definitions so every parent precedes its children.

    The relative order of bodies at the same depth is preserved.

    Raises:
        ConfigurationError: On unknown parents, cycles, or trees deeper than
            star -> planet -> moon.
    """
    lookup = definitions_by_id(definitions)
    depths: Dict[str, int] = {}

    for definition in definitions:
        depth = 0
        seen = {definition.id}
        current = definition
        while current.parent_id is not None:
            parent = lookup.get(current.parent_id)
            if parent is None:
                raise ConfigurationError(
                    f"Parent '{current.parent_id}' of body '{current.id}' not found in catalogue."
                )
            if parent.id in seen:
                raise ConfigurationError(f"Parent cycle detected at body '{definition.id}'.")
            seen.add(parent.id)
            depth += 1
            current = parent
        if depth > MAX_TREE_DEPTH:
            raise ConfigurationError(
                f"Body '{definition.id}' is nested {depth} levels deep; at most {MAX_TREE_DEPTH} are supported."
            )
        depths[definition.id] = depth

    return sorted(definitions, key=lambda d: depths[d.id])


def validate_catalogue(definitions: Sequence[BodyDefinition]) -> None:
    """Checks the catalogue's structure.

    Structural problems raise `ConfigurationError`. Orbital numbers are not
    rejected: an eccentricity outside [0, 1) is logged as a warning and left to
    produce whatever the solver makes of it.
    """
    ids = [d.id for d in definitions]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate body ids in catalogue: {duplicates}")

    for definition in definitions:
        if definition.parent_id == definition.id:
            raise ConfigurationError(f"Celestial body '{definition.id}' cannot orbit itself.")
        if definition.category is BodyCategory.STAR:
            if definition.parent_id is not None or definition.orbit is not None:
                raise ConfigurationError(f"Star '{definition.id}' cannot have a parent or an orbit.")
        elif definition.parent_id is None:
            raise ConfigurationError(f"Celestial body '{definition.id}' (not a star) must have a parent.")
        if definition.orbit is not None and not (0.0 <= definition.orbit.eccentricity < 1.0):
            logging.warning(
                f"Eccentricity of '{definition.id}' ({definition.orbit.eccentricity}) is outside [0, 1); "
                "its position is undefined."
            )

    order_parent_first(definitions)
