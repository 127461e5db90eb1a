# config.py
import math
import logging
from datetime import datetime, timezone

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(module)s - %(message)s')

# Fundamental Physical Constants (used across different config sections)
AU_KM = 149597870.7  # Astronomical Unit in kilometers
SECONDS_PER_HOUR = 3600.0
SECONDS_PER_DAY = 86400.0
SIDEREAL_YEAR_DAYS = 365.256363004  # Kepler's third law factor for a solar-mass primary
TWO_PI = 2.0 * math.pi

# Scene Scale Constants (also fundamental for conversions)
DISTANCE_SCALE = 8.0  # Scene units per AU


class ConfigurationError(Exception):
    """Custom exception for simulation configuration errors.

    Raised by `SimulationConfig.validate()` when settings are invalid or
    inconsistent, and by `catalogue.validate_catalogue()` when the body
    catalogue is structurally broken (unknown parents, cycles, duplicate ids).

    Attributes:
        message (str): A human-readable explanation of the configuration error.
                       This is the first argument passed to the exception constructor.
    """
    pass


class SimulationConfig:
    """Centralized, hierarchical configuration for the orrery engine.

    Parameters are grouped into nested static classes (`World`, `OrbitSolver`,
    `VisualScale`, `Alignment`, `Rotation`, `Time`, `Monitoring`, `Driver`,
    `Debug`).
    An instance named `config` is created at the end of this module, making it
    available via `from config import config`.

    The constructor calls `validate()`, which raises `ConfigurationError` on
    inconsistent values so the engine never starts with a nonsensical setup.

    Example Usage:
        >>> from config import config
        >>> config.World.DISTANCE_SCALE
        8.0
        >>> config.VisualScale.MOON_CLEARANCE
        0.12
    """

    # --- World Configuration ---
    class World:
        """Configuration for the shared world frame.

        World axes: the right-handed ecliptic frame (x, y, z) is remapped to
        (x, z, -y), so the ecliptic plane is the world XZ plane and ecliptic
        north points along world +Y. Every position producer uses this mapping.

        Attributes:
            KM_IN_AU (float): Kilometers per astronomical unit.
            DISTANCE_SCALE (float): Scene units per AU.
            EPOCH (datetime): Reference epoch (J2000.0) for mean anomalies, UTC.
        """
        KM_IN_AU = AU_KM
        DISTANCE_SCALE = DISTANCE_SCALE
        EPOCH = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    # --- Orbit Solver Configuration ---
    class OrbitSolver:
        """Configuration for Kepler's equation and orbit path sampling.

        Attributes:
            KEPLER_ITERATIONS (int): Fixed Newton-Raphson iteration count.
            ORBIT_PATH_SEGMENTS (int): Number of segments used to sample an orbit
                                       path (segments + 1 points, closed loop).
            SIDEREAL_YEAR_DAYS (float): Period in days of a 1 AU orbit around a
                                        solar-mass primary.
        """
        KEPLER_ITERATIONS = 6
        ORBIT_PATH_SEGMENTS = 512
        SIDEREAL_YEAR_DAYS = SIDEREAL_YEAR_DAYS

    # --- Visual Scale Configuration ---
    class VisualScale:
        """Configuration for the visual scale planner.

        Attributes:
            SIZE_MULTIPLIER (float): Linear exaggeration applied to physical radii.
            MIN_BODY_RADIUS (float): Global display-radius floor (scene units).
            MOON_CLEARANCE (float): Gap kept between a moon's surface and its parent's.
            MIN_MOON_ORBIT_SCALE (float): Lower clamp for moon orbit-scale factors.
            MAX_MOON_ORBIT_SCALE (float): Upper clamp for moon orbit-scale factors.
            MOON_SCALING_POLICIES (Dict[str, str]): Parent id -> moon scaling policy
                                                    ('rocky' or 'giant'). Parents not
                                                    listed use the default policy.
            ROCKY_MOON_SCALE (float): Radius factor for moons of rocky planets.
            GIANT_MOON_SCALE (float): Radius factor for moons of giant planets.
            GIANT_MOON_MIN_RADIUS (float): Radius floor for moons of giant planets.
            OUTER_PLANETS (FrozenSet[str]): Parents whose moons get normalized
                                            orbit distances.
            SURFACE_MULTIPLIERS (Dict[str, Dict[str, int]]): Parent id -> {moon id:
                                            multiplier}. Listed moons sit at
                                            parent_radius * (1 + multiplier).
            OUTER_SURFACE_FACTOR_MIN (float): Surface-factor range start for
                                              ringless outer planets.
            OUTER_SURFACE_FACTOR_MAX (float): Surface-factor range end.
            RING_BUFFER_FACTOR (float): Gap outside the ring, in parent radii.
            RING_MAX_DISTANCE_FACTOR (float): Outermost moon distance for ringed
                                              parents, in parent radii.
            DEFAULT_RING_INNER_SCALE (float): Ring inner radius when unspecified.
            DEFAULT_RING_OUTER_SCALE (float): Ring outer radius when unspecified.
            DEFAULT_RING_OPACITY (float): Ring opacity when unspecified.
            DEFAULT_RING_COLOR (Tuple[int, int, int]): Ring color when unspecified.
        """
        SIZE_MULTIPLIER = 2200.0
        MIN_BODY_RADIUS = 0.35
        MOON_CLEARANCE = 0.12
        MIN_MOON_ORBIT_SCALE = 12.0
        MAX_MOON_ORBIT_SCALE = 900.0

        MOON_SCALING_POLICIES = {
            'mars': 'rocky',
            'jupiter': 'giant',
        }
        ROCKY_MOON_SCALE = 0.25
        GIANT_MOON_SCALE = 2.0
        GIANT_MOON_MIN_RADIUS = 0.32

        OUTER_PLANETS = frozenset({'jupiter', 'saturn', 'uranus', 'neptune'})
        SURFACE_MULTIPLIERS = {
            'jupiter': {
                'io': 1,
                'europa': 2,
                'ganymede': 3,
                'callisto': 5,
            },
        }
        OUTER_SURFACE_FACTOR_MIN = 1.0
        OUTER_SURFACE_FACTOR_MAX = 5.0
        RING_BUFFER_FACTOR = 0.2
        RING_MAX_DISTANCE_FACTOR = 6.0

        DEFAULT_RING_INNER_SCALE = 1.35
        DEFAULT_RING_OUTER_SCALE = 2.25
        DEFAULT_RING_OPACITY = 0.3
        DEFAULT_RING_COLOR = (134, 120, 89)

    # --- Orbit Plane Alignment Configuration ---
    class Alignment:
        """Configuration for cosmetic orbit-plane alignment.

        Attributes:
            ALIGN_MOONS_TO_RING_PLANE (bool): If True, moons of ringed parents are
                                              rotated into the ring plane.
            PARALLEL_DOT_THRESHOLD (float): |dot| above which two normals count as
                                            parallel (or anti-parallel).
            AXIS_EPSILON (float): Squared-length threshold for a degenerate
                                  rotation axis.
        """
        ALIGN_MOONS_TO_RING_PLANE = True
        PARALLEL_DOT_THRESHOLD = 0.9999
        AXIS_EPSILON = 1e-6

    # --- Self-Rotation Configuration ---
    class Rotation:
        """Configuration for body self-rotation.

        Attributes:
            CLOCK_ALIGNED_BODY (str): Id of the body whose initial rotation follows the
                                      UTC time of day of the start instant.
            CLOCK_ALIGNED_PERIOD_HOURS (float): Sidereal day used for that alignment.
        """
        CLOCK_ALIGNED_BODY = 'earth'
        CLOCK_ALIGNED_PERIOD_HOURS = 23.934

    # --- Time Configuration ---
    class Time:
        """Configuration related to simulated time progression.

        Attributes:
            SPEED_STEPS (List[float]): Selectable simulated-seconds-per-wall-second
                                       multipliers, slowest first.
            DEFAULT_SPEED_STEP (int): Index into `SPEED_STEPS` used at start.
            TIME_ADJUSTMENT_KEYS (Dict[str, float]): Keyboard shortcut -> signed jump
                                                     in simulated seconds.
            SPEED_DOWN_KEY (str): Shortcut selecting the next slower speed step.
            SPEED_UP_KEY (str): Shortcut selecting the next faster speed step.
        """
        SPEED_STEPS = [
            1, 3, 10, 30, 100, 300,
            1_000, 3_000, 10_000, 30_000, 100_000, 300_000,
            1_000_000, 3_000_000, 10_000_000, 30_000_000, 100_000_000, 300_000_000,
            1_000_000_000, 3_000_000_000, 10_000_000_000, 30_000_000_000, 100_000_000_000,
        ]
        DEFAULT_SPEED_STEP = 0

        HOUR = 3_600
        DAY = 86_400
        WEEK = 604_800
        MONTH = 2_592_000  # 30 days
        YEAR = 31_557_600  # 365.25 days
        TIME_ADJUSTMENT_KEYS = {
            'H': HOUR, 'h': -HOUR,
            'D': DAY, 'P': DAY, 'd': -DAY, 'p': -DAY,
            'W': WEEK, 'V': WEEK, 'w': -WEEK, 'v': -WEEK,
            'M': MONTH, 'K': MONTH, 'm': -MONTH, 'k': -MONTH,
            'Y': YEAR, 'U': YEAR, 'y': -YEAR, 'u': -YEAR,
        }
        SPEED_DOWN_KEY = '['
        SPEED_UP_KEY = ']'

    # --- Monitoring Configuration ---
    class Monitoring:
        """Configuration for the headless driver's resource monitoring.

        Attributes:
            MEMORY_USAGE_WARN_MB (int): Resident memory threshold in MB; exceeding it
                                        logs a warning.
            MEMORY_CHECK_INTERVAL_FRAMES (int): Frames between memory checks.
        """
        MEMORY_USAGE_WARN_MB = 512
        MEMORY_CHECK_INTERVAL_FRAMES = 500

    # --- Headless Driver Configuration ---
    class Driver:
        """Configuration for the `main.py` headless frame loop.

        Attributes:
            FPS (float): Frames per wall-clock second; each frame advances 1/FPS s.
            DEFAULT_FRAMES (int): Frames run when `--frames` is not given.
            PROFILE_OUTPUT (str): File receiving cProfile statistics with `--profile`.
        """
        FPS = 60.0
        DEFAULT_FRAMES = 600
        PROFILE_OUTPUT = "orrery_profile.prof"

    # --- Debug Configuration ---
    class Debug:
        """Configuration for debugging features and logging verbosity.

        Attributes:
            ORBITAL_MECHANICS (bool): Verbose logging from the orbit solver.
            KEPLER_SOLVER (bool): Log Kepler residuals after the fixed iterations.
            SCALE_PLANNER (bool): Log every planned radius and orbit scale.
            ALIGNMENT (bool): Log computed plane corrections.
            CONFIG_VALIDATION (bool): Log a line when validation succeeds.
            LOG_ORBIT_INTERVAL_FRAMES (int): Frames between position logs in `main.py`.
            LOG_ORBIT_BODY_IDS (List[str]): Bodies whose positions `main.py` logs.
        """
        ORBITAL_MECHANICS = False
        KEPLER_SOLVER = False
        SCALE_PLANNER = False
        ALIGNMENT = False
        CONFIG_VALIDATION = True
        LOG_ORBIT_INTERVAL_FRAMES = 100
        LOG_ORBIT_BODY_IDS = ["earth", "moon", "saturn"]

    def __init__(self):
        """Initializes the `SimulationConfig` instance and validates it.

        Raises:
            ConfigurationError: If `self.validate()` detects any issues with the
                                configuration values.
        """
        self.validate()

    def validate(self):
        """Performs validation of all configuration settings.

        Checks:
        -   **World**: positive distance scale and AU length, timezone-aware epoch.
        -   **OrbitSolver**: at least one Kepler iteration, at least three path segments.
        -   **VisualScale**: positive multipliers and floors, an ordered moon orbit-scale
            clamp range, known policy names, an ordered surface-factor range, ring
            defaults with inner < outer.
        -   **Alignment**: threshold inside (0, 1].
        -   **Rotation**: positive clock-aligned period.
        -   **Time**: non-empty, strictly increasing, positive speed table with a
            valid default index.
        -   **Monitoring / Debug**: positive intervals.

        Raises:
            ConfigurationError: If any configuration setting is found to be invalid.
        """
        # World validation
        if self.World.DISTANCE_SCALE <= 0:
            raise ConfigurationError("World.DISTANCE_SCALE must be positive.")
        if self.World.KM_IN_AU <= 0:
            raise ConfigurationError("World.KM_IN_AU must be positive.")
        if self.World.EPOCH.tzinfo is None:
            raise ConfigurationError("World.EPOCH must be timezone-aware (UTC).")

        # Orbit solver validation
        if self.OrbitSolver.KEPLER_ITERATIONS < 1:
            raise ConfigurationError("OrbitSolver.KEPLER_ITERATIONS must be at least 1.")
        if self.OrbitSolver.ORBIT_PATH_SEGMENTS < 3:
            raise ConfigurationError("OrbitSolver.ORBIT_PATH_SEGMENTS must be at least 3.")
        if self.OrbitSolver.SIDEREAL_YEAR_DAYS <= 0:
            raise ConfigurationError("OrbitSolver.SIDEREAL_YEAR_DAYS must be positive.")

        # Visual scale validation
        vs = self.VisualScale
        for name in ("SIZE_MULTIPLIER", "MIN_BODY_RADIUS", "ROCKY_MOON_SCALE",
                     "GIANT_MOON_SCALE", "GIANT_MOON_MIN_RADIUS", "RING_MAX_DISTANCE_FACTOR"):
            if getattr(vs, name) <= 0:
                raise ConfigurationError(f"VisualScale.{name} must be positive.")
        if vs.MOON_CLEARANCE < 0 or vs.RING_BUFFER_FACTOR < 0:
            raise ConfigurationError("VisualScale.MOON_CLEARANCE and RING_BUFFER_FACTOR cannot be negative.")
        if not (0 < vs.MIN_MOON_ORBIT_SCALE <= vs.MAX_MOON_ORBIT_SCALE):
            raise ConfigurationError(
                f"Moon orbit-scale clamp (MIN: {vs.MIN_MOON_ORBIT_SCALE}, MAX: {vs.MAX_MOON_ORBIT_SCALE}) "
                "must be positive and ordered."
            )
        unknown_policies = set(vs.MOON_SCALING_POLICIES.values()) - {'rocky', 'giant', 'default'}
        if unknown_policies:
            raise ConfigurationError(f"VisualScale.MOON_SCALING_POLICIES has unknown policies: {sorted(unknown_policies)}")
        if not (0 <= vs.OUTER_SURFACE_FACTOR_MIN <= vs.OUTER_SURFACE_FACTOR_MAX):
            raise ConfigurationError("Outer surface factor range must be non-negative and ordered.")
        for parent_id, multipliers in vs.SURFACE_MULTIPLIERS.items():
            if any(m < 0 for m in multipliers.values()):
                raise ConfigurationError(f"Surface multipliers for '{parent_id}' cannot be negative.")
        if not (0 < vs.DEFAULT_RING_INNER_SCALE < vs.DEFAULT_RING_OUTER_SCALE):
            raise ConfigurationError("Default ring scales must be positive with inner < outer.")
        if not (0.0 <= vs.DEFAULT_RING_OPACITY <= 1.0):
            raise ConfigurationError("VisualScale.DEFAULT_RING_OPACITY must be between 0 and 1.")

        # Alignment validation
        if not (0.0 < self.Alignment.PARALLEL_DOT_THRESHOLD <= 1.0):
            raise ConfigurationError("Alignment.PARALLEL_DOT_THRESHOLD must be in (0, 1].")

        # Rotation validation
        if self.Rotation.CLOCK_ALIGNED_PERIOD_HOURS <= 0:
            raise ConfigurationError("Rotation.CLOCK_ALIGNED_PERIOD_HOURS must be positive.")

        # Time validation
        steps = self.Time.SPEED_STEPS
        if not steps:
            raise ConfigurationError("Time.SPEED_STEPS cannot be empty.")
        if any(s <= 0 for s in steps) or any(a >= b for a, b in zip(steps, steps[1:])):
            raise ConfigurationError("Time.SPEED_STEPS must be positive and strictly increasing.")
        if not (0 <= self.Time.DEFAULT_SPEED_STEP < len(steps)):
            raise ConfigurationError(
                f"Time.DEFAULT_SPEED_STEP ({self.Time.DEFAULT_SPEED_STEP}) must index SPEED_STEPS (len {len(steps)})."
            )
        if {self.Time.SPEED_DOWN_KEY, self.Time.SPEED_UP_KEY} & set(self.Time.TIME_ADJUSTMENT_KEYS):
            raise ConfigurationError("Speed keys cannot also be time adjustment keys.")

        # Driver validation
        if self.Driver.FPS <= 0 or self.Driver.DEFAULT_FRAMES < 0:
            raise ConfigurationError("Driver.FPS must be positive and Driver.DEFAULT_FRAMES non-negative.")

        # Monitoring / Debug
        if self.Monitoring.MEMORY_CHECK_INTERVAL_FRAMES <= 0 or self.Debug.LOG_ORBIT_INTERVAL_FRAMES <= 0:
            raise ConfigurationError("Monitoring and logging intervals must be positive.")

        if self.Debug.CONFIG_VALIDATION:
            logging.info("Configuration validated successfully.")


# --- Instantiate the configuration ---
# This makes the config object available for import and runs validation.
# e.g., from config import config
try:
    config = SimulationConfig()
except ConfigurationError as e:
    logging.error(f"FATAL CONFIGURATION ERROR: {e}", exc_info=True)
    raise
