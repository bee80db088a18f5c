# config.py
import logging

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(module)s - %(message)s')


class ConfigurationError(Exception):
    """Custom exception for simulation configuration errors.

    Raised by `SimulationConfig.validate()` when settings are invalid or
    inconsistent, which would otherwise produce orbits the solver cannot
    represent or a spatial index too small to hold the belt.

    Attributes:
        message (str): A human-readable explanation of the configuration error.
                       This is the first argument passed to the exception constructor.
    """
    pass


class SimulationConfig:
    """Centralized, hierarchical configuration for the asteroid belt simulation.

    Parameters are grouped into nested static classes (e.g., `SimulationConfig.Physics`,
    `SimulationConfig.Kepler`, `SimulationConfig.Belt`). An instance named `config`
    is created at the end of this module and is available via `from config import config`.

    The values here are defaults. Orbit-solver functions take the tunables they
    need (`mu`, `max_iterations`, `tolerance`, `num_points`) as keyword arguments
    and only fall back to these values when the caller does not pass them.

    Example Usage:
        >>> from config import config
        >>> print(f"Gravitational parameter: {config.Physics.MU}")
        >>> print(f"Belt: {config.Belt.INNER_RADIUS_AU}-{config.Belt.OUTER_RADIUS_AU} AU")
    """

    # --- Physics Configuration ---
    class Physics:
        """Configuration for the central mass.

        Attributes:
            MU (float): Gravitational parameter of the central mass, in simulation
                        units (length^3 / time^2). Scaled so orbital periods are
                        reasonable for viewing rather than physically accurate.
        """
        MU = 1000.0

    # --- Kepler Solver Configuration ---
    class Kepler:
        """Configuration for the Newton-Raphson solver of Kepler's equation.

        Attributes:
            MAX_ITERATIONS (int): Iteration cap. The solver returns its best estimate
                                  when the cap is reached instead of failing.
            TOLERANCE (float): Convergence threshold on the Newton step |dE|.
            HIGH_ECCENTRICITY_THRESHOLD (float): Above this eccentricity the initial
                                                 guess is pi instead of M.
        """
        MAX_ITERATIONS = 50
        TOLERANCE = 1e-8
        HIGH_ECCENTRICITY_THRESHOLD = 0.8

    # --- Orbit Geometry Configuration ---
    class Orbit:
        """Configuration for orbit path sampling and element recovery.

        Attributes:
            PATH_POINTS (int): Number of segments in a precomputed orbit polyline.
                               The path holds PATH_POINTS + 1 samples.
            CIRCULAR_ECCENTRICITY_EPSILON (float): Below this eccentricity the
                                                   periapsis direction is treated as undefined.
        """
        PATH_POINTS = 100
        CIRCULAR_ECCENTRICITY_EPSILON = 1e-10

    # --- Display Units ---
    class Display:
        """Conversion between simulation length units and display units.

        Attributes:
            AU_SCALE (float): Simulation length units per astronomical unit.
        """
        AU_SCALE = 150.0

    # --- Asteroid Belt Configuration ---
    class Belt:
        """Configuration for the randomly generated asteroid population.

        Attributes:
            INNER_RADIUS_AU (float): Lower bound of sampled semi-major axes, in AU.
            OUTER_RADIUS_AU (float): Upper bound of sampled semi-major axes, in AU.
            ASTEROID_COUNT (int): Number of asteroids generated for a new belt.
            MIN_ASTEROID_RADIUS (float): Smallest visual/hit radius, in sim units.
            MAX_ASTEROID_RADIUS (float): Largest visual/hit radius, in sim units.
            RADIUS_POWER (float): Power-law exponent for radius sampling. Higher
                                  values produce more small asteroids.
            MIN_ECCENTRICITY (float): Lower bound of sampled eccentricities.
            MAX_ECCENTRICITY (float): Upper bound of sampled eccentricities.
            DEFAULT_COLOR (Tuple[int, int, int]): RGB color assigned when none is given.
            INDEX_BOUNDS_FACTOR (float): Minimum half-width of the spatial index bounds as a
                                         multiple of the outer belt radius. Also the
                                         growth factor applied to the farthest body
                                         once it leaves that minimum.
        """
        INNER_RADIUS_AU = 2.0
        OUTER_RADIUS_AU = 3.5
        ASTEROID_COUNT = 1000
        MIN_ASTEROID_RADIUS = 2.0
        MAX_ASTEROID_RADIUS = 20.0
        RADIUS_POWER = 3.0
        MIN_ECCENTRICITY = 0.0
        MAX_ECCENTRICITY = 0.3
        DEFAULT_COLOR = (136, 136, 153)
        INDEX_BOUNDS_FACTOR = 2.0

    # --- Selection Configuration ---
    class Selection:
        """Configuration for point picking.

        Attributes:
            CLICK_TOLERANCE (float): Extra hit radius added around each asteroid.
                                     Callers usually divide it by the camera zoom.
            QUERY_MARGIN (float): Margin added to the tolerance for the coarse
                                  spatial index query, so large asteroids whose
                                  centers lie further away are still candidates.
        """
        CLICK_TOLERANCE = 8.0
        QUERY_MARGIN = 50.0

    # --- Spatial Partitioning Configuration ---
    class SpatialPartitioning:
        """Configuration for the quadtree used for point picking.

        Attributes:
            QUADTREE_CAPACITY (int): Maximum number of objects a leaf holds
                                     before it subdivides.
            QUADTREE_MAX_DEPTH (int): Depth at which leaves stop subdividing and
                                      grow past capacity instead, so coincident
                                      points cannot cause unbounded recursion.
        """
        QUADTREE_CAPACITY = 8
        QUADTREE_MAX_DEPTH = 16

    # --- Time Configuration ---
    class Time:
        """Configuration related to simulation time progression.

        Attributes:
            TIME_SCALE (float): Simulation time units per elapsed wall-clock millisecond.
            DEFAULT_FRAME_MS (float): Frame duration used by the headless driver.
        """
        TIME_SCALE = 0.001
        DEFAULT_FRAME_MS = 1000.0 / 60.0

    # --- Maneuver Configuration ---
    class Maneuver:
        """Configuration for delta-v planning.

        Attributes:
            MAX_DELTA_V (float): Upper bound of the burn magnitude, in slider units.
            DELTA_V_SCALE (float): Velocity units per slider unit.
        """
        MAX_DELTA_V = 5.0
        DELTA_V_SCALE = 0.1

    # --- Monitoring Configuration ---
    class Monitoring:
        """Configuration for resource monitoring in the headless driver.

        Attributes:
            MEMORY_USAGE_WARN_MB (int): Memory usage threshold in Megabytes. If exceeded,
                                        a warning is logged.
            MEMORY_CHECK_INTERVAL_STEPS (int): Frequency (in simulation steps) at which
                                               memory usage is checked.
            SUMMARY_INTERVAL_STEPS (int): Frequency (in simulation steps) at which
                                          a progress line is logged.
        """
        MEMORY_USAGE_WARN_MB = 1024
        MEMORY_CHECK_INTERVAL_STEPS = 500
        SUMMARY_INTERVAL_STEPS = 100

    # --- Debug Configuration ---
    class Debug:
        """Configuration for debugging features and logging verbosity.

        Attributes:
            ORBITAL_MECHANICS (bool): Toggle for verbose logging from element/state conversions.
            KEPLER_SOLVER (bool): Toggle for warnings when the Kepler solver hits its iteration cap.
            SPATIAL_INDEX (bool): Toggle for logging details of index rebuilds.
        """
        ORBITAL_MECHANICS = False
        KEPLER_SOLVER = False
        SPATIAL_INDEX = False

    def __init__(self):
        """Initializes the `SimulationConfig` instance and validates it.

        Raises:
            ConfigurationError: If any configuration setting is invalid.
        """
        self.validate()

    @property
    def belt_inner_radius_sim(self) -> float:
        """Inner belt radius in simulation units."""
        return self.Belt.INNER_RADIUS_AU * self.Display.AU_SCALE

    @property
    def belt_outer_radius_sim(self) -> float:
        """Outer belt radius in simulation units."""
        return self.Belt.OUTER_RADIUS_AU * self.Display.AU_SCALE

    @property
    def index_half_extent_sim(self) -> float:
        """Half-width of the square region covered by the spatial index."""
        return self.belt_outer_radius_sim * self.Belt.INDEX_BOUNDS_FACTOR

    def validate(self):
        """Validates the configuration for consistency and correctness.

        Checks every section for positive scales, ordered ranges and values the
        orbit solver can represent:

        -   **Physics**: `MU` must be positive.
        -   **Kepler**: positive iteration cap and tolerance; threshold inside [0, 1).
        -   **Orbit**: at least one path segment; non-negative circular epsilon.
        -   **Display**: positive `AU_SCALE`.
        -   **Belt**: ordered positive radii, ordered eccentricity range inside [0, 1),
            non-negative count, ordered positive asteroid radii, and an index bounds
            factor of at least 1. With `e < 1` the apoapsis `a(1+e)` is below
            `2 * OUTER`, so a factor of 2 contains every generated orbit. Bodies
            pushed further out by burns grow the bounds at rebuild time.
        -   **Selection**, **SpatialPartitioning**, **Time**, **Maneuver**:
            non-negative tolerances and positive sizes.

        Raises:
            ConfigurationError: If any configuration setting is found to be invalid.
        """
        if self.Physics.MU <= 0:
            raise ConfigurationError("Physics.MU must be positive.")

        if self.Kepler.MAX_ITERATIONS <= 0:
            raise ConfigurationError("Kepler.MAX_ITERATIONS must be positive.")
        if self.Kepler.TOLERANCE <= 0:
            raise ConfigurationError("Kepler.TOLERANCE must be positive.")
        if not (0.0 <= self.Kepler.HIGH_ECCENTRICITY_THRESHOLD < 1.0):
            raise ConfigurationError(
                f"Kepler.HIGH_ECCENTRICITY_THRESHOLD ({self.Kepler.HIGH_ECCENTRICITY_THRESHOLD}) must be in [0, 1)."
            )

        if self.Orbit.PATH_POINTS <= 0:
            raise ConfigurationError("Orbit.PATH_POINTS must be positive.")
        if self.Orbit.CIRCULAR_ECCENTRICITY_EPSILON < 0:
            raise ConfigurationError("Orbit.CIRCULAR_ECCENTRICITY_EPSILON cannot be negative.")

        if self.Display.AU_SCALE <= 0:
            raise ConfigurationError("Display.AU_SCALE must be positive.")

        if not (0 < self.Belt.INNER_RADIUS_AU < self.Belt.OUTER_RADIUS_AU):
            raise ConfigurationError(
                f"Belt radii (Inner: {self.Belt.INNER_RADIUS_AU}, Outer: {self.Belt.OUTER_RADIUS_AU}) "
                f"must be positive and ordered correctly."
            )
        if self.Belt.ASTEROID_COUNT < 0:
            raise ConfigurationError("Belt.ASTEROID_COUNT cannot be negative.")
        if not (0 < self.Belt.MIN_ASTEROID_RADIUS <= self.Belt.MAX_ASTEROID_RADIUS):
            raise ConfigurationError(
                f"Asteroid radii (Min: {self.Belt.MIN_ASTEROID_RADIUS}, Max: {self.Belt.MAX_ASTEROID_RADIUS}) "
                f"must be positive and ordered correctly."
            )
        if self.Belt.RADIUS_POWER <= 0:
            raise ConfigurationError("Belt.RADIUS_POWER must be positive.")
        if not (0.0 <= self.Belt.MIN_ECCENTRICITY <= self.Belt.MAX_ECCENTRICITY < 1.0):
            raise ConfigurationError(
                f"Eccentricity range (Min: {self.Belt.MIN_ECCENTRICITY}, Max: {self.Belt.MAX_ECCENTRICITY}) "
                f"must satisfy 0 <= min <= max < 1."
            )
        if self.Belt.INDEX_BOUNDS_FACTOR < 1.0:
            raise ConfigurationError("Belt.INDEX_BOUNDS_FACTOR must be at least 1.")

        if self.Selection.CLICK_TOLERANCE < 0 or self.Selection.QUERY_MARGIN < 0:
            raise ConfigurationError("Selection.CLICK_TOLERANCE and Selection.QUERY_MARGIN cannot be negative.")

        if self.SpatialPartitioning.QUADTREE_CAPACITY <= 0:
            raise ConfigurationError("SpatialPartitioning.QUADTREE_CAPACITY must be positive.")
        if self.SpatialPartitioning.QUADTREE_MAX_DEPTH <= 0:
            raise ConfigurationError("SpatialPartitioning.QUADTREE_MAX_DEPTH must be positive.")

        if self.Time.TIME_SCALE <= 0:
            raise ConfigurationError("Time.TIME_SCALE must be positive.")

        if self.Maneuver.MAX_DELTA_V <= 0:
            raise ConfigurationError("Maneuver.MAX_DELTA_V must be positive.")
        if self.Maneuver.DELTA_V_SCALE <= 0:
            raise ConfigurationError("Maneuver.DELTA_V_SCALE must be positive.")

        logging.info("Configuration validated successfully.")


# --- Instantiate the configuration ---
# This makes the config object available for import and runs validation.
# e.g., from config import config
try:
    config = SimulationConfig()
except ConfigurationError as e:
    logging.error(f"FATAL CONFIGURATION ERROR: {e}", exc_info=True)
    raise
