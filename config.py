# config.py

from dataclasses import dataclass

import numpy as np

# Search area (x, y, z)
SEARCH_AREA_MIN = np.array([-10.0, -10.0, -5.0])
SEARCH_AREA_MAX = np.array([10.0, 10.0, 5.0])

# Tree growth
MAX_BRANCH_LENGTH = 1.0        # maximum distance between a node and a new child
MAX_ITERATIONS = 5000          # successful additions before the search stops
MAX_NODES_PER_UPDATE = 20      # additions attempted per driver tick

# Strategy tunables used by the driver
TARGET_BIAS = 10               # every Nth sample is the target
RADIUS_RRT_STAR = 1.0          # neighbour radius for parent choice and rewiring
IN_PLANE_EXPLORATION_FACTOR = 15.0
MAX_ALLOWED_FAILURES = 5       # failed extensions before a node is removed

# Per-strategy defaults when built directly through create_strategy
DEFAULT_TARGET_BIAS = 20
DEFAULT_RADIUS = 1.0
DEFAULT_PLANAR_FACTOR = 10.0
DEFAULT_MAX_ALLOWED_FAILURES = 3

# Geometry
UP = np.array([0.0, 1.0, 0.0])
PLANE_FALLBACK_NORMAL = np.array([0.0, 0.0, 1.0])
POSITION_EPSILON = 1e-5        # positions closer than this are the same point
PRUNE_TOLERANCE = 1e-9         # relative slack on the best cost when pruning
MAX_ELLIPSE_SAMPLES = 10000    # rejection sampling cap per step

# Target used when a map file does not define one
DEFAULT_TARGET_CENTER = np.array([8.0, 8.0, 0.0])
DEFAULT_TARGET_RADIUS = 0.5


@dataclass(frozen=True)
class RRTConfig:
    """Immutable per-run bundle handed to every search strategy."""
    tree: "Tree"
    search_area_min: np.ndarray
    search_area_max: np.ndarray
    environment: "CollisionOracle"
    target: "Sphere"
    max_branch_length: float = MAX_BRANCH_LENGTH
    only_search_2d: bool = False

    def __post_init__(self):
        lo = np.asarray(self.search_area_min, dtype=float)
        hi = np.asarray(self.search_area_max, dtype=float)
        if lo.shape != (3,) or hi.shape != (3,):
            raise ValueError("search area corners must be 3D points")
        if np.any(lo > hi):
            raise ValueError(f"search area minimum {lo} exceeds maximum {hi}")
        if not self.max_branch_length > 0:
            raise ValueError(f"max_branch_length must be positive, got {self.max_branch_length}")
        # frozen dataclass, so bypass __setattr__ to store normalised arrays
        object.__setattr__(self, "search_area_min", lo)
        object.__setattr__(self, "search_area_max", hi)

    @property
    def target_position(self):
        return self.target.center
