# sampler.py

import numpy as np

from config import UP, PLANE_FALLBACK_NORMAL, MAX_ELLIPSE_SAMPLES


def sample_uniform(bounds_min, bounds_max, rng, fixed_z=None):
    """Uniform point in the search box; fixed_z pins the height for 2D searches."""
    x = rng.uniform(bounds_min, bounds_max)
    if fixed_z is not None:
        x[2] = fixed_z
    return x


def sample_inside_unit_sphere(rng):
    while True:
        p = rng.uniform(-1.0, 1.0, size=3)
        if p @ p <= 1.0:
            return p


def random_point_on_plane(anchor, normal, radius, rng):
    """
    Random point on the plane through anchor with the given normal.
    A point of the unit ball crossed with the normal lies in the plane;
    draws whose cross product vanishes are repeated.
    """
    while True:
        p = np.cross(sample_inside_unit_sphere(rng), normal)
        if np.any(p != 0.0):
            break
    return anchor + p * radius


def _normalized(v):
    return v / np.linalg.norm(v)


def vertical_plane_normal(start, target):
    """Normal of the upright plane containing start and target."""
    normal = np.cross(np.asarray(target, dtype=float) - start, UP)
    if not np.any(normal):
        # start->target is parallel to UP
        return PLANE_FALLBACK_NORMAL.copy()
    return _normalized(normal)


def horizontal_plane_normal(start, target):
    """Normal of the plane containing start and target, perpendicular to the vertical one."""
    normal = np.cross(np.asarray(target, dtype=float) - start, vertical_plane_normal(start, target))
    if not np.any(normal):
        # start and target coincide
        return UP.copy()
    return _normalized(normal)


def is_point_in_ellipse(point, root, target, best_cost):
    """True if point lies in the prolate spheroid with foci root and target."""
    return (np.linalg.norm(point - root) + np.linalg.norm(point - target)) <= best_cost


def sample_in_ellipse(bounds_min, bounds_max, root, target, best_cost, rng, fixed_z=None,
                      max_samples=MAX_ELLIPSE_SAMPLES):
    """
    Rejection sampling of the informed region: uniform draws until one can
    still improve on best_cost. Returns None when max_samples draws all miss.
    """
    for _ in range(max_samples):
        x = sample_uniform(bounds_min, bounds_max, rng, fixed_z)
        if is_point_in_ellipse(x, root, target, best_cost):
            return x
    return None
