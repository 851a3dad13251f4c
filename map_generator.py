"""
Random obstacle map generator.
Places spheres and boxes inside the search area, keeping the start and
target clear, and saves the map as JSON for the demo and benchmark.
"""

import argparse

import numpy as np

from collision import Environment, Sphere, Box, save_environment
from config import SEARCH_AREA_MIN, SEARCH_AREA_MAX, DEFAULT_TARGET_CENTER, DEFAULT_TARGET_RADIUS

# Obstacle size ranges
SPHERE_RADIUS_RANGE = (0.5, 2.0)
BOX_HALF_EXTENT_RANGE = (0.3, 2.0)
CLEARANCE = 1.0  # free space kept around start and target


def _clear_of(obstacle, point, clearance):
    """True if point keeps at least clearance distance from the obstacle."""
    if isinstance(obstacle, Sphere):
        return np.linalg.norm(point - obstacle.center) > obstacle.radius + clearance
    closest = np.clip(point, obstacle.corner1, obstacle.corner2)
    return np.linalg.norm(point - closest) > clearance


def generate_random_map(start, target=None, n_spheres=8, n_boxes=4,
                        bounds_min=SEARCH_AREA_MIN, bounds_max=SEARCH_AREA_MAX,
                        seed=None, max_attempts=1000):
    """
    Build an Environment with randomly placed obstacles.

    Candidates overlapping the start or target clearance are discarded;
    fewer obstacles are returned if max_attempts runs out.
    """
    rng = np.random.default_rng(seed)
    start = np.asarray(start, dtype=float)
    if target is None:
        target = Sphere(DEFAULT_TARGET_CENTER, DEFAULT_TARGET_RADIUS)
    bounds_min = np.asarray(bounds_min, dtype=float)
    bounds_max = np.asarray(bounds_max, dtype=float)

    obstacles = []
    wanted = ['sphere'] * n_spheres + ['box'] * n_boxes
    attempts = 0
    while wanted and attempts < max_attempts:
        attempts += 1
        center = rng.uniform(bounds_min, bounds_max)
        if wanted[-1] == 'sphere':
            candidate = Sphere(center, rng.uniform(*SPHERE_RADIUS_RANGE))
        else:
            half = rng.uniform(*BOX_HALF_EXTENT_RANGE, size=3)
            candidate = Box(center - half, center + half)

        if (_clear_of(candidate, start, CLEARANCE)
                and _clear_of(candidate, target.center, target.radius + CLEARANCE)):
            obstacles.append(candidate)
            wanted.pop()

    if wanted:
        print(f"Placed {len(obstacles)} obstacles, {len(wanted)} did not fit")
    return Environment(obstacles, target)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a random 3D obstacle map")
    parser.add_argument("--spheres", type=int, default=8)
    parser.add_argument("--boxes", type=int, default=4)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--start", type=float, nargs=3, default=[-8.0, -8.0, 0.0])
    parser.add_argument("--output", default="map_obstacles.json")
    args = parser.parse_args(argv)

    env = generate_random_map(args.start, n_spheres=args.spheres, n_boxes=args.boxes, seed=args.seed)
    save_environment(env, args.output)
    print(f"Saved {len(env.obstacles)} obstacles to {args.output}")


if __name__ == "__main__":
    main()
