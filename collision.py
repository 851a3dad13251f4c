# collision.py

import json
from dataclasses import dataclass, field
from typing import List, Protocol

import numpy as np

from config import DEFAULT_TARGET_CENTER, DEFAULT_TARGET_RADIUS


class CollisionOracle(Protocol):
    """Segment queries the search strategies rely on."""

    def segment_blocked(self, start, direction, length) -> bool:
        ...

    def segment_hits_target(self, start, direction, length) -> bool:
        ...


def ray_sphere_distance(origin, unit_dir, center, radius, max_distance):
    """
    Distance along the ray to the first point of the sphere, or None.

    A ray starting inside the sphere hits it at distance 0.
    """
    oc = origin - center
    b = float(oc @ unit_dir)
    c = float(oc @ oc) - radius * radius
    if c <= 0.0:
        return 0.0
    discriminant = b * b - c
    if discriminant < 0.0:
        return None  # ray misses the sphere
    t = -b - np.sqrt(discriminant)
    if t < 0.0 or t > max_distance:
        return None
    return float(t)


def ray_box_distance(origin, unit_dir, box_min, box_max, max_distance):
    """Slab test against an axis-aligned box. Same contract as ray_sphere_distance."""
    t_near = -np.inf
    t_far = np.inf
    for axis in range(3):
        o = origin[axis]
        d = unit_dir[axis]
        if abs(d) < 1e-12:
            # parallel to this slab: must already be between its planes
            if o < box_min[axis] or o > box_max[axis]:
                return None
            continue
        t1 = (box_min[axis] - o) / d
        t2 = (box_max[axis] - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None
    if t_far < 0.0:
        return None  # box is behind the ray
    t = max(t_near, 0.0)
    if t > max_distance:
        return None
    return float(t)


@dataclass
class Sphere:
    center: np.ndarray
    radius: float

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=float)
        self.radius = float(self.radius)

    def ray_distance(self, origin, unit_dir, max_distance):
        return ray_sphere_distance(origin, unit_dir, self.center, self.radius, max_distance)

    def contains(self, point):
        return np.linalg.norm(np.asarray(point, dtype=float) - self.center) <= self.radius

    def to_dict(self):
        return {'center': [float(v) for v in self.center], 'radius': self.radius}


@dataclass
class Box:
    corner1: np.ndarray
    corner2: np.ndarray

    def __post_init__(self):
        c1 = np.asarray(self.corner1, dtype=float)
        c2 = np.asarray(self.corner2, dtype=float)
        self.corner1 = np.minimum(c1, c2)
        self.corner2 = np.maximum(c1, c2)

    def ray_distance(self, origin, unit_dir, max_distance):
        return ray_box_distance(origin, unit_dir, self.corner1, self.corner2, max_distance)

    def contains(self, point):
        point = np.asarray(point, dtype=float)
        return bool(np.all(point >= self.corner1) and np.all(point <= self.corner2))

    def to_dict(self):
        return {'corner1': [float(v) for v in self.corner1],
                'corner2': [float(v) for v in self.corner2]}


@dataclass
class Environment:
    """
    Obstacles plus the spherical target, answering segment queries like
    a physics ray cast that reports only the first collider it meets.
    """
    obstacles: List = field(default_factory=list)
    target: Sphere = field(default_factory=lambda: Sphere(DEFAULT_TARGET_CENTER, DEFAULT_TARGET_RADIUS))

    def _cast(self, start, direction, length):
        """Return (first obstacle distance, target distance); None where nothing is hit."""
        start = np.asarray(start, dtype=float)
        direction = np.asarray(direction, dtype=float)
        norm = np.linalg.norm(direction)
        if norm == 0.0 or length <= 0.0:
            return None, None
        unit_dir = direction / norm

        t_obstacle = None
        for obstacle in self.obstacles:
            t = obstacle.ray_distance(start, unit_dir, length)
            if t is not None and (t_obstacle is None or t < t_obstacle):
                t_obstacle = t
        t_target = self.target.ray_distance(start, unit_dir, length)
        return t_obstacle, t_target

    def segment_blocked(self, start, direction, length):
        t_obstacle, t_target = self._cast(start, direction, length)
        if t_obstacle is None:
            return False
        # the target in front of the obstacle is what the ray meets first
        return t_target is None or t_obstacle < t_target

    def segment_hits_target(self, start, direction, length):
        t_obstacle, t_target = self._cast(start, direction, length)
        if t_target is None:
            return False
        return t_obstacle is None or t_target <= t_obstacle

    def line_collision_free(self, x1, x2):
        """Convenience check between two points."""
        x1 = np.asarray(x1, dtype=float)
        direction = np.asarray(x2, dtype=float) - x1
        return not self.segment_blocked(x1, direction, np.linalg.norm(direction))

    def point_free(self, point):
        return not any(obstacle.contains(point) for obstacle in self.obstacles)


def load_environment(filename="map_obstacles.json"):
    """Load obstacles and target from a JSON map file."""
    try:
        with open(filename, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Map file {filename} not found, using empty map")
        return Environment()

    obstacles = [Sphere(s['center'], s['radius']) for s in data.get('spheres', [])]
    obstacles += [Box(b['corner1'], b['corner2']) for b in data.get('boxes', [])]

    target_data = data.get('target')
    if target_data is None:
        target = Sphere(DEFAULT_TARGET_CENTER, DEFAULT_TARGET_RADIUS)
    else:
        target = Sphere(target_data['center'], target_data.get('radius', DEFAULT_TARGET_RADIUS))

    print(f"Loaded {len(obstacles)} obstacles from {filename}")
    return Environment(obstacles, target)


def save_environment(environment, filename="map_obstacles.json"):
    """Save obstacles and target to a JSON map file."""
    data = {
        'spheres': [o.to_dict() for o in environment.obstacles if isinstance(o, Sphere)],
        'boxes': [o.to_dict() for o in environment.obstacles if isinstance(o, Box)],
        'target': environment.target.to_dict(),
    }
    with open(filename, 'w') as f:
        json.dump(data, f, indent=2)
    return filename
