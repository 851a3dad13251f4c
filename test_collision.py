# test_collision.py
"""
Tests for segment queries against spheres, boxes and the target.
"""

import numpy as np
import pytest

from collision import (Environment, Sphere, Box, ray_sphere_distance, ray_box_distance,
                       load_environment, save_environment)


X = np.array([1.0, 0.0, 0.0])
ORIGIN = np.zeros(3)


def test_ray_sphere_distance_front_hit():
    t = ray_sphere_distance(ORIGIN, X, np.array([5.0, 0.0, 0.0]), 1.0, 10.0)
    assert t == pytest.approx(4.0)


def test_ray_sphere_distance_out_of_reach_or_behind():
    assert ray_sphere_distance(ORIGIN, X, np.array([5.0, 0.0, 0.0]), 1.0, 3.9) is None
    assert ray_sphere_distance(ORIGIN, X, np.array([-5.0, 0.0, 0.0]), 1.0, 10.0) is None
    assert ray_sphere_distance(ORIGIN, X, np.array([5.0, 2.0, 0.0]), 1.0, 10.0) is None


def test_ray_starting_inside_sphere_hits_at_zero():
    assert ray_sphere_distance(ORIGIN, X, np.array([0.2, 0.0, 0.0]), 1.0, 0.1) == 0.0


def test_ray_box_distance():
    lo, hi = np.array([2.0, -1.0, -1.0]), np.array([3.0, 1.0, 1.0])
    assert ray_box_distance(ORIGIN, X, lo, hi, 10.0) == pytest.approx(2.0)
    assert ray_box_distance(ORIGIN, X, lo, hi, 1.5) is None
    # parallel to the box but beside it
    assert ray_box_distance(np.array([0.0, 2.0, 0.0]), X, lo, hi, 10.0) is None
    assert ray_box_distance(np.array([2.5, 0.0, 0.0]), X, lo, hi, 0.1) == 0.0


def test_obstacle_blocks_segment():
    env = Environment([Sphere([5.0, 0.0, 0.0], 1.0)], Sphere([20.0, 0.0, 0.0], 0.5))
    assert env.segment_blocked(ORIGIN, X, 10.0)
    assert not env.segment_blocked(ORIGIN, X, 3.0)
    assert not env.segment_hits_target(ORIGIN, X, 30.0)


def test_target_is_never_an_obstacle():
    env = Environment([], Sphere([5.0, 0.0, 0.0], 1.0))
    assert not env.segment_blocked(ORIGIN, X, 10.0)
    assert env.segment_hits_target(ORIGIN, X, 10.0)
    assert not env.segment_hits_target(ORIGIN, X, 3.0)


def test_only_first_collider_counts():
    target = Sphere([5.0, 0.0, 0.0], 1.0)
    behind = Box([7.0, -1.0, -1.0], [8.0, 1.0, 1.0])
    env = Environment([behind], target)
    assert not env.segment_blocked(ORIGIN, X, 10.0)
    assert env.segment_hits_target(ORIGIN, X, 10.0)

    in_front = Box([2.0, -1.0, -1.0], [3.0, 1.0, 1.0])
    env = Environment([in_front], target)
    assert env.segment_blocked(ORIGIN, X, 10.0)
    assert not env.segment_hits_target(ORIGIN, X, 10.0)


def test_direction_length_is_irrelevant():
    env = Environment([Sphere([5.0, 0.0, 0.0], 1.0)])
    assert env.segment_blocked(ORIGIN, X * 0.001, 10.0)
    assert env.segment_blocked(ORIGIN, X * 100.0, 10.0)


def test_zero_direction_never_blocks():
    env = Environment([Sphere([0.0, 0.0, 0.0], 1.0)], Sphere([0.0, 0.0, 0.0], 2.0))
    assert not env.segment_blocked(ORIGIN, np.zeros(3), 1.0)
    assert not env.segment_hits_target(ORIGIN, np.zeros(3), 1.0)


def test_line_collision_free_and_point_free():
    env = Environment([Box([1.0, 1.0, 1.0], [-1.0, -1.0, -1.0])])
    assert not env.line_collision_free([-5.0, 0.0, 0.0], [5.0, 0.0, 0.0])
    assert env.line_collision_free([-5.0, 3.0, 0.0], [5.0, 3.0, 0.0])
    assert not env.point_free([0.0, 0.0, 0.0])
    assert env.point_free([0.0, 0.0, 2.0])


def test_map_file_round_trip(tmp_path):
    env = Environment([Sphere([1.0, 2.0, 3.0], 0.5), Box([0.0, 0.0, 0.0], [1.0, 2.0, 3.0])],
                      Sphere([4.0, 4.0, 4.0], 0.25))
    filename = save_environment(env, tmp_path / "map.json")

    loaded = load_environment(filename)

    assert len(loaded.obstacles) == 2
    sphere, box = loaded.obstacles
    np.testing.assert_allclose(sphere.center, [1.0, 2.0, 3.0])
    assert sphere.radius == 0.5
    np.testing.assert_allclose(box.corner2, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(loaded.target.center, [4.0, 4.0, 4.0])
    assert loaded.target.radius == 0.25


def test_missing_map_file_gives_empty_map(tmp_path):
    env = load_environment(tmp_path / "missing.json")
    assert env.obstacles == []
    assert env.target.radius > 0
