# test_rrt.py
"""
Tests for the search driver: stopping rules, iteration cap, restarts.
"""

import logging

import numpy as np
import pytest

from collision import Environment, Sphere
from rrt import RRTSearch
from strategies import RRTStrategy

SMALL_MIN = (-3.0, -3.0, -1.0)
SMALL_MAX = (3.0, 3.0, 1.0)


def open_environment(target_center=(2.0, 2.0, 0.0)):
    return Environment([], Sphere(target_center, 0.5))


def test_non_star_search_stops_at_first_path():
    search = RRTSearch([-2.0, -2.0, 0.0], open_environment(), strategy="informed",
                       search_area_min=SMALL_MIN, search_area_max=SMALL_MAX,
                       target_bias=2, seed=0)
    assert search.run()
    assert search.is_finished
    iterations = search.iterations
    size = len(search.tree)

    assert search.update() == 0
    assert search.iterations == iterations
    assert len(search.tree) == size
    assert search.path_cost() == pytest.approx(search.tree.path_cost())
    np.testing.assert_array_equal(search.path()[0], [-2.0, -2.0, 0.0])


def test_iteration_cap_is_never_exceeded(caplog):
    unreachable = Environment([], Sphere([50.0, 0.0, 0.0], 0.5))
    search = RRTSearch([0.0, 0.0, 0.0], unreachable, search_area_min=(-1, -1, -1),
                       search_area_max=(1, 1, 1), max_iterations=30, max_nodes_per_update=7, seed=1)
    search.run()

    assert search.iterations == 30
    assert len(search.tree) == 31
    assert not search.has_found_path
    assert search.path_cost() == float("inf")

    with caplog.at_level(logging.INFO, logger="rrt"):
        assert search.update() == 0
        assert search.update() == 0
        assert search.make_one_iteration() is None
    assert len([r for r in caplog.records if "Exceeded" in r.getMessage()]) == 1


def test_star_search_keeps_improving_until_cap():
    search = RRTSearch([-2.0, -2.0, 0.0], open_environment(), strategy=RRTStrategy.STAR_INFORMED,
                       search_area_min=SMALL_MIN, search_area_max=SMALL_MAX,
                       max_iterations=200, target_bias=3, radius=1.5, seed=2)
    search.run()

    assert search.has_found_path
    assert search.iterations == 200
    assert search.is_finished
    assert search.path_cost() == search.tree.target_node.cost
    assert search.path_cost() >= np.linalg.norm(search.path()[-1] - search.path()[0])


def test_update_adds_at_most_nodes_per_update():
    search = RRTSearch([0.0, 0.0, 0.0], open_environment((50.0, 0.0, 0.0)),
                       search_area_min=SMALL_MIN, search_area_max=SMALL_MAX, max_nodes_per_update=5, seed=3)
    added = search.update()
    assert 0 < added <= 5
    assert search.attempts == 5
    assert len(search.tree) == 1 + added


def test_make_one_iteration_counts_successes_only():
    search = RRTSearch([0.0, 0.0, 0.0], open_environment(), search_area_min=SMALL_MIN,
                       search_area_max=SMALL_MAX, seed=4)
    node = search.make_one_iteration()
    assert search.attempts == 1
    assert search.iterations == (0 if node is None else 1)


def test_restart_rebuilds_tree_and_strategy():
    search = RRTSearch([-2.0, -2.0, 0.0], open_environment(), search_area_min=SMALL_MIN,
                       search_area_max=SMALL_MAX, seed=5)
    search.update()
    old_tree = search.tree

    search.restart(strategy="star", start=[1.0, 0.0, 0.0])

    assert search.tree is not old_tree
    assert len(search.tree) == 1
    assert search.iterations == 0 and search.attempts == 0
    assert search.strategy.kind is RRTStrategy.STAR
    assert search.continue_after_found_path
    np.testing.assert_array_equal(search.tree.root.position, [1.0, 0.0, 0.0])


def test_restart_rejects_unknown_parameters():
    search = RRTSearch([0.0, 0.0, 0.0], open_environment())
    with pytest.raises(ValueError):
        search.restart(bogus=1)
    with pytest.raises(ValueError):
        search.restart(strategy="rrt_connect")


def test_unknown_strategy_is_rejected_up_front():
    with pytest.raises(ValueError):
        RRTSearch([0.0, 0.0, 0.0], open_environment(), strategy="nope")


def test_same_seed_gives_same_tree():
    runs = []
    for _ in range(2):
        search = RRTSearch([-2.0, -2.0, 0.0], open_environment(), strategy="star",
                           search_area_min=SMALL_MIN, search_area_max=SMALL_MAX,
                           max_iterations=100, seed=6)
        search.run()
        runs.append(search.get_lines())
    assert len(runs[0]) == len(runs[1])
    for (a_start, a_end), (b_start, b_end) in zip(*runs):
        np.testing.assert_array_equal(a_start, b_start)
        np.testing.assert_array_equal(a_end, b_end)


def test_flat_search_keeps_start_height():
    search = RRTSearch([0.0, 0.0, 0.5], open_environment((2.0, 2.0, 0.5)), strategy="star",
                       search_area_min=SMALL_MIN, search_area_max=SMALL_MAX,
                       only_search_2d=True, max_iterations=60, seed=7)
    search.run()
    for node in search.tree.nodes():
        assert node.position[2] == pytest.approx(0.5)


def test_radius_reaches_every_star_variant():
    for strategy in ("star", "star_informed", "star_informed_pruning_ellipse"):
        search = RRTSearch([0.0, 0.0, 0.0], open_environment(), strategy=strategy, radius=2.5)
        assert search.strategy.attach.radius == 2.5
