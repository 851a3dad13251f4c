# test_map_generator.py

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from collision import Sphere, Box, load_environment
from map_generator import generate_random_map, main, CLEARANCE
from rrt import RRTSearch
from visualize import plot_search, _box_edges


def test_random_map_keeps_start_and_target_clear():
    start = np.array([-8.0, -8.0, 0.0])
    target = Sphere([8.0, 8.0, 0.0], 0.5)
    env = generate_random_map(start, target, n_spheres=10, n_boxes=6, seed=0)
    assert len(env.obstacles) == 16
    assert env.target is target
    for obstacle in env.obstacles:
        assert not obstacle.contains(start)
        assert not obstacle.contains(target.center)
    assert env.point_free(start)


def test_same_seed_gives_same_map():
    a = generate_random_map([0.0, 0.0, 0.0], seed=3)
    b = generate_random_map([0.0, 0.0, 0.0], seed=3)
    assert [o.to_dict() for o in a.obstacles] == [o.to_dict() for o in b.obstacles]


def test_crowded_map_stops_after_max_attempts():
    # start clearance covers the whole area, nothing fits
    env = generate_random_map([0.0, 0.0, 0.0], n_spheres=3, n_boxes=0,
                              bounds_min=(-CLEARANCE / 4,) * 3, bounds_max=(CLEARANCE / 4,) * 3,
                              seed=1, max_attempts=50)
    assert env.obstacles == []


def test_cli_writes_loadable_map(tmp_path):
    output = tmp_path / "map.json"
    main(["--spheres", "2", "--boxes", "1", "--seed", "4", "--output", str(output)])
    env = load_environment(output)
    assert len(env.obstacles) == 3


def test_box_has_twelve_edges():
    edges = _box_edges(Box([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]))
    assert len(edges) == 12


def test_plot_search_draws_without_showing():
    env = generate_random_map([-8.0, -8.0, 0.0], n_spheres=3, n_boxes=2, seed=5)
    search = RRTSearch([-8.0, -8.0, 0.0], env, strategy="informed", max_iterations=50, seed=5)
    search.run()
    fig, ax = plot_search(search, show=False)
    assert "informed" in ax.get_title()
    plt.close(fig)
