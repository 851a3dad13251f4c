# demo.py

import argparse
import logging

import numpy as np

from collision import load_environment
from map_generator import generate_random_map
from rrt import RRTSearch
from strategies import RRTStrategy
from visualize import plot_search


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run one RRT search and plot the result")
    parser.add_argument("--strategy", default=RRTStrategy.STAR_INFORMED_PRUNING_ELLIPSE.value,
                        choices=[s.value for s in RRTStrategy])
    parser.add_argument("--map", default=None, help="JSON map file; a random map if omitted")
    parser.add_argument("--start", type=float, nargs=3, default=[-8.0, -8.0, 0.0])
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--max-iterations", type=int, default=3000)
    parser.add_argument("--only-2d", action="store_true")
    parser.add_argument("--path-only", action="store_true", help="draw only the found path")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    if args.map:
        env = load_environment(args.map)
    else:
        env = generate_random_map(args.start, seed=args.seed)

    search = RRTSearch(args.start, env, strategy=args.strategy, seed=args.seed,
                       max_iterations=args.max_iterations, only_search_2d=args.only_2d)

    tick = 0
    while not search.is_finished and search.attempts < 10 * args.max_iterations:
        search.update()
        tick += 1
        if tick % 50 == 0:
            print(f"Tick {tick}: {len(search.tree)} nodes, path found={search.has_found_path}")

    if search.has_found_path:
        path = search.path()
        print(f"Path with {len(path)} waypoints, cost {search.path_cost():.3f}")
        print(np.round(path, 2))
    else:
        print(f"No path after {search.attempts} attempts")

    plot_search(search, display_found_path_only=args.path_only)


if __name__ == "__main__":
    main()
