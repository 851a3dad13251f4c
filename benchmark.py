"""
Strategy benchmark.
Runs every RRT strategy over a fixed set of scenarios and seeds and
records how fast a path is found and how good it is.
"""

import json
import time
from datetime import datetime
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt
from tqdm import tqdm

from collision import Environment, Sphere, Box
from rrt import RRTSearch
from strategies import RRTStrategy


class StrategyBenchmark:
    """Compares the RRT strategies on shared scenarios."""

    def __init__(self, results_dir="benchmark_results", max_iterations=2000, seeds=(0, 1, 2)):
        self.results_dir = Path(results_dir)
        self.max_iterations = max_iterations
        self.seeds = tuple(seeds)
        self.scenarios = self._create_scenarios()

    def _create_scenarios(self):
        """Scenarios from an open volume to a wall with a single gap."""
        return [
            {
                'name': 'open_space',
                'start': np.array([-8.0, -8.0, 0.0]),
                'environment': Environment([], Sphere([8.0, 8.0, 0.0], 0.5)),
            },
            {
                'name': 'sphere_field',
                'start': np.array([-8.0, -8.0, 0.0]),
                'environment': Environment([
                    Sphere([-3.0, -3.0, 0.0], 2.0),
                    Sphere([2.0, 1.0, 1.0], 2.5),
                    Sphere([5.0, 5.0, -1.0], 1.5),
                ], Sphere([8.0, 8.0, 0.0], 0.5)),
            },
            {
                'name': 'wall_with_gap',
                'start': np.array([-8.0, 0.0, 0.0]),
                'environment': Environment([
                    Box([-0.5, -10.0, -5.0], [0.5, 3.0, 5.0]),
                    Box([-0.5, 5.0, -5.0], [0.5, 10.0, 5.0]),
                ], Sphere([8.0, 0.0, 0.0], 0.5)),
            },
        ]

    def run_experiment(self, strategy, scenario, seed):
        """Run one search to completion and return its metrics."""
        search = RRTSearch(scenario['start'], scenario['environment'], strategy=strategy,
                           max_iterations=self.max_iterations, seed=seed)
        first_path_iteration = None
        start_time = time.perf_counter()
        while not search.is_finished and search.attempts < 10 * self.max_iterations:
            search.update()
            if first_path_iteration is None and search.has_found_path:
                first_path_iteration = search.iterations
        elapsed = time.perf_counter() - start_time

        return {
            'strategy': RRTStrategy(strategy).value,
            'scenario': scenario['name'],
            'seed': seed,
            'success': search.has_found_path,
            'first_path_iteration': first_path_iteration,
            'iterations': search.iterations,
            'attempts': search.attempts,
            'tree_size': len(search.tree),
            'path_cost': search.path_cost() if search.has_found_path else None,
            'elapsed': elapsed,
        }

    def run(self, strategies=None):
        strategies = list(strategies) if strategies is not None else list(RRTStrategy)
        runs = [(s, sc, seed) for s in strategies for sc in self.scenarios for seed in self.seeds]
        results = []
        pbar = tqdm(runs, desc="Benchmark", unit="run")
        for strategy, scenario, seed in pbar:
            pbar.set_postfix({'strategy': RRTStrategy(strategy).value, 'scenario': scenario['name']})
            results.append(self.run_experiment(strategy, scenario, seed))
        return results

    @staticmethod
    def summarize(results):
        """Per-strategy success rate, mean path cost and mean time."""
        summary = {}
        for strategy in dict.fromkeys(r['strategy'] for r in results):
            rows = [r for r in results if r['strategy'] == strategy]
            solved = [r for r in rows if r['success']]
            summary[strategy] = {
                'success_rate': len(solved) / len(rows),
                'avg_path_cost': float(np.mean([r['path_cost'] for r in solved])) if solved else None,
                'avg_first_path_iteration': (float(np.mean([r['first_path_iteration'] for r in solved]))
                                             if solved else None),
                'avg_elapsed': float(np.mean([r['elapsed'] for r in rows])),
            }
        return summary

    def save_results(self, results, summary):
        self.results_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = self.results_dir / f"benchmark_{timestamp}.json"

        def convert(obj):
            if isinstance(obj, np.ndarray):
                return obj.tolist()
            if isinstance(obj, (np.floating, np.integer)):
                return obj.item()
            raise TypeError(f"Cannot serialise {type(obj).__name__}")

        with open(filename, 'w') as f:
            json.dump({'summary': summary, 'results': results}, f, indent=2, default=convert)
        print(f"Results saved to {filename}")
        return filename

    def plot_summary(self, summary, show=True):
        names = list(summary)
        fig, axes = plt.subplots(1, 2, figsize=(14, 5))

        axes[0].bar(names, [summary[n]['success_rate'] for n in names], color='steelblue')
        axes[0].set_ylabel('Success rate')
        axes[0].set_ylim(0, 1)

        costs = [summary[n]['avg_path_cost'] for n in names]
        axes[1].bar(names, [c if c is not None else 0.0 for c in costs], color='darkorange')
        axes[1].set_ylabel('Mean path cost')

        for ax in axes:
            ax.tick_params(axis='x', rotation=60)
            ax.grid(True, alpha=0.3, axis='y')
        plt.tight_layout()
        if show:
            plt.show()
        return fig


def main():
    benchmark = StrategyBenchmark()

    print("=" * 60)
    print("RRT STRATEGY BENCHMARK")
    print("=" * 60)

    results = benchmark.run()
    summary = benchmark.summarize(results)
    for strategy, row in summary.items():
        cost = "n/a" if row['avg_path_cost'] is None else f"{row['avg_path_cost']:.3f}"
        print(f"  {strategy:32s} success {row['success_rate']:.2f}  cost {cost}")

    benchmark.save_results(results, summary)
    benchmark.plot_summary(summary)


if __name__ == "__main__":
    main()
