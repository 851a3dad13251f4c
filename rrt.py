# rrt.py

import logging

import numpy as np

from config import (RRTConfig, SEARCH_AREA_MIN, SEARCH_AREA_MAX, MAX_BRANCH_LENGTH,
                    MAX_ITERATIONS, MAX_NODES_PER_UPDATE, TARGET_BIAS, RADIUS_RRT_STAR,
                    IN_PLANE_EXPLORATION_FACTOR, MAX_ALLOWED_FAILURES)
from strategies import RRTStrategy, create_strategy, continues_after_path, parse_strategy
from tree import Tree

logger = logging.getLogger(__name__)


class RRTSearch:
    """
    Drives one search run: owns the tree and the strategy, and grows the
    tree a bounded number of nodes per update. Any parameter change
    rebuilds tree and strategy from scratch.
    """

    def __init__(self, start, environment, strategy=RRTStrategy.BASIC,
                 search_area_min=SEARCH_AREA_MIN, search_area_max=SEARCH_AREA_MAX,
                 max_branch_length=MAX_BRANCH_LENGTH, only_search_2d=False,
                 max_iterations=MAX_ITERATIONS, max_nodes_per_update=MAX_NODES_PER_UPDATE,
                 target_bias=TARGET_BIAS, radius=RADIUS_RRT_STAR,
                 in_plane_exploration_factor=IN_PLANE_EXPLORATION_FACTOR,
                 max_allowed_failures=MAX_ALLOWED_FAILURES, seed=None):
        self.start = np.asarray(start, dtype=float)
        self.environment = environment
        self.params = {
            'strategy': parse_strategy(strategy),
            'search_area_min': np.asarray(search_area_min, dtype=float),
            'search_area_max': np.asarray(search_area_max, dtype=float),
            'max_branch_length': max_branch_length,
            'only_search_2d': only_search_2d,
            'max_iterations': max_iterations,
            'max_nodes_per_update': max_nodes_per_update,
            'target_bias': target_bias,
            'radius': radius,
            'in_plane_exploration_factor': in_plane_exploration_factor,
            'max_allowed_failures': max_allowed_failures,
            'seed': seed,
        }
        self.tree = None
        self.strategy = None
        self.restart()

    def restart(self, **changes):
        """Start over with a fresh tree; keyword arguments override run parameters."""
        unknown = set(changes) - set(self.params) - {'start'}
        if unknown:
            raise ValueError(f"Unknown search parameters: {sorted(unknown)}")
        if 'start' in changes:
            self.start = np.asarray(changes.pop('start'), dtype=float)
        if 'strategy' in changes:
            changes['strategy'] = parse_strategy(changes['strategy'])
        self.params.update(changes)

        p = self.params
        self.tree = Tree(self.start)
        self.config = RRTConfig(self.tree, p['search_area_min'], p['search_area_max'],
                                self.environment, self.environment.target,
                                p['max_branch_length'], p['only_search_2d'])
        self.strategy = create_strategy(p['strategy'], self.config,
                                        target_bias=p['target_bias'], radius=p['radius'],
                                        in_plane_exploration_factor=p['in_plane_exploration_factor'],
                                        max_allowed_failures=p['max_allowed_failures'],
                                        rng=np.random.default_rng(p['seed']))
        self.continue_after_found_path = continues_after_path(p['strategy'])
        self.iterations = 0
        self.attempts = 0
        self._cap_reported = False
        logger.debug("Restarted %s search from %s", p['strategy'].value, self.start)

    @property
    def has_found_path(self):
        return self.tree.has_found_path

    @property
    def is_finished(self):
        if self.iterations >= self.params['max_iterations']:
            return True
        return self.tree.has_found_path and not self.continue_after_found_path

    def _attempt(self):
        self.attempts += 1
        new_node = self.strategy.add_one_node()
        if new_node is not None:
            self.iterations += 1
        return new_node

    def _report_cap(self):
        if not self._cap_reported:
            logger.info("Exceeded MaxIterations of %d, stopped RRT execution", self.params['max_iterations'])
            self._cap_reported = True

    def update(self):
        """One tick: up to max_nodes_per_update attempts. Returns nodes added."""
        if self.iterations >= self.params['max_iterations']:
            self._report_cap()
            return 0
        added = 0
        i = 0
        while (i < self.params['max_nodes_per_update']
               and self.iterations < self.params['max_iterations']
               and (not self.tree.has_found_path or self.continue_after_found_path)):
            if self._attempt() is not None:
                added += 1
            i += 1
        return added

    def make_one_iteration(self):
        """Exactly one growth attempt, unless the iteration cap is reached."""
        if self.iterations >= self.params['max_iterations']:
            self._report_cap()
            return None
        return self._attempt()

    def run(self, max_ticks=None):
        """
        Call update() until the run finishes or max_ticks ticks have passed.
        Without max_ticks the run gets ten attempts per allowed iteration.
        """
        if max_ticks is None:
            p = self.params
            max_ticks = -(-10 * p['max_iterations'] // max(1, p['max_nodes_per_update']))
        ticks = 0
        while not self.is_finished and ticks < max_ticks:
            self.update()
            ticks += 1
        return self.has_found_path

    def path(self):
        return self.tree.path()

    def path_cost(self):
        if not self.tree.has_found_path:
            return float("inf")
        return self.tree.target_node.cost if self.continue_after_found_path else self.tree.path_cost()

    def get_lines(self):
        return self.tree.get_lines()
