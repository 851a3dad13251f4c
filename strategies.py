# strategies.py
"""
RRT search strategies built from three independent policies:

- a sampling policy picks the position the tree should grow toward,
- an attach policy connects a new node (nearest parent, or RRT* parent
  choice with rewiring),
- a post-attach policy reacts to the outcome (prune after a shorter path,
  remove nodes that keep failing, or nothing).

The nine named strategies are fixed combinations of these policies.
"""

import logging
from enum import Enum
from typing import Optional

import numpy as np

from config import (DEFAULT_TARGET_BIAS, DEFAULT_RADIUS, DEFAULT_PLANAR_FACTOR,
                    DEFAULT_MAX_ALLOWED_FAILURES, POSITION_EPSILON)
from node_module import Node
from sampler import (sample_uniform, sample_in_ellipse, random_point_on_plane,
                     vertical_plane_normal, horizontal_plane_normal)

logger = logging.getLogger(__name__)


class RRTStrategy(Enum):
    """Identifiers of the available search strategies."""
    BASIC = "basic"
    INFORMED = "informed"
    INFORMED_WITH_REDUCTION = "informed_with_reduction"
    STAR = "star"
    STAR_INFORMED = "star_informed"
    STAR_INFORMED_PRUNING = "star_informed_pruning"
    STAR_INFORMED_PRUNING_ELLIPSE = "star_informed_pruning_ellipse"
    INFORMED_PLANAR = "informed_planar"
    INFORMED_PLANAR_WITH_REDUCTION = "informed_planar_with_reduction"


STAR_FAMILY = {
    RRTStrategy.STAR,
    RRTStrategy.STAR_INFORMED,
    RRTStrategy.STAR_INFORMED_PRUNING,
    RRTStrategy.STAR_INFORMED_PRUNING_ELLIPSE,
}


def parse_strategy(strategy):
    """Accept an RRTStrategy or its string value; anything else is a ValueError."""
    try:
        return RRTStrategy(strategy)
    except ValueError:
        valid = ", ".join(s.value for s in RRTStrategy)
        raise ValueError(f"Unknown RRT strategy {strategy!r}, expected one of: {valid}") from None


def continues_after_path(strategy):
    """RRT* variants keep improving the path once one is found."""
    return parse_strategy(strategy) in STAR_FAMILY


# ---------------------------
# Sampling policies
# ---------------------------

class UniformSampling:
    """Every sample is uniform in the search area."""

    def next_position(self, search):
        return search.random_position()

    def observe(self, search, new_node):
        pass


class TargetBiasedSampling(UniformSampling):
    """
    Every target_bias-th sample (starting with the first) is the target
    itself. With until_path_found the bias switches off once a path exists.
    """

    def __init__(self, target_bias, until_path_found=False):
        if target_bias < 1:
            raise ValueError(f"target_bias must be >= 1, got {target_bias}")
        self.target_bias = int(target_bias)
        self.until_path_found = until_path_found
        self.execution_counter = 0

    def _is_bias_turn(self):
        return self.execution_counter % self.target_bias == 0

    def next_position(self, search):
        position = search.target_position
        if not self._is_bias_turn() or (self.until_path_found and search.tree.has_found_path):
            position = search.random_position()
        self.execution_counter += 1
        return position


class EllipseSampling(TargetBiasedSampling):
    """Target-biased until a path exists, then only samples that could shorten it."""

    def __init__(self, target_bias):
        super().__init__(target_bias, until_path_found=True)

    def next_position(self, search):
        tree = search.tree
        position = search.target_position
        if tree.has_found_path:
            cfg = search.config
            position = sample_in_ellipse(cfg.search_area_min, cfg.search_area_max,
                                         tree.root.position, tree.target_node.position,
                                         tree.target_node.cost, search.rng, search.fixed_z)
        elif not self._is_bias_turn():
            position = search.random_position()
        self.execution_counter += 1
        return position


class PlanarSampling(TargetBiasedSampling):
    """
    Phased sampling: head straight for the target until that fails, then
    spend a budget of samples on the upright plane through start and
    target, then the same budget on the flat plane, then sample the whole
    volume. The tree is emptied when each plane phase begins.
    """

    def __init__(self, target_bias, in_plane_exploration_factor):
        super().__init__(target_bias)
        self.in_plane_exploration_factor = float(in_plane_exploration_factor)
        self.go_straight = True
        self.vertical_plane_iterations = 0
        self.horizontal_plane_iterations = 0

    def bind(self, search):
        """Derive plane geometry and budgets from the run configuration."""
        start = search.tree.root.position
        target = search.target_position
        cfg = search.config
        self.plane_normal_vertical = vertical_plane_normal(start, target)
        self.plane_normal_horizontal = horizontal_plane_normal(start, target)
        self.max_2d_iterations_per_plane = int(
            np.linalg.norm(start - target) / cfg.max_branch_length * self.in_plane_exploration_factor)
        self.max_radius = float(np.linalg.norm(cfg.search_area_max - cfg.search_area_min))

    def next_position(self, search):
        tree = search.tree
        position = search.target_position
        if not self.go_straight and not self._is_bias_turn():
            if self.vertical_plane_iterations < self.max_2d_iterations_per_plane:
                if self.vertical_plane_iterations == 0:
                    logger.debug("Straight approach failed, searching the vertical plane")
                    tree.clear()
                position = random_point_on_plane(tree.root.position, self.plane_normal_vertical,
                                                 self.max_radius, search.rng)
                self.vertical_plane_iterations += 1
            elif self.horizontal_plane_iterations < self.max_2d_iterations_per_plane:
                if self.horizontal_plane_iterations == 0 and not tree.has_found_path:
                    logger.debug("Vertical plane exhausted, searching the horizontal plane")
                    tree.clear()
                position = random_point_on_plane(tree.root.position, self.plane_normal_horizontal,
                                                 self.max_radius, search.rng)
                self.horizontal_plane_iterations += 1
            else:
                position = search.random_position()
        self.execution_counter += 1
        return position

    def observe(self, search, new_node):
        # one rejected straight shot ends the straight phase for good
        self.go_straight = new_node is not None and self.go_straight


# ---------------------------
# Attach policies
# ---------------------------

class NearestAttach:
    """Connect the new node to the nearest tree node."""

    def extend(self, search, position):
        tree = search.tree
        closest = tree.get_closest_node(position)
        steered = search.steer(closest.position, position)
        if steered is None:
            return None
        direction, length, new_position = steered

        if not search.is_not_colliding_with_obstacle(closest.position, direction, length):
            search.post_attach.on_blocked(search, closest)
            return None

        new_node = Node(new_position)
        tree.add_child(closest, new_node)
        if search.is_colliding_with_target(closest.position, direction, length):
            search.mark_target(new_node)
        return new_node


class StarAttach:
    """
    RRT* connection: choose the cheapest collision-free parent within
    radius, then re-parent neighbours that become cheaper through the
    new node.
    """

    def __init__(self, radius):
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")
        self.radius = float(radius)

    def extend(self, search, position):
        new_node, entered_target = self._connect(search, position)
        if entered_target:
            self._reach_target(search, new_node)
        return new_node

    def _connect(self, search, position):
        """Attach one node toward position. Returns (node, edge entered the target)."""
        tree = search.tree
        closest = tree.get_closest_node(position)
        steered = search.steer(closest.position, position)
        if steered is None:
            return None, False
        direction, length, new_position = steered

        if not search.is_not_colliding_with_obstacle(closest.position, direction, length):
            search.post_attach.on_blocked(search, closest)
            return None, False

        new_node = Node(new_position)
        min_node = closest
        min_cost = closest.cost + np.linalg.norm(new_position - closest.position)
        # fixed before any mutation, reused for rewiring below
        neighbours = tree.get_neighbours_in_radius(new_position, self.radius)

        for n in neighbours:
            d = new_position - n.position
            d_len = np.linalg.norm(d)
            if n.cost + d_len < min_cost and search.is_not_colliding_with_obstacle(n.position, d, d_len):
                min_node = n
                min_cost = n.cost + d_len

        tree.add_child_with_cost(min_node, new_node)

        for n in neighbours:
            if n is tree.root:
                continue
            d = n.position - new_position
            d_len = np.linalg.norm(d)
            if new_node.cost + d_len < n.cost and search.is_not_colliding_with_obstacle(new_position, d, d_len):
                n.parent.remove_child(n)
                tree.add_child_with_cost(new_node, n)

        d = new_position - min_node.position
        entered_target = (not tree.has_found_path
                          and search.is_colliding_with_target(min_node.position, d, np.linalg.norm(d)))
        return new_node, entered_target

    def _reach_target(self, search, node):
        target = search.target_position
        if np.linalg.norm(node.position - target) < POSITION_EPSILON:
            search.mark_target(node)
            return

        outcome = {}

        def step(search, position):
            outcome['node'], outcome['entered'] = self._connect(search, position)
            return outcome['node']

        # grow at the target centre until a node lands on it; the first
        # node grown this way becomes the target node
        first = None
        while True:
            reached = search._add_one_node_at_position(target, step)
            if reached is None:
                break
            if first is None:
                first = reached
            if not outcome['entered'] or np.linalg.norm(reached.position - target) < POSITION_EPSILON:
                break
        if first is not None:
            search.mark_target(first)


# ---------------------------
# Post-attach policies
# ---------------------------

class NoPostAttach:
    def before(self, search):
        return None

    def after(self, search, snapshot):
        pass

    def on_blocked(self, search, node):
        pass


class PruneOnImprovement(NoPostAttach):
    """Prune the tree every time the best path gets shorter."""

    def before(self, search):
        tree = search.tree
        return tree.target_node.cost if tree.has_found_path else np.inf

    def after(self, search, snapshot):
        tree = search.tree
        if tree.has_found_path and snapshot > tree.target_node.cost:
            logger.info("Shorter path found with length = %.4f", tree.target_node.cost)
            tree.prune()


class RemoveOnFailure(NoPostAttach):
    """Drop nodes whose extensions keep hitting obstacles."""

    def __init__(self, max_allowed_failures):
        if max_allowed_failures < 0:
            raise ValueError(f"max_allowed_failures must be non-negative, got {max_allowed_failures}")
        self.max_allowed_failures = int(max_allowed_failures)

    def on_blocked(self, search, node):
        if node.increment_failure_count(self.max_allowed_failures):
            logger.debug("Removed node at %s after repeated failures", node.position)


# ---------------------------
# Strategy
# ---------------------------

class RRTSearchStrategy:
    def __init__(self, config, sampling, attach, post_attach=None, rng=None, kind=None):
        """
        Parameters
        ----------
        config : RRTConfig
            Immutable run configuration (tree, bounds, oracle, target).
        sampling, attach, post_attach :
            Policy objects, see module docstring.
        rng : np.random.Generator, optional
            Source of all random draws; a fresh default generator if None.
        kind : RRTStrategy, optional
            Identifier this combination was built for.
        """
        self.config = config
        self.tree = config.tree
        self.target_position = np.asarray(config.target_position, dtype=float)
        self.sampling = sampling
        self.attach = attach
        self.post_attach = post_attach if post_attach is not None else NoPostAttach()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.kind = kind
        self.fixed_z = self.tree.root.position[2] if config.only_search_2d else None
        if hasattr(sampling, "bind"):
            sampling.bind(self)

    def __repr__(self):
        name = self.kind.value if self.kind is not None else "custom"
        return f"RRTSearchStrategy({name})"

    def add_one_node(self) -> Optional[Node]:
        """Try to grow the tree by one node; None when the attempt was rejected."""
        position = self.sampling.next_position(self)
        new_node = None if position is None else self._add_one_node_at_position(position)
        self.sampling.observe(self, new_node)
        return new_node

    def _add_one_node_at_position(self, position, extend=None):
        """Run one extension (the attach policy's unless given) inside the post-attach hooks."""
        extend = extend if extend is not None else self.attach.extend
        snapshot = self.post_attach.before(self)
        new_node = extend(self, np.asarray(position, dtype=float))
        self.post_attach.after(self, snapshot)
        return new_node

    def random_position(self):
        cfg = self.config
        return sample_uniform(cfg.search_area_min, cfg.search_area_max, self.rng, self.fixed_z)

    def steer(self, from_position, to_position):
        """
        Bounded step from from_position toward to_position.
        Returns (direction, length, new_position), or None if the two coincide.
        """
        direction = to_position - from_position
        distance = np.linalg.norm(direction)
        if distance < POSITION_EPSILON:
            return None
        length = min(self.config.max_branch_length, distance)
        return direction, length, from_position + direction / distance * length

    def is_not_colliding_with_obstacle(self, start, direction, length):
        return not self.config.environment.segment_blocked(start, direction, length)

    def is_colliding_with_target(self, start, direction, length):
        return self.config.environment.segment_hits_target(start, direction, length)

    def mark_target(self, node):
        if not self.tree.has_found_path:
            logger.info("Found path with %d edges", len(node.path_to_root()) - 1)
        self.tree.target_node = node


def create_strategy(strategy, config, target_bias=DEFAULT_TARGET_BIAS, radius=DEFAULT_RADIUS,
                    in_plane_exploration_factor=DEFAULT_PLANAR_FACTOR,
                    max_allowed_failures=DEFAULT_MAX_ALLOWED_FAILURES, rng=None):
    """Build the named strategy for one search run."""
    kind = parse_strategy(strategy)

    if kind is RRTStrategy.BASIC:
        parts = (UniformSampling(), NearestAttach(), NoPostAttach())
    elif kind is RRTStrategy.INFORMED:
        parts = (TargetBiasedSampling(target_bias), NearestAttach(), NoPostAttach())
    elif kind is RRTStrategy.INFORMED_WITH_REDUCTION:
        parts = (TargetBiasedSampling(target_bias), NearestAttach(), RemoveOnFailure(max_allowed_failures))
    elif kind is RRTStrategy.STAR:
        parts = (UniformSampling(), StarAttach(radius), NoPostAttach())
    elif kind is RRTStrategy.STAR_INFORMED:
        parts = (TargetBiasedSampling(target_bias, until_path_found=True), StarAttach(radius), NoPostAttach())
    elif kind is RRTStrategy.STAR_INFORMED_PRUNING:
        parts = (TargetBiasedSampling(target_bias, until_path_found=True), StarAttach(radius),
                 PruneOnImprovement())
    elif kind is RRTStrategy.STAR_INFORMED_PRUNING_ELLIPSE:
        parts = (EllipseSampling(target_bias), StarAttach(radius), PruneOnImprovement())
    elif kind is RRTStrategy.INFORMED_PLANAR:
        parts = (PlanarSampling(target_bias, in_plane_exploration_factor), NearestAttach(), NoPostAttach())
    else:
        parts = (PlanarSampling(target_bias, in_plane_exploration_factor), NearestAttach(),
                 RemoveOnFailure(max_allowed_failures))

    sampling, attach, post_attach = parts
    return RRTSearchStrategy(config, sampling, attach, post_attach, rng=rng, kind=kind)
