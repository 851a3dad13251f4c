# tree.py

import logging

import numpy as np

from node_module import Node
from config import PRUNE_TOLERANCE

logger = logging.getLogger(__name__)


class Tree:
    def __init__(self, start_position):
        self.root = Node(start_position)
        self._target_node = None

    @property
    def target_node(self):
        return self._target_node

    @target_node.setter
    def target_node(self, node):
        if node is None:
            raise ValueError("target node cannot be unset; create a new Tree instead")
        self._target_node = node

    @property
    def has_found_path(self):
        return self._target_node is not None

    def __len__(self):
        return sum(1 for _ in self.nodes())

    def nodes(self):
        """Iterate over all nodes in pre-order, starting at the root."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def get_closest_node(self, point):
        return self.root.get_closest_node_in_children(point)

    def get_neighbours_in_radius(self, node, radius):
        """All nodes strictly within radius of node (a Node or a position)."""
        position = node.position if isinstance(node, Node) else node
        return self.root.get_neighbours_in_radius(position, radius)

    def add_child(self, parent, child):
        parent.add_child(child)

    def add_child_with_cost(self, parent, child):
        parent.add_child_with_cost(child)

    def prune(self):
        """
        Remove every subtree that cannot improve on the current best path.

        A node goes when |node - root| + |node - target| exceeds the best
        cost by more than a relative PRUNE_TOLERANCE, not the bare best
        cost, so nodes lying exactly on a straight best path are kept
        despite rounding in the summed edge lengths.
        """
        if self._target_node is None:
            return 0
        best_cost = self._target_node.cost
        removed = self.root.prune_nodes(self.root.position, self._target_node.position,
                                        best_cost * (1.0 + PRUNE_TOLERANCE))
        logger.debug("Pruned %d subtrees against best cost %.3f", removed, best_cost)
        return removed

    def clear(self):
        """Drop every node except the root."""
        self.root.remove_all_child_nodes()

    def get_lines(self):
        return self.root.get_lines_to_children()

    def path(self):
        """Positions from the root to the target node, or an empty array."""
        if self._target_node is None:
            return np.empty((0, 3))
        nodes = self._target_node.path_to_root()
        nodes.reverse()
        return np.array([n.position for n in nodes])

    def path_cost(self):
        """Summed edge length of the found path, inf if there is none."""
        path = self.path()
        if len(path) == 0:
            return float("inf")
        return float(np.sum(np.linalg.norm(np.diff(path, axis=0), axis=1)))
