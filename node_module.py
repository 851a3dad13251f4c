# node_module.py

from collections import deque

import numpy as np


class Node:
    def __init__(self, position):
        """
        Initialize a tree node at a fixed point in space.

        Parameters
        ----------
        position : array-like
            [x, y, z] position of the node. Stored read-only.
        """
        self._position = np.array(position, dtype=float)
        self._position.setflags(write=False)
        self.parent = None
        self.children = []
        self.cost = 0.0           # cost-to-reach, only set by cost-tracking attach
        self.failure_count = 0    # failed extension attempts from this node
        self._distance_to_parent = 0.0

    @property
    def position(self):
        return self._position

    def __repr__(self):
        return f"Node({self._position.tolist()}, cost={self.cost:.3f})"

    def add_child(self, child):
        self.children.append(child)
        child.parent = self

    def add_child_with_cost(self, child):
        """Attach child and set its cost from this node, then refresh its subtree."""
        child.parent = self
        child._distance_to_parent = float(np.linalg.norm(self._position - child._position))
        child.cost = self.cost + child._distance_to_parent
        child._update_child_costs()
        self.children.append(child)

    def _update_child_costs(self):
        stack = list(self.children)
        while stack:
            node = stack.pop()
            node.cost = node.parent.cost + node._distance_to_parent
            stack.extend(node.children)

    def remove_child(self, child):
        if child in self.children:
            self.children.remove(child)
            child.parent = None
            return True
        return False

    def remove_all_child_nodes(self):
        for child in self.children:
            child.parent = None
        self.children = []

    def get_closest_node_in_children(self, point):
        """
        Return the node of this subtree closest to point.

        Squared distances are compared; on ties the node found first
        (this node, then children in insertion order) is kept.
        """
        point = np.asarray(point, dtype=float)
        closest_node = None
        closest_sqr = np.inf
        stack = [self]
        while stack:
            node = stack.pop()
            diff = node._position - point
            sqr = float(diff @ diff)
            if sqr < closest_sqr:
                closest_sqr = sqr
                closest_node = node
            stack.extend(reversed(node.children))
        return closest_node

    def get_neighbours_in_radius(self, position, radius):
        """Pre-order list of subtree nodes strictly closer than radius to position."""
        position = np.asarray(position, dtype=float)
        radius_sqr = radius * radius
        neighbours = []
        stack = [self]
        while stack:
            node = stack.pop()
            diff = node._position - position
            if diff @ diff < radius_sqr:
                neighbours.append(node)
            stack.extend(reversed(node.children))
        return neighbours

    def prune_nodes(self, pos_start, pos_end, min_path_cost):
        """
        Drop every child subtree that cannot lie on a path cheaper than
        min_path_cost. Children are judged before recursing into survivors.
        """
        pos_start = np.asarray(pos_start, dtype=float)
        pos_end = np.asarray(pos_end, dtype=float)
        removed = 0
        queue = deque([self])
        while queue:
            node = queue.popleft()
            keep = []
            for child in node.children:
                estimate = (np.linalg.norm(child._position - pos_end)
                            + np.linalg.norm(child._position - pos_start))
                if estimate > min_path_cost:
                    child.parent = None
                    removed += 1
                else:
                    keep.append(child)
            node.children = keep
            queue.extend(keep)
        return removed

    def get_lines_to_children(self):
        lines = []
        stack = [self]
        while stack:
            node = stack.pop()
            for child in node.children:
                lines.append((node._position, child._position))
            stack.extend(reversed(node.children))
        return lines

    def increment_failure_count(self, max_allowed_failures):
        """
        Count a failed extension from this node. Past the limit the node
        (with its subtree) leaves the tree and the failure cascades to
        its former parent. The root is never removed.
        """
        self.failure_count += 1
        if self.failure_count <= max_allowed_failures or self.parent is None:
            return False
        parent = self.parent
        parent.remove_child(self)
        parent.increment_failure_count(max_allowed_failures)
        return True

    def path_to_root(self):
        path = []
        current = self
        while current is not None:
            path.append(current)
            current = current.parent
        return path
