# visualize.py
"""
Render a search tree, the found path and the obstacles in 3D.
"""

from itertools import product

import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  registers the 3d projection
from mpl_toolkits.mplot3d.art3d import Line3DCollection

from collision import Sphere, Box


def _draw_sphere(ax, sphere, color, alpha):
    u, v = np.mgrid[0:2 * np.pi:16j, 0:np.pi:8j]
    x = sphere.center[0] + sphere.radius * np.cos(u) * np.sin(v)
    y = sphere.center[1] + sphere.radius * np.sin(u) * np.sin(v)
    z = sphere.center[2] + sphere.radius * np.cos(v)
    ax.plot_wireframe(x, y, z, color=color, alpha=alpha, linewidth=0.5)


def _box_edges(box):
    lo, hi = box.corner1, box.corner2
    corners = [np.array(c) for c in product(*zip(lo, hi))]
    edges = []
    for a in corners:
        for b in corners:
            # corners differing in exactly one coordinate share an edge
            if np.sum(a != b) == 1 and tuple(a) < tuple(b):
                edges.append((a, b))
    return edges


def draw_environment(ax, environment):
    for obstacle in environment.obstacles:
        if isinstance(obstacle, Sphere):
            _draw_sphere(ax, obstacle, 'red', 0.4)
        elif isinstance(obstacle, Box):
            ax.add_collection3d(Line3DCollection(_box_edges(obstacle), colors='red', linewidths=1.0))
    _draw_sphere(ax, environment.target, 'green', 0.6)


def draw_tree(ax, tree, display_found_path_only=False):
    """Draw all tree edges (unless path only) and the found path on top."""
    if not display_found_path_only:
        lines = tree.get_lines()
        if lines:
            ax.add_collection3d(Line3DCollection(lines, colors='blue', linewidths=0.5, alpha=0.6))
    root = tree.root.position
    ax.scatter([root[0]], [root[1]], [root[2]], c='black', s=40, label='Root')

    path = tree.path()
    if len(path) > 1:
        ax.plot(path[:, 0], path[:, 1], path[:, 2], 'r-', linewidth=2.5, label='Path')


def plot_search(search, display_found_path_only=False, title=None, show=True):
    """
    Plot an RRTSearch: obstacles, tree and path.

    Returns
    -------
    (fig, ax)
    """
    fig = plt.figure(figsize=(10, 8))
    ax = fig.add_subplot(111, projection='3d')

    draw_environment(ax, search.environment)
    draw_tree(ax, search.tree, display_found_path_only)

    lo = search.config.search_area_min
    hi = search.config.search_area_max
    ax.set_xlim(lo[0], hi[0])
    ax.set_ylim(lo[1], hi[1])
    ax.set_zlim(lo[2], hi[2])
    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_zlabel('Z')

    if title is None:
        strategy = search.params['strategy'].value
        status = f"cost {search.path_cost():.2f}" if search.has_found_path else "no path"
        title = f"RRT {strategy}: {len(search.tree)} nodes, {status}"
    ax.set_title(title)
    ax.legend(loc='upper left')

    plt.tight_layout()
    if show:
        plt.show()
    return fig, ax
