"""
Area-proportional partition of a HierarchyNode tree.

Nested squarified rectangles: each node's children are laid out inside the
node's own rectangle, so every polygon's area is proportional to its weight
relative to its siblings.  Polygons are keyed by child-index path (see
``hierarchy.iter_nodes``), never by name, so two countries that share a name
still get separate rectangles.  Zero-weight nodes get no polygon; callers
skip missing keys.
"""
from __future__ import annotations

import logging

import numpy as np
import squarify

from gdp_treemap.hierarchy import HierarchyNode, NodePath

logger = logging.getLogger(__name__)

Polygon = list[tuple[float, float]]


def _rect_polygon(x: float, y: float, dx: float, dy: float) -> Polygon:
    return [(x, y), (x, y + dy), (x + dx, y + dy), (x + dx, y)]


def _layout(node: HierarchyNode, path: NodePath, rect: tuple[float, float, float, float],
            out: dict[NodePath, Polygon]) -> None:
    x, y, dx, dy = rect
    out[path] = _rect_polygon(x, y, dx, dy)

    weighted = [(i, c) for i, c in enumerate(node.children) if c.weight > 0]
    if not weighted or dx <= 0 or dy <= 0:
        return
    # squarify expects sizes sorted descending; sorted() keeps ties stable.
    weighted = sorted(weighted, key=lambda ic: ic[1].weight, reverse=True)
    sizes = squarify.normalize_sizes([c.weight for _, c in weighted], dx, dy)
    for (i, child), cell in zip(weighted, squarify.squarify(sizes, x, y, dx, dy)):
        _layout(child, path + (i,), (cell["x"], cell["y"], cell["dx"], cell["dy"]), out)


def partition(root: HierarchyNode, width: float, height: float) -> dict[NodePath, Polygon]:
    """Polygons for every positively weighted node, inside (0, 0, width, height)."""
    polygons: dict[NodePath, Polygon] = {}
    if root.weight <= 0:
        return polygons
    _layout(root, (), (0.0, 0.0, float(width), float(height)), polygons)
    logger.debug("Partitioned %d nodes into %sx%s", len(polygons), width, height)
    return polygons


def polygon_area(polygon: Polygon) -> float:
    """Absolute shoelace area."""
    if len(polygon) < 3:
        return 0.0
    pts = np.asarray(polygon, dtype=float)
    x, y = pts[:, 0], pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2)


def polygon_centroid(polygon: Polygon) -> tuple[float, float]:
    pts = np.asarray(polygon, dtype=float)
    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    signed = cross.sum() / 2
    if signed == 0:
        return float(x.mean()), float(y.mean())
    cx = ((x + x1) * cross).sum() / (6 * signed)
    cy = ((y + y1) * cross).sum() / (6 * signed)
    return float(cx), float(cy)
