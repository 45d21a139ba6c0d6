"""
GDP treemap rendering: hierarchy + polygons -> styled shapes -> matplotlib.

Display modes
-------------
* ``"name"``   one shape per country / Others node, filled by continent.
* ``"makeup"`` countries with sector data are split into sector slices,
               filled by sector, with an outline in the inflation color.

Opacity encodes unemployment, border color encodes inflation, area encodes
GDP.  Nodes the partitioner left without a polygon are skipped.

Usage:
    python -m gdp_treemap.render 2015
    python -m gdp_treemap.render 2015 --mode makeup --source data/countries.csv
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt

from gdp_treemap.config import CANVAS_HEIGHT, CANVAS_WIDTH, OUTPUTS_DIR, RENDER_DPI
from gdp_treemap.encoding import (
    DEFAULT_OPACITY_SCALE,
    OpacityScale,
    continent_color,
    format_magnitude,
    inflation_color,
    label_layout,
    legend_entries,
    opacity_for_unemployment,
    sector_color,
)
from gdp_treemap.hierarchy import HierarchyNode, NodeKind, NodePath, build_hierarchy
from gdp_treemap.partition import Polygon, partition, polygon_area, polygon_centroid
from gdp_treemap.records import Record
from gdp_treemap.selection import FilterState

logger = logging.getLogger(__name__)

MODES = ("name", "makeup")
CONTINENT_OUTLINE = "#00000014"
SLICE_OUTLINE = "#0000000d"


@dataclass(frozen=True)
class TextLabel:
    text: str
    x: float
    y: float
    fontsize: float
    color: str
    weight: str = "normal"
    va: str = "center"


@dataclass(frozen=True)
class Shape:
    path: NodePath
    name: str
    kind: NodeKind
    polygon: Polygon
    facecolor: str | None
    alpha: float
    edgecolor: str
    linewidth: float
    labels: tuple[TextLabel, ...] = field(default_factory=tuple)
    names: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Shape building
# ---------------------------------------------------------------------------
def _labels(node: HierarchyNode, polygon: Polygon, mode: str) -> tuple[TextLabel, ...]:
    layout = label_layout(polygon_area(polygon))
    if layout is None:
        return ()
    cx, cy = polygon_centroid(polygon)
    dark = mode == "makeup"
    labels = [TextLabel(node.name, cx, cy, layout.name_fontsize,
                        "#111111" if dark else "#ffffff", weight="bold")]
    if layout.show_value:
        labels.append(TextLabel(
            f"${format_magnitude(node.weight)}", cx, cy + layout.value_offset,
            layout.value_fontsize, "#333333" if dark else "#ffffff", va="top",
        ))
    return tuple(labels)


def _region_shapes(node: HierarchyNode, path: NodePath, names: tuple[str, ...],
                   polygons: dict[NodePath, Polygon], mode: str,
                   use_opacity: bool, opacity_scale: OpacityScale) -> list[Shape]:
    polygon = polygons.get(path)
    if polygon is None:
        return []
    alpha = opacity_for_unemployment(node.unemployment, opacity_scale) if use_opacity else 1.0
    border = inflation_color(node.inflation)
    labels = _labels(node, polygon, mode)

    if mode == "name" or node.is_leaf:
        return [Shape(path, node.name, node.kind, polygon, continent_color(node.continent),
                      alpha, border, 2.0, labels, names)]

    shapes = []
    for i, part in enumerate(node.children):
        part_path = path + (i,)
        part_poly = polygons.get(part_path)
        if part_poly is None:
            continue
        shapes.append(Shape(part_path, part.name, part.kind, part_poly,
                            sector_color(part.name), alpha, SLICE_OUTLINE, 1.0,
                            names=names + (part.name,)))
    shapes.append(Shape(path, node.name, node.kind, polygon, None, 1.0, border, 2.0, labels, names))
    return shapes


def build_shapes(
    root: HierarchyNode,
    polygons: dict[NodePath, Polygon],
    mode: str = "name",
    use_opacity: bool = True,
    opacity_scale: OpacityScale = DEFAULT_OPACITY_SCALE,
) -> list[Shape]:
    """Resolve fill, opacity, border and labels for every drawable node.

    ``Shape.path`` is the node's child-index path (the ``polygons`` key);
    ``Shape.names`` is the same path spelled with display names.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown display mode {mode!r}; expected one of {MODES}")
    shapes: list[Shape] = []
    for ci, cont in enumerate(root.children):
        cont_path = (ci,)
        cont_names = (root.name, cont.name)
        cont_poly = polygons.get(cont_path)
        if cont_poly is None:
            continue
        shapes.append(Shape(cont_path, cont.name, cont.kind, cont_poly, None, 1.0,
                            CONTINENT_OUTLINE, 2.0, names=cont_names))
        for ni, node in enumerate(cont.children):
            shapes.extend(_region_shapes(node, cont_path + (ni,), cont_names + (node.name,),
                                         polygons, mode, use_opacity, opacity_scale))
    return shapes


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------
def _px_to_pt(px: float, dpi: int = RENDER_DPI) -> float:
    return px * 72 / dpi


def draw_shapes(shapes: Iterable[Shape], ax: plt.Axes,
                width: float = CANVAS_WIDTH, height: float = CANVAS_HEIGHT) -> None:
    """Draw shapes onto *ax* in canvas coordinates (origin top-left)."""
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_aspect("equal")
    ax.axis("off")
    for shape in shapes:
        if shape.facecolor is not None:
            ax.add_patch(mpatches.Polygon(shape.polygon, closed=True, facecolor=shape.facecolor,
                                          alpha=shape.alpha, edgecolor="none"))
        ax.add_patch(mpatches.Polygon(shape.polygon, closed=True, fill=False,
                                      edgecolor=shape.edgecolor, linewidth=shape.linewidth))
        for label in shape.labels:
            ax.text(label.x, label.y, label.text, ha="center", va=label.va,
                    color=label.color, fontsize=_px_to_pt(label.fontsize),
                    fontweight=label.weight, clip_on=True)


def _draw_legend(fig: plt.Figure, mode: str) -> None:
    handles = [mpatches.Patch(facecolor=color, label=name)
               for name, color in legend_entries(mode).items()]
    fig.legend(handles=handles, loc="lower center", ncol=len(handles), frameon=False, fontsize=8)


def render_figure(
    records: list[Record],
    state: FilterState,
    mode: str = "name",
    use_opacity: bool = True,
    opacity_scale: OpacityScale = DEFAULT_OPACITY_SCALE,
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
) -> plt.Figure:
    """Build, partition, encode and draw the treemap for *state*."""
    root = build_hierarchy(records, state)
    fig, ax = plt.subplots(figsize=(width / RENDER_DPI, height / RENDER_DPI + 0.6), dpi=RENDER_DPI)
    if not root.children:
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.axis("off")
        ax.text(width / 2, height / 2, f"No data for {state.year}", ha="center", va="center",
                fontsize=16, color="gray")
        return fig

    polygons = partition(root, width, height)
    shapes = build_shapes(root, polygons, mode=mode, use_opacity=use_opacity,
                          opacity_scale=opacity_scale)
    draw_shapes(shapes, ax, width, height)
    _draw_legend(fig, mode)
    ax.set_title(f"GDP by continent and country ({state.year})\n"
                 f"Size: GDP  ·  Opacity: unemployment  ·  Border: inflation", fontsize=11)
    return fig


def run(
    year: int,
    records: list[Record] | None = None,
    mode: str = "name",
    use_opacity: bool = True,
    source: str | None = None,
) -> Path:
    """Render one year to outputs/gdp_treemap_<year>_<mode>.png and return the path."""
    if records is None:
        from gdp_treemap.cache import load_records
        records = load_records(source)
    fig = render_figure(records, FilterState(year=year), mode=mode, use_opacity=use_opacity)
    out_path = OUTPUTS_DIR / f"gdp_treemap_{year}_{mode}.png"
    fig.savefig(out_path, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.info("Saved %s", out_path)
    return out_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Render the GDP treemap for one year")
    parser.add_argument("year", type=int)
    parser.add_argument("--mode", choices=MODES, default="name")
    parser.add_argument("--no-opacity", dest="use_opacity", action="store_false")
    parser.add_argument("--source", default=None, help="CSV path or URL")
    args = parser.parse_args()
    print(run(args.year, mode=args.mode, use_opacity=args.use_opacity, source=args.source))
