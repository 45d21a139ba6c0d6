"""
GDP hierarchy: World -> continents -> top-N countries (+ "Others") -> sectors.

The tree is rebuilt from scratch for every filter state.  Only leaves carry a
``value``; every other node's ``weight`` is the sum of its children, so a
continent's weight always equals the summed GDP of its filtered members.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Iterator

from gdp_treemap.config import OTHERS_PREFIX, ROOT_NAME, SHARE_EPSILON, TOP_N
from gdp_treemap.records import Record
from gdp_treemap.selection import FilterState, select

logger = logging.getLogger(__name__)

# Child-index path from the root; the root itself is ().
NodePath = tuple[int, ...]


class NodeKind(enum.Enum):
    ROOT = "root"
    CONTINENT = "continent"
    COUNTRY = "country"
    REMAINDER = "remainder"
    SECTOR = "sector"


@dataclass(frozen=True)
class HierarchyNode:
    name: str
    kind: NodeKind
    value: float | None = None
    children: tuple[HierarchyNode, ...] = ()
    continent: str | None = None
    unemployment: float | None = None
    inflation: float | None = None
    record: Record | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def weight(self) -> float:
        if self.children:
            return math.fsum(child.weight for child in self.children)
        return self.value or 0.0

    def to_dict(self) -> dict:
        """Plain nested dict (name / value / children) for export."""
        out: dict = {"name": self.name, "kind": self.kind.value}
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        else:
            out["value"] = self.value
        return out


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def others_label(continent: str) -> str:
    return f"{OTHERS_PREFIX}{continent})"


def _mean(values: Iterable[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return math.fsum(present) / len(present)


def sector_shares(record: Record) -> dict[str, float]:
    """Sector label -> share of GDP, summing to exactly 1.

    Missing and negative percentages count as zero.  Sectors below
    SHARE_EPSILON of the raw total are dropped before rescaling.  Returns an
    empty dict when there is nothing to split.
    """
    raw = {label: max(value or 0.0, 0.0) for label, value in record.sector_shares.items()}
    total = math.fsum(raw.values())
    if total <= 0:
        return {}
    kept = {label: v for label, v in raw.items() if v / total >= SHARE_EPSILON}
    kept_total = math.fsum(kept.values())
    return {label: v / kept_total for label, v in kept.items()}


def _sector_children(record: Record) -> tuple[HierarchyNode, ...]:
    return tuple(
        HierarchyNode(
            name=label,
            kind=NodeKind.SECTOR,
            value=record.gdp * share,
            continent=record.continent_key,
            unemployment=record.unemployment_rate,
            inflation=record.inflation_rate,
            record=record,
        )
        for label, share in sector_shares(record).items()
    )


def _country_node(record: Record) -> HierarchyNode:
    children = () if record.country_name.startswith(OTHERS_PREFIX) else _sector_children(record)
    return HierarchyNode(
        name=record.country_name,
        kind=NodeKind.COUNTRY,
        value=None if children else record.gdp,
        children=children,
        continent=record.continent_key,
        unemployment=record.unemployment_rate,
        inflation=record.inflation_rate,
        record=record,
    )


def _remainder_node(continent: str, members: list[Record]) -> HierarchyNode:
    return HierarchyNode(
        name=others_label(continent),
        kind=NodeKind.REMAINDER,
        value=math.fsum(r.gdp for r in members),
        continent=continent,
        unemployment=_mean(r.unemployment_rate for r in members),
        inflation=_mean(r.inflation_rate for r in members),
    )


def _continent_node(continent: str, members: list[Record], top_n: int) -> HierarchyNode:
    # sorted() is stable: equal GDPs keep their input order.
    ranked = sorted(members, key=lambda r: r.gdp, reverse=True)
    children = [_country_node(r) for r in ranked[:top_n]]
    if len(ranked) > top_n:
        children.append(_remainder_node(continent, ranked[top_n:]))
    return HierarchyNode(
        name=continent,
        kind=NodeKind.CONTINENT,
        children=tuple(children),
        continent=continent,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def build_hierarchy(
    records: Iterable[Record],
    state: FilterState,
    top_n: int = TOP_N,
) -> HierarchyNode:
    """Build the World tree for *state*.

    An empty selection gives a root with no children, which callers treat as
    "nothing to render".
    """
    groups: dict[str, list[Record]] = {}
    for record in select(records, state):
        groups.setdefault(record.continent_key, []).append(record)

    continents = tuple(
        _continent_node(name, members, top_n) for name, members in groups.items()
    )
    logger.debug(
        "Built hierarchy for %s: %d continents, %d records",
        state.year, len(continents), sum(len(m) for m in groups.values()),
    )
    return HierarchyNode(name=ROOT_NAME, kind=NodeKind.ROOT, children=continents)


def iter_nodes(node: HierarchyNode, path: NodePath = ()) -> Iterator[tuple[NodePath, HierarchyNode]]:
    """Depth-first ``(path, node)`` pairs, parents before children.

    Paths are child-index tuples: the root is ``()``, its first continent
    ``(0,)``.  Sibling names can repeat, sibling indices cannot.
    """
    yield path, node
    for i, child in enumerate(node.children):
        yield from iter_nodes(child, path + (i,))


def node_at(root: HierarchyNode, path: NodePath) -> HierarchyNode:
    node = root
    for i in path:
        node = node.children[i]
    return node


def iter_leaves(node: HierarchyNode) -> Iterator[HierarchyNode]:
    for _, n in iter_nodes(node):
        if n.is_leaf and n.kind is not NodeKind.ROOT:
            yield n


def continent_totals(root: HierarchyNode) -> dict[str, float]:
    return {child.name: child.weight for child in root.children}
