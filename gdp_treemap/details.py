"""
Detail readouts for the drawn tree: one row per country / Others region, and
a per-sector breakdown for a single country.
"""
from __future__ import annotations

import pandas as pd

from gdp_treemap.config import (
    COL_EDUCATION,
    COL_GDP_PER_CAPITA,
    COL_HEALTH,
    COL_INFLATION,
    SECTOR_COLUMNS,
)
from gdp_treemap.encoding import format_magnitude
from gdp_treemap.hierarchy import HierarchyNode, NodeKind, NodePath, iter_nodes

COL_UNEMPLOYMENT_RATE = "Unemployment Rate"
COL_SHARE_OF_GDP = "Percentage of Total GDP"

DETAIL_COLUMNS = [
    "Country", "Continent", "GDP", COL_GDP_PER_CAPITA,
    *SECTOR_COLUMNS,
    COL_INFLATION, COL_UNEMPLOYMENT_RATE, COL_EDUCATION, COL_HEALTH,
]
BREAKDOWN_COLUMNS = ["Sector", "Value", COL_SHARE_OF_GDP]

_REGION_KINDS = (NodeKind.COUNTRY, NodeKind.REMAINDER)


def region_paths(root: HierarchyNode) -> list[NodePath]:
    """Paths of every country and Others node, in tree order."""
    return [path for path, node in iter_nodes(root) if node.kind in _REGION_KINDS]


def node_details(root: HierarchyNode) -> pd.DataFrame:
    """Indicator table for every region drawn in the treemap.

    Others rows carry their members' mean inflation and unemployment; the
    record-level columns (per-capita, sectors, expenditures) stay empty.
    """
    rows = []
    for _, node in iter_nodes(root):
        if node.kind not in _REGION_KINDS:
            continue
        row = {
            "Country": node.name,
            "Continent": node.continent,
            "GDP": f"${format_magnitude(node.weight)}",
            COL_INFLATION: node.inflation,
            COL_UNEMPLOYMENT_RATE: node.unemployment,
        }
        rec = node.record
        if rec is not None:
            row[COL_GDP_PER_CAPITA] = rec.gdp_per_capita
            row[COL_EDUCATION] = rec.education_expenditure
            row[COL_HEALTH] = rec.health_expenditure
            row.update(rec.sector_shares.items())
        rows.append(row)
    return pd.DataFrame(rows, columns=DETAIL_COLUMNS)


def sector_breakdown(node: HierarchyNode) -> pd.DataFrame:
    """Value and share of GDP for each sector slice of *node*."""
    total = node.weight
    rows = []
    if total > 0:
        for part in node.children:
            if part.kind is not NodeKind.SECTOR:
                continue
            rows.append({
                "Sector": part.name,
                "Value": f"${format_magnitude(part.weight)}",
                COL_SHARE_OF_GDP: round(part.weight / total * 100, 1),
            })
    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)
