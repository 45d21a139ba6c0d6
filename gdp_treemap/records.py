"""
Record normalization: raw CSV rows -> typed, immutable ``Record`` objects.

Everything downstream (selection, hierarchy, ranking) works on ``Record``
only, never on raw rows.

Parsing policy
--------------
* Optional numeric fields (unemployment, inflation, per-capita, expenditures,
  sector shares) become ``None`` when empty, unparsable or non-finite.
* GDP always becomes a float; failures yield ``NaN`` so the ``gdp > 0`` gate
  drops the record later.
* Year becomes an ``int`` or ``None`` (NaN has no integer form).
* Nothing here raises on bad cell content.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping

import pandas as pd

from gdp_treemap.config import (
    COL_CONTINENT,
    COL_COUNTRY,
    COL_EDUCATION,
    COL_GDP,
    COL_GDP_PER_CAPITA,
    COL_HEALTH,
    COL_INFLATION,
    COL_UNEMPLOYMENT,
    COL_YEAR,
    SECTOR_COLUMNS,
    UNKNOWN_CONTINENT,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectorShares:
    """Raw sector percentages of GDP, as found in the source."""

    agriculture: float | None = None
    industry: float | None = None
    service: float | None = None
    export: float | None = None
    import_: float | None = None

    def items(self) -> Iterator[tuple[str, float | None]]:
        """Yield ``(column label, raw value)`` pairs in display order."""
        for column, attr in SECTOR_COLUMNS.items():
            yield column, getattr(self, attr)


@dataclass(frozen=True)
class Record:
    year: int | None
    country_name: str
    continent: str
    gdp: float
    unemployment_rate: float | None = None
    inflation_rate: float | None = None
    sector_shares: SectorShares = field(default_factory=SectorShares)
    gdp_per_capita: float | None = None
    education_expenditure: float | None = None
    health_expenditure: float | None = None

    @property
    def has_positive_gdp(self) -> bool:
        # NaN compares False, so unparsable GDP fails the gate too.
        return self.gdp > 0

    @property
    def continent_key(self) -> str:
        return self.continent or UNKNOWN_CONTINENT


# ---------------------------------------------------------------------------
# Cell parsing
# ---------------------------------------------------------------------------
def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _coerce(value: Any) -> float:
    """Best-effort float conversion; NaN on any failure."""
    if _is_blank(value) or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def parse_optional(value: Any) -> float | None:
    """Parse an optional numeric cell; ``None`` if missing or non-finite."""
    number = _coerce(value)
    if not math.isfinite(number):
        if not _is_blank(value):
            logger.debug("Unparsable numeric cell %r -> None", value)
        return None
    return number


def parse_gdp(value: Any) -> float:
    number = _coerce(value)
    return number if math.isfinite(number) else math.nan


def parse_year(value: Any) -> int | None:
    number = _coerce(value)
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    return str(value).strip()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def normalize_row(row: Mapping[str, Any]) -> Record | None:
    """Turn one raw row (column name -> raw value) into a ``Record``.

    Returns None only for rows where every cell is blank.
    """
    cells = {str(k).strip(): v for k, v in row.items()}
    if all(_is_blank(v) for v in cells.values()):
        return None

    shares = SectorShares(**{
        attr: parse_optional(cells.get(column))
        for column, attr in SECTOR_COLUMNS.items()
    })
    return Record(
        year=parse_year(cells.get(COL_YEAR)),
        country_name=_text(cells.get(COL_COUNTRY)),
        continent=_text(cells.get(COL_CONTINENT)),
        gdp=parse_gdp(cells.get(COL_GDP)),
        unemployment_rate=parse_optional(cells.get(COL_UNEMPLOYMENT)),
        inflation_rate=parse_optional(cells.get(COL_INFLATION)),
        sector_shares=shares,
        gdp_per_capita=parse_optional(cells.get(COL_GDP_PER_CAPITA)),
        education_expenditure=parse_optional(cells.get(COL_EDUCATION)),
        health_expenditure=parse_optional(cells.get(COL_HEALTH)),
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> list[Record]:
    records = []
    skipped = 0
    for row in rows:
        record = normalize_row(row)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    if skipped:
        logger.debug("Skipped %d blank rows", skipped)
    return records


def normalize_frame(df: pd.DataFrame) -> list[Record]:
    """Normalize every row of a raw (string-typed) DataFrame."""
    if df.empty:
        return []
    return normalize_rows(df.to_dict(orient="records"))
