"""Top-K GDP leaderboard, filtered exactly like the hierarchy."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from gdp_treemap.config import TOP_K
from gdp_treemap.records import Record
from gdp_treemap.selection import FilterState, select


@dataclass(frozen=True)
class RankedCountry:
    rank: int
    name: str
    continent: str
    gdp: float

    @property
    def formatted_gdp(self) -> str:
        """Trillions to two decimals from 0.1T up, whole billions below."""
        trillions = self.gdp / 1e12
        if trillions >= 0.1:
            return f"${trillions:.2f}T"
        return f"${self.gdp / 1e9:.0f}B"


def top_k(records: Iterable[Record], state: FilterState, k: int = TOP_K) -> list[RankedCountry]:
    ranked = sorted(select(records, state), key=lambda r: r.gdp, reverse=True)
    return [
        RankedCountry(rank=i, name=r.country_name, continent=r.continent, gdp=r.gdp)
        for i, r in enumerate(ranked[:max(k, 0)], 1)
    ]


def leaderboard_frame(entries: list[RankedCountry]) -> pd.DataFrame:
    """Display table: Rank, Country, Continent, GDP (formatted)."""
    return pd.DataFrame(
        [
            {"Rank": e.rank, "Country": e.name, "Continent": e.continent, "GDP": e.formatted_gdp}
            for e in entries
        ],
        columns=["Rank", "Country", "Continent", "GDP"],
    )
