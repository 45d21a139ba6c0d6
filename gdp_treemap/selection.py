"""
Selection filter and immutable filter state.

``in_scope`` is the one predicate shared by the hierarchy builder and the
ranking view, so both always agree on which records take part.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from gdp_treemap.records import Record


@dataclass(frozen=True)
class FilterState:
    """Selected year plus country / continent sets.

    An empty set means "no restriction", not "nothing selected".
    """

    year: int | None
    countries: frozenset[str] = field(default_factory=frozenset)
    continents: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of names but always store frozensets.
        object.__setattr__(self, "countries", frozenset(self.countries))
        object.__setattr__(self, "continents", frozenset(self.continents))

    def with_year(self, year: int) -> FilterState:
        return replace(self, year=year)

    def with_country(self, country: str, continent: str | None = None,
                     continent_countries: Iterable[str] = ()) -> FilterState:
        """Add a country; the continent follows once all its countries are in."""
        countries = self.countries | {country}
        continents = self.continents
        members = set(continent_countries)
        if continent and members and members <= countries:
            continents = continents | {continent}
        return replace(self, countries=countries, continents=continents)

    def without_country(self, country: str, continent: str | None = None) -> FilterState:
        continents = self.continents - {continent} if continent else self.continents
        return replace(self, countries=self.countries - {country}, continents=continents)

    def with_continent(self, continent: str, countries: Iterable[str] = ()) -> FilterState:
        return replace(
            self,
            countries=self.countries | set(countries),
            continents=self.continents | {continent},
        )

    def without_continent(self, continent: str, countries: Iterable[str] = ()) -> FilterState:
        return replace(
            self,
            countries=self.countries - set(countries),
            continents=self.continents - {continent},
        )

    def select_all(self, continent_countries: Mapping[str, Iterable[str]]) -> FilterState:
        countries: set[str] = set()
        for names in continent_countries.values():
            countries.update(names)
        return replace(self, countries=countries, continents=set(continent_countries))

    def cleared(self) -> FilterState:
        return FilterState(year=self.year)


def in_scope(record: Record, state: FilterState) -> bool:
    """True when *record* participates in views for *state*."""
    if record.year is None or record.year != state.year:
        return False
    if not record.country_name or not record.has_positive_gdp:
        return False
    if state.countries and record.country_name not in state.countries:
        return False
    if state.continents and record.continent not in state.continents:
        return False
    return True


def select(records: Iterable[Record], state: FilterState) -> list[Record]:
    """Records in scope for *state*, in input order."""
    return [r for r in records if in_scope(r, state)]


def year_bounds(records: Iterable[Record]) -> tuple[int, int] | None:
    years = [r.year for r in records if r.year is not None]
    if not years:
        return None
    return min(years), max(years)


def continent_country_map(records: Iterable[Record]) -> dict[str, list[str]]:
    """Continent -> sorted country names, continents sorted alphabetically."""
    grouped: dict[str, set[str]] = {}
    for r in records:
        if r.continent and r.country_name:
            grouped.setdefault(r.continent, set()).add(r.country_name)
    return {cont: sorted(grouped[cont]) for cont in sorted(grouped)}
