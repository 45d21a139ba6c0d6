import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from gdp_treemap.records import Record, SectorShares  # noqa: E402


@pytest.fixture
def make_record():
    def _make(name, gdp, continent="Asia", year=2000, unemployment=None, inflation=None,
              shares=None):
        return Record(
            year=year,
            country_name=name,
            continent=continent,
            gdp=gdp,
            unemployment_rate=unemployment,
            inflation_rate=inflation,
            sector_shares=SectorShares(**(shares or {})),
        )
    return _make


@pytest.fixture
def world(make_record):
    """Two continents, one of them past the top-9 cutoff."""
    gdps = [100, 90, 80, 70, 60, 50, 40, 30, 20, 10, 9, 8]
    europe = [
        make_record(f"EU{i}", float(gdp), continent="Europe",
                    unemployment=float(i), inflation=float(i - 5))
        for i, gdp in enumerate(gdps)
    ]
    africa = [
        make_record("Nigeria", 450.0, continent="Africa",
                    shares={"agriculture": 20, "industry": 30, "service": 50}),
        make_record("Egypt", 400.0, continent="Africa"),
    ]
    other_year = [make_record("EU0", 999.0, continent="Europe", year=2001)]
    return europe + africa + other_year
