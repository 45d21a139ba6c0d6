import os
import time

import pytest
import requests

from gdp_treemap import cache
from gdp_treemap.cache import SourceLoadError
from gdp_treemap.config import DEFAULT_CSV, SOURCE_ENV_VAR

CSV = """Year,Country Name,Continent Name,GDP,Unemployment,Inflation Rate
2000,Chad,Africa,"1,500,000,000",6.1,3.8
2000,Mali,Africa,2.4e9,,
,,,,,
2001,Chad,Africa,1.7e9,6.0,-0.9
"""


@pytest.fixture(autouse=True)
def cache_dir(tmp_path, monkeypatch):
    d = tmp_path / "source_cache"
    d.mkdir()
    monkeypatch.setattr(cache, "SOURCE_CACHE_DIR", d)
    return d


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "countries.csv"
    path.write_text(CSV)
    return path


def test_load_table_reads_and_caches(csv_path, cache_dir):
    assert cache.cache_status(csv_path) == "missing"
    df = cache.load_table(csv_path)
    assert list(df.columns[:4]) == ["Year", "Country Name", "Continent Name", "GDP"]
    assert len(df) == 4  # comma-only row survives parsing; records drop it
    assert df.loc[0, "GDP"] == "1,500,000,000"
    assert len(list(cache_dir.glob("*.parquet"))) == 1
    assert cache.cache_status(csv_path) == "fresh"


def test_cache_hit_skips_source(csv_path, monkeypatch):
    first = cache.load_table(csv_path)

    def boom(source):
        raise AssertionError("source should not be re-read")

    monkeypatch.setattr(cache, "read_source", boom)
    assert cache.load_table(csv_path).equals(first)


def test_newer_csv_invalidates_cache(csv_path):
    cache.load_table(csv_path)
    csv_path.write_text(CSV.replace("Mali", "Niger"))
    future = time.time() + 60
    os.utime(csv_path, (future, future))
    assert cache.cache_status(csv_path) == "stale"
    assert "Niger" in cache.load_table(csv_path)["Country Name"].tolist()


def test_corrupt_cache_is_rebuilt(csv_path):
    cache.load_table(csv_path)
    path = cache._cache_path(str(csv_path))
    path.write_bytes(b"not parquet")
    future = time.time() + 60
    os.utime(path, (future, future))
    df = cache.load_table(csv_path)
    assert len(df) == 4
    assert cache._safe_read(path) is not None


def test_use_cache_false_writes_nothing(csv_path, cache_dir):
    cache.load_table(csv_path, use_cache=False)
    assert list(cache_dir.glob("*.parquet")) == []


def test_load_records_normalizes(csv_path):
    records = cache.load_records(csv_path)
    assert [(r.year, r.country_name) for r in records] == [
        (2000, "Chad"), (2000, "Mali"), (2001, "Chad"),
    ]
    assert records[0].gdp == 1.5e9
    assert records[1].unemployment_rate is None
    assert records[2].inflation_rate == pytest.approx(-0.9)


def test_missing_file_raises(tmp_path):
    with pytest.raises(SourceLoadError):
        cache.load_table(tmp_path / "nope.csv")


def test_missing_required_columns_raise(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Country,Value\nChad,1\n")
    with pytest.raises(SourceLoadError, match="missing required columns"):
        cache.load_table(path)


def test_resolve_source_precedence(monkeypatch):
    monkeypatch.setenv(SOURCE_ENV_VAR, "/tmp/env.csv")
    assert cache.resolve_source("given.csv") == "given.csv"
    assert cache.resolve_source() == "/tmp/env.csv"
    monkeypatch.delenv(SOURCE_ENV_VAR)
    assert cache.resolve_source() == str(DEFAULT_CSV)


class _Response:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        pass


def test_remote_source_retries(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        if len(calls) == 1:
            raise requests.ConnectionError("flaky")
        return _Response(CSV)

    monkeypatch.setattr(cache.requests, "get", fake_get)
    monkeypatch.setattr(cache.time, "sleep", lambda s: None)
    df = cache.load_table("https://example.org/countries.csv")
    assert len(calls) == 2
    assert len(df) == 4
    assert cache.cache_status("https://example.org/countries.csv") == "fresh"


def test_remote_failure_becomes_load_error(monkeypatch):
    def fake_get(url, timeout):
        raise requests.Timeout("slow")

    monkeypatch.setattr(cache.requests, "get", fake_get)
    monkeypatch.setattr(cache.time, "sleep", lambda s: None)
    with pytest.raises(SourceLoadError):
        cache.load_table("https://example.org/countries.csv")


def test_cache_stats_and_clear(csv_path, cache_dir):
    assert cache.cache_stats() == {"files": 0, "total_bytes": 0, "total_mb": 0.0}
    cache.load_table(csv_path)
    stats = cache.cache_stats()
    assert stats["files"] == 1
    assert stats["total_bytes"] > 0
    assert len(cache.clear_cache(dry_run=True)) == 1
    assert len(list(cache_dir.glob("*.parquet"))) == 1
    assert len(cache.clear_cache()) == 1
    assert list(cache_dir.glob("*.parquet")) == []


def test_stats_report_age_range(csv_path, tmp_path):
    other = tmp_path / "other.csv"
    other.write_text(CSV)
    cache.load_table(csv_path)
    cache.load_table(other)
    stats = cache.cache_stats()
    assert stats["files"] == 2
    assert stats["oldest"] <= stats["newest"]
