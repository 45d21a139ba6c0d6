"""
Country CSV loader: read from a local parquet cache first, fall back to the
source file or URL.

Cache layout:  data/source_cache/{sha1(source)}.parquet

Guarantees
----------
* Local sources are re-parsed whenever the CSV is newer than its cache file.
* Remote sources auto-refresh after CACHE_MAX_AGE_HOURS.
* Corrupt files are deleted and transparently rebuilt.
* Cells are cached as raw strings; typing happens in ``records``.
* Every file carries a ``cached_at`` timestamp in parquet metadata.
"""
from __future__ import annotations

import datetime
import hashlib
import io
import logging
import os
import time
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import requests
from requests.exceptions import RequestException

from gdp_treemap.config import (
    CACHE_MAX_AGE_HOURS,
    DEFAULT_CSV,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    REQUIRED_COLUMNS,
    SOURCE_CACHE_DIR,
    SOURCE_ENV_VAR,
)
from gdp_treemap.records import Record, normalize_frame

logger = logging.getLogger(__name__)


class SourceLoadError(Exception):
    """The input file could not be read or parsed."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def resolve_source(source: str | os.PathLike | None = None) -> str:
    """Explicit argument, then $GDP_TREEMAP_SRC, then the bundled CSV."""
    if source:
        return str(source)
    return os.environ.get(SOURCE_ENV_VAR) or str(DEFAULT_CSV)


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _cache_path(source: str) -> Path:
    digest = hashlib.sha1(source.encode("utf-8")).hexdigest()
    return SOURCE_CACHE_DIR / f"{digest}.parquet"


def _is_stale(path: Path, source: str) -> bool:
    if _is_remote(source):
        age_hours = (time.time() - path.stat().st_mtime) / 3600
        return age_hours > CACHE_MAX_AGE_HOURS
    src = Path(source)
    return not src.exists() or src.stat().st_mtime > path.stat().st_mtime


def _validate(df: pd.DataFrame) -> bool:
    """Return True when the table has the columns the pipeline requires."""
    return REQUIRED_COLUMNS.issubset(df.columns)


def _safe_read(path: Path) -> pd.DataFrame | None:
    """Read a parquet file, returning None (and deleting the file) if corrupt."""
    try:
        return pd.read_parquet(path)
    except Exception:
        logger.warning("Corrupt cache file %s, deleting", path)
        path.unlink(missing_ok=True)
        return None


def _write_parquet(df: pd.DataFrame, path: Path) -> None:
    """Write a DataFrame with zstd compression and a cached_at timestamp."""
    table = pa.Table.from_pandas(df, preserve_index=False)
    meta = dict(table.schema.metadata or {})
    meta[b"cached_at"] = datetime.datetime.now(datetime.timezone.utc).isoformat().encode()
    table = table.replace_schema_metadata(meta)
    pq.write_table(table, str(path), compression="zstd")


def _parse_csv(buffer) -> pd.DataFrame:
    df = pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def fetch_remote(url: str) -> str:
    """Download *url* with retries on transient network errors."""
    for attempt in range(MAX_RETRIES):
        try:
            r = requests.get(url, timeout=REQUEST_TIMEOUT)
            r.raise_for_status()
            return r.text
        except (RequestException, ConnectionError, TimeoutError):
            logger.warning(
                "Transient error fetching %s (attempt %d/%d)",
                url, attempt + 1, MAX_RETRIES,
            )
            if attempt == MAX_RETRIES - 1:
                logger.exception("Giving up on %s", url)
                raise
            time.sleep(0.5 + attempt * 1.5)
    return ""


def read_source(source: str) -> pd.DataFrame:
    """Read the raw table from a path or URL, bypassing the cache."""
    try:
        if _is_remote(source):
            return _parse_csv(io.StringIO(fetch_remote(source)))
        return _parse_csv(source)
    except (OSError, RequestException, ValueError, pd.errors.ParserError) as exc:
        raise SourceLoadError(f"Could not load {source}: {exc}") from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def cache_status(source: str | os.PathLike | None = None) -> str:
    """``"fresh"``, ``"stale"`` or ``"missing"`` for the cache file of *source*."""
    source = resolve_source(source)
    path = _cache_path(source)
    if not path.exists():
        return "missing"
    return "stale" if _is_stale(path, source) else "fresh"


def load_table(source: str | os.PathLike | None = None, *, use_cache: bool = True) -> pd.DataFrame:
    """Load the raw string table, preferring the local parquet cache."""
    source = resolve_source(source)
    path = _cache_path(source)

    status = cache_status(source) if use_cache else "bypassed"
    if status == "fresh":
        df = _safe_read(path)
        if df is not None and _validate(df):
            return df
    elif status == "stale":
        logger.info("Stale cache for %s, will re-read", source)

    df = read_source(source)
    if not _validate(df):
        missing = sorted(REQUIRED_COLUMNS - set(df.columns))
        raise SourceLoadError(f"{source} is missing required columns: {missing}")

    if use_cache:
        _write_parquet(df, path)
        logger.info("Cached %d rows from %s", len(df), source)
    return df


def load_records(source: str | os.PathLike | None = None, *, use_cache: bool = True) -> list[Record]:
    """Load and normalize every row of the source."""
    return normalize_frame(load_table(source, use_cache=use_cache))


# ---------------------------------------------------------------------------
# Cache management utilities
# ---------------------------------------------------------------------------
def cache_stats() -> dict:
    """File count, total size and mtime range of the source cache."""
    entries = [f.stat() for f in SOURCE_CACHE_DIR.glob("*.parquet")]
    total = sum(e.st_size for e in entries)
    stats: dict = {"files": len(entries), "total_bytes": total, "total_mb": round(total / 2**20, 2)}
    if entries:
        mtimes = sorted(e.st_mtime for e in entries)
        stats["oldest"] = datetime.datetime.fromtimestamp(mtimes[0]).isoformat()
        stats["newest"] = datetime.datetime.fromtimestamp(mtimes[-1]).isoformat()
    return stats


def clear_cache(*, dry_run: bool = False) -> list[str]:
    """Delete every cached parquet file; returns the (would-be) removed names."""
    removed: list[str] = []
    for f in SOURCE_CACHE_DIR.glob("*.parquet"):
        removed.append(f.name)
        if not dry_run:
            f.unlink(missing_ok=True)
            logger.info("Removed cache file: %s", f.name)
    return removed
