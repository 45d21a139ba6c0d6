"""
Render the GDP treemap (and print the top-5 leaderboard) for a range of years.

Run from project root:
    python -m scripts.render_years
    python -m scripts.render_years --years 2000 2010 2020 --mode makeup
    python -m scripts.render_years --source https://example.org/countries.csv --refresh
    python -m scripts.render_years --stats
"""
from __future__ import annotations

import argparse
import logging
import sys

sys.path.insert(0, ".")
from gdp_treemap.cache import (  # noqa: E402
    SourceLoadError,
    cache_stats,
    cache_status,
    clear_cache,
    load_records,
    resolve_source,
)
from gdp_treemap.ranking import top_k  # noqa: E402
from gdp_treemap.render import MODES, run  # noqa: E402
from gdp_treemap.selection import FilterState, year_bounds  # noqa: E402


def _safe_print(msg: str) -> None:
    try:
        print(msg, flush=True)
    except UnicodeEncodeError:
        print(msg.encode("ascii", errors="replace").decode(), flush=True)


def render_years(
    years: list[int] | None = None,
    mode: str = "name",
    use_opacity: bool = True,
    source: str | None = None,
) -> int:
    _safe_print(f"Source: {resolve_source(source)} (cache {cache_status(source)})")
    try:
        records = load_records(source)
    except SourceLoadError as exc:
        _safe_print(f"ERROR: {exc}")
        return 1

    if not years:
        bounds = year_bounds(records)
        if bounds is None:
            _safe_print("No usable years in the source.")
            return 1
        years = list(range(bounds[0], bounds[1] + 1))

    _safe_print(f"Rendering {len(years)} year(s) from {len(records)} records ({mode} mode)...")
    for year in years:
        out_path = run(year, records=records, mode=mode, use_opacity=use_opacity)
        leaders = top_k(records, FilterState(year=year))
        board = ", ".join(f"{e.rank}. {e.name} {e.formatted_gdp}" for e in leaders) or "no data"
        _safe_print(f"  {year}  ->  {out_path.name}  |  {board}")

    _safe_print("All done.")
    return 0


def _print_stats() -> None:
    stats = cache_stats()
    _safe_print(f"Source cache: {stats['files']} file(s), {stats['total_mb']} MB")
    if stats["files"]:
        _safe_print(f"  oldest {stats['oldest']}  newest {stats['newest']}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render GDP treemaps for one or more years")
    parser.add_argument(
        "--years", nargs="+", type=int, default=None,
        help="Years to render (default: every year in the source)",
    )
    parser.add_argument("--mode", choices=MODES, default="name")
    parser.add_argument("--no-opacity", dest="use_opacity", action="store_false")
    parser.add_argument("--source", default=None, help="CSV path or URL")
    parser.add_argument("--refresh", action="store_true", help="Drop the parquet cache first")
    parser.add_argument("--stats", action="store_true", help="Print cache statistics and exit")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.stats:
        _print_stats()
        return 0
    if args.refresh:
        removed = clear_cache()
        _safe_print(f"Cleared {len(removed)} cache file(s).")
    return render_years(args.years, mode=args.mode, use_opacity=args.use_opacity, source=args.source)


if __name__ == "__main__":
    sys.exit(main())
