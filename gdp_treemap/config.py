"""Project paths and settings."""
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
SOURCE_CACHE_DIR = DATA_DIR / "source_cache"
OUTPUTS_DIR = PROJECT_ROOT / "outputs"

OUTPUTS_DIR.mkdir(parents=True, exist_ok=True)
DATA_DIR.mkdir(parents=True, exist_ok=True)
SOURCE_CACHE_DIR.mkdir(parents=True, exist_ok=True)

# ---------------------------------------------------------------------------
# Input source
# ---------------------------------------------------------------------------
# The app's ?src= query parameter wins over the environment variable, which
# wins over the bundled CSV.
DEFAULT_CSV = DATA_DIR / "countries.csv"
SOURCE_ENV_VAR: str = "GDP_TREEMAP_SRC"

# ---------------------------------------------------------------------------
# Cache behaviour
# ---------------------------------------------------------------------------
# Remote sources older than this are re-downloaded.  Local files are
# re-parsed whenever their mtime is newer than the cached parquet.
CACHE_MAX_AGE_HOURS: int = 24
MAX_RETRIES: int = 3
REQUEST_TIMEOUT: int = 60

# ---------------------------------------------------------------------------
# Input columns
# ---------------------------------------------------------------------------
COL_YEAR = "Year"
COL_COUNTRY = "Country Name"
COL_CONTINENT = "Continent Name"
COL_GDP = "GDP"
COL_UNEMPLOYMENT = "Unemployment"
COL_INFLATION = "Inflation Rate"
COL_GDP_PER_CAPITA = "GDP Per Capita"
COL_EDUCATION = "Education Expenditure"
COL_HEALTH = "Health Expenditure"

# Sector column -> short field name, in display order.
SECTOR_COLUMNS: dict[str, str] = {
    "Agriculture (% GDP)": "agriculture",
    "Industry (% GDP)": "industry",
    "Service (% GDP)": "service",
    "Export (% GDP)": "export",
    "Import (% GDP)": "import_",
}

# A source must contain at least these columns to be usable.
REQUIRED_COLUMNS: frozenset[str] = frozenset({
    COL_YEAR, COL_COUNTRY, COL_GDP,
})

# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------
TOP_N: int = 9            # countries kept per continent before "Others"
TOP_K: int = 5            # leaderboard length
SHARE_EPSILON: float = 1e-6
OTHERS_PREFIX: str = "Others ("
UNKNOWN_CONTINENT: str = "Unknown"
ROOT_NAME: str = "World"

# ---------------------------------------------------------------------------
# Visual encoding
# ---------------------------------------------------------------------------
# Unemployment (%) is clamped to [BASE, MAX] and mapped linearly onto
# [BASE_OPACITY, MAX_OPACITY].  Missing values get MISSING_OPACITY.
UNEMPLOYMENT_BASE: float = 4.0
UNEMPLOYMENT_MAX: float = 15.0
BASE_OPACITY: float = 1.0
MAX_OPACITY: float = 0.3
MISSING_OPACITY: float = 1.0

INFLATION_INTENSITY_PER_POINT: float = 20.0

# Shape areas are in canvas units (1 unit == 1 px at 100 dpi).
NAME_LABEL_MIN_AREA: float = 1200.0
VALUE_LABEL_MIN_AREA: float = 4200.0

CANVAS_WIDTH: int = 1000
CANVAS_HEIGHT: int = 620
RENDER_DPI: int = 100
