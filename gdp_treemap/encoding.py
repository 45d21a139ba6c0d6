"""
Visual encoding: unemployment -> opacity, inflation -> border color,
GDP -> magnitude label, category -> palette color.

Every function here is total: None / NaN / unknown names map to a fixed
fallback instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import matplotlib.colors as mcolors

from gdp_treemap.config import (
    BASE_OPACITY,
    INFLATION_INTENSITY_PER_POINT,
    MAX_OPACITY,
    MISSING_OPACITY,
    NAME_LABEL_MIN_AREA,
    UNEMPLOYMENT_BASE,
    UNEMPLOYMENT_MAX,
    VALUE_LABEL_MIN_AREA,
)

# ---------------------------------------------------------------------------
# Palettes
# ---------------------------------------------------------------------------
CONTINENT_COLORS: dict[str, str] = {
    "Africa": "#7f5539",
    "Asia": "#0015ff",
    "Europe": "#ff7d00",
    "North America": "#073b4c",
    "South America": "#8ac926",
    "Oceania": "#ff006d",
}
FALLBACK_CONTINENT_COLOR = "#cccccc"

SECTOR_COLORS: dict[str, str] = {
    "Agriculture (% GDP)": "#228B22",
    "Industry (% GDP)": "#4169E1",
    "Service (% GDP)": "#FFD700",
    "Export (% GDP)": "#8B008B",
    "Import (% GDP)": "#FF4500",
    "Other": "#E0E0E0",
}
FALLBACK_SECTOR_COLOR = "#dddddd"


def continent_color(name: str | None) -> str:
    return CONTINENT_COLORS.get(name or "", FALLBACK_CONTINENT_COLOR)


def sector_color(name: str | None) -> str:
    return SECTOR_COLORS.get(name or "", FALLBACK_SECTOR_COLOR)


def legend_entries(mode: str) -> dict[str, str]:
    """Palette shown in the legend for a display mode ('name' or 'makeup')."""
    return dict(SECTOR_COLORS if mode == "makeup" else CONTINENT_COLORS)


# ---------------------------------------------------------------------------
# Opacity
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OpacityScale:
    base: float = UNEMPLOYMENT_BASE
    maximum: float = UNEMPLOYMENT_MAX
    base_opacity: float = BASE_OPACITY
    max_opacity: float = MAX_OPACITY
    fallback: float = MISSING_OPACITY

    def __post_init__(self):
        if not self.maximum > self.base:
            raise ValueError(f"OpacityScale needs maximum > base, got {self.base}..{self.maximum}")


DEFAULT_OPACITY_SCALE = OpacityScale()


def _missing(x: float | None) -> bool:
    return x is None or (isinstance(x, float) and math.isnan(x))


def opacity_for_unemployment(u: float | None, scale: OpacityScale = DEFAULT_OPACITY_SCALE) -> float:
    """Clamp *u* to [base, maximum] and interpolate onto the opacity range."""
    if _missing(u):
        return scale.fallback
    clamped = max(scale.base, min(scale.maximum, float(u)))
    t = (clamped - scale.base) / (scale.maximum - scale.base)
    return scale.base_opacity + t * (scale.max_opacity - scale.base_opacity)


# ---------------------------------------------------------------------------
# Inflation border
# ---------------------------------------------------------------------------
def inflation_rgb(i: float | None) -> tuple[int, int, int]:
    """Red-leaning for deflation, green-leaning for inflation, white if unknown."""
    if _missing(i):
        return 255, 255, 255
    intensity = round(min(abs(float(i)) * INFLATION_INTENSITY_PER_POINT, 255.0))
    fade = 255 - intensity
    if i < 0:
        return 255, fade, fade
    return fade, 255, fade


def inflation_color(i: float | None) -> str:
    r, g, b = inflation_rgb(i)
    return mcolors.to_hex((r / 255, g / 255, b / 255))


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------
_MAGNITUDES = (
    (1e12, "T"),
    (1e9, "B"),
    (1e6, "M"),
)


def format_magnitude(value: float | None) -> str:
    """2.5e12 -> '2.50T', 3e9 -> '3.00B'; below a million or non-finite -> 'N/A'."""
    if value is None or not math.isfinite(value):
        return "N/A"
    for threshold, suffix in _MAGNITUDES:
        if value >= threshold:
            return f"{value / threshold:.2f}{suffix}"
    return "N/A"


@dataclass(frozen=True)
class LabelLayout:
    name_fontsize: float
    show_value: bool
    value_fontsize: float
    value_offset: float


def label_layout(area: float) -> LabelLayout | None:
    """Which labels fit a shape of *area* (canvas units²) and at what size."""
    if not area > NAME_LABEL_MIN_AREA:
        return None
    side = math.sqrt(area)
    return LabelLayout(
        name_fontsize=max(10.0, side / 18),
        show_value=area > VALUE_LABEL_MIN_AREA,
        value_fontsize=max(9.0, side / 24),
        value_offset=side / 18,
    )
