import pytest

from gdp_treemap.encoding import (
    CONTINENT_COLORS,
    FALLBACK_CONTINENT_COLOR,
    FALLBACK_SECTOR_COLOR,
    SECTOR_COLORS,
    OpacityScale,
    continent_color,
    format_magnitude,
    inflation_color,
    inflation_rgb,
    label_layout,
    legend_entries,
    opacity_for_unemployment,
    sector_color,
)


# ---------------------------------------------------------------------------
# Opacity
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("u", [None, float("nan")])
def test_opacity_fallback(u):
    assert opacity_for_unemployment(u) == 1.0
    assert opacity_for_unemployment(u, OpacityScale(fallback=0.15)) == 0.15


@pytest.mark.parametrize("u, expected", [
    (4, 1.0),
    (15, 0.3),
    (9.5, 0.65),
    (0, 1.0),      # saturates below BASE
    (-3, 1.0),
    (40, 0.3),     # saturates above MAX
])
def test_opacity_clamped_linear(u, expected):
    assert opacity_for_unemployment(u) == pytest.approx(expected)


def test_opacity_higher_unemployment_is_more_transparent():
    assert opacity_for_unemployment(5) > opacity_for_unemployment(10) > opacity_for_unemployment(14)


def test_opacity_custom_endpoints():
    scale = OpacityScale(base_opacity=0.2, max_opacity=0.9)
    assert opacity_for_unemployment(4, scale) == pytest.approx(0.2)
    assert opacity_for_unemployment(15, scale) == pytest.approx(0.9)


# ---------------------------------------------------------------------------
# Inflation
# ---------------------------------------------------------------------------
def test_inflation_missing_is_white():
    assert inflation_rgb(None) == (255, 255, 255)
    assert inflation_rgb(float("nan")) == (255, 255, 255)
    assert inflation_color(None) == "#ffffff"


def test_inflation_zero_is_defined():
    assert inflation_rgb(0) == (255, 255, 255)
    assert inflation_color(0) == "#ffffff"


def test_inflation_hue_family():
    deflation = inflation_rgb(-50)
    inflation = inflation_rgb(50)
    assert all(0 <= ch <= 255 for ch in deflation + inflation)
    assert deflation == (255, 0, 0)
    assert inflation == (0, 255, 0)
    assert deflation != inflation


def test_inflation_saturation_law():
    assert inflation_rgb(-2) == (255, 215, 215)
    assert inflation_rgb(3) == (195, 255, 195)
    assert inflation_rgb(1e9) == (0, 255, 0)
    assert inflation_rgb(-1e9) == (255, 0, 0)


def test_inflation_is_symmetric_in_magnitude():
    r, g, b = inflation_rgb(-4.2)
    r2, g2, b2 = inflation_rgb(4.2)
    assert (g, b) == (r2, b2)


def test_inflation_color_hex():
    assert inflation_color(3) == "#c3ffc3"


# ---------------------------------------------------------------------------
# Magnitude labels
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("value, expected", [
    (2_500_000_000_000, "2.50T"),
    (1e12, "1.00T"),
    (3_000_000_000, "3.00B"),
    (999_999_999, "1000.00M"),
    (4_560_000, "4.56M"),
    (500, "N/A"),
    (0, "N/A"),
    (-3e12, "N/A"),
    (None, "N/A"),
    (float("nan"), "N/A"),
    (float("inf"), "N/A"),
])
def test_format_magnitude(value, expected):
    assert format_magnitude(value) == expected


# ---------------------------------------------------------------------------
# Label layout
# ---------------------------------------------------------------------------
def test_small_shapes_get_no_labels():
    assert label_layout(0) is None
    assert label_layout(1200) is None


def test_name_only_between_thresholds():
    layout = label_layout(2500)
    assert layout is not None
    assert not layout.show_value
    assert layout.name_fontsize == 10.0   # sqrt(2500)/18 < 10


def test_value_label_and_font_scaling():
    layout = label_layout(360_000)       # side 600
    assert layout.show_value
    assert layout.name_fontsize == pytest.approx(600 / 18)
    assert layout.value_fontsize == pytest.approx(25.0)
    assert layout.value_offset == pytest.approx(600 / 18)
    assert label_layout(4300).value_fontsize == 9.0


# ---------------------------------------------------------------------------
# Category colors
# ---------------------------------------------------------------------------
def test_category_lookup_is_total():
    assert continent_color("Asia") == CONTINENT_COLORS["Asia"]
    assert continent_color("Atlantis") == FALLBACK_CONTINENT_COLOR
    assert continent_color(None) == FALLBACK_CONTINENT_COLOR
    assert sector_color("Service (% GDP)") == SECTOR_COLORS["Service (% GDP)"]
    assert sector_color("Mining") == FALLBACK_SECTOR_COLOR


def test_legend_entries_follow_mode():
    assert legend_entries("name") == CONTINENT_COLORS
    assert legend_entries("makeup") == SECTOR_COLORS
    assert legend_entries("anything") == CONTINENT_COLORS


@pytest.mark.parametrize("base, maximum", [(5, 5), (15, 4)])
def test_opacity_scale_rejects_empty_range(base, maximum):
    with pytest.raises(ValueError):
        OpacityScale(base=base, maximum=maximum)
