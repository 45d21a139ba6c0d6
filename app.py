"""
GDP Treemap: interactive Streamlit app.
Run with: streamlit run app.py
Append ?src=<csv path or URL> to the page URL to load a different file.
"""
import matplotlib.pyplot as plt
import streamlit as st

from gdp_treemap.cache import SourceLoadError, load_records, resolve_source
from gdp_treemap.config import TOP_K
from gdp_treemap.details import node_details, region_paths, sector_breakdown
from gdp_treemap.encoding import legend_entries
from gdp_treemap.hierarchy import build_hierarchy, node_at
from gdp_treemap.ranking import leaderboard_frame, top_k
from gdp_treemap.render import render_figure
from gdp_treemap.selection import FilterState, continent_country_map, year_bounds

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="GDP Treemap",
    page_icon="🌍",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Cached data loaders
# ---------------------------------------------------------------------------
@st.cache_data(show_spinner="Loading country data...", ttl=3600)
def get_records(source: str):
    return load_records(source)


# The ?src= override is read once per session, at startup.
if "source" not in st.session_state:
    st.session_state["source"] = resolve_source(st.query_params.get("src", ""))
source = st.session_state["source"]

try:
    records = get_records(source)
except SourceLoadError as e:
    st.error(f"Could not load data: {e}")
    st.stop()

bounds = year_bounds(records)
if bounds is None:
    st.warning("The data file has no usable years.")
    st.stop()

groups = continent_country_map(records)

if "filters" not in st.session_state:
    st.session_state["filters"] = FilterState(year=bounds[0])
filters: FilterState = st.session_state["filters"]

# ---------------------------------------------------------------------------
# Sidebar: selections
# ---------------------------------------------------------------------------
with st.sidebar:
    st.markdown("### Countries & Continents")
    st.caption(
        f"{len(filters.countries)} countries, {len(filters.continents)} continents selected "
        "(nothing selected shows everything)"
    )
    col_all, col_clear = st.columns(2)
    if col_all.button("Select All", key="btn_all"):
        filters = filters.select_all(groups)
    if col_clear.button("Clear All", key="btn_clear"):
        filters = filters.cleared()

    for continent, countries in groups.items():
        picked = [c for c in countries if c in filters.countries]
        with st.expander(f"{continent} ({len(picked)}/{len(countries)})"):
            cont_on = st.checkbox(
                f"All of {continent}",
                value=continent in filters.continents,
                key=f"cont_{continent}_{continent in filters.continents}",
            )
            if cont_on and continent not in filters.continents:
                filters = filters.with_continent(continent, countries)
            elif not cont_on and continent in filters.continents:
                filters = filters.without_continent(continent, countries)

            for country in countries:
                on = st.checkbox(country, value=country in filters.countries,
                                 key=f"country_{continent}_{country}_{country in filters.countries}")
                if on and country not in filters.countries:
                    filters = filters.with_country(country, continent, countries)
                elif not on and country in filters.countries:
                    filters = filters.without_country(country, continent)

    st.divider()
    st.caption(f"Data: {source}")

# ---------------------------------------------------------------------------
# Controls
# ---------------------------------------------------------------------------
st.markdown('<h1 style="margin-bottom:0;">GDP Visualization</h1>', unsafe_allow_html=True)

col_year, col_mode, col_opacity = st.columns([3, 2, 1])
with col_year:
    year = st.slider("Year", bounds[0], bounds[1], value=filters.year or bounds[0], key="year")
with col_mode:
    mode_label = st.selectbox(
        "Display Mode",
        ["Country Name (continent color)", "GDP Makeup (subdivided)"],
        key="mode",
    )
with col_opacity:
    use_opacity = st.checkbox("Use unemployment opacity", value=True, key="use_opacity")

mode = "makeup" if mode_label.startswith("GDP Makeup") else "name"
filters = filters.with_year(year)
st.session_state["filters"] = filters

# ---------------------------------------------------------------------------
# Treemap
# ---------------------------------------------------------------------------
fig = render_figure(records, filters, mode=mode, use_opacity=use_opacity)
st.pyplot(fig, use_container_width=True)
plt.close(fig)

with st.expander("Legend", expanded=True):
    st.markdown(
        f"**Size:** GDP (area)  ·  "
        f"**Opacity:** {'Unemployment rate' if use_opacity else 'Solid color'}  ·  "
        f"**Border:** Inflation (green = +, red = −, white = missing)  ·  "
        f"**Color:** {'GDP components' if mode == 'makeup' else 'Continent'}"
    )
    swatches = "".join(
        f'<span style="display:inline-block;width:14px;height:14px;background:{color};'
        f'border:1px solid #ccc;border-radius:3px;vertical-align:middle;margin:0 4px 0 12px;"></span>'
        f"{name}"
        for name, color in legend_entries(mode).items()
    )
    st.markdown(f'<p style="font-size:0.85rem;">{swatches}</p>', unsafe_allow_html=True)

# ---------------------------------------------------------------------------
# Country details
# ---------------------------------------------------------------------------
root = build_hierarchy(records, filters)
if root.children:
    with st.expander("Country details"):
        st.dataframe(node_details(root), hide_index=True, use_container_width=True)
        split = [p for p in region_paths(root) if node_at(root, p).children]
        if split:
            picked = st.selectbox(
                "Sector breakdown",
                split,
                format_func=lambda p: f"{node_at(root, p).name} - {node_at(root, p).continent}",
                key="detail_country",
            )
            st.dataframe(sector_breakdown(node_at(root, picked)), hide_index=True,
                         use_container_width=True)

# ---------------------------------------------------------------------------
# Top countries
# ---------------------------------------------------------------------------
leaders = top_k(records, filters, TOP_K)
if leaders:
    st.subheader(f"Top {TOP_K} Countries by GDP ({year})")
    st.dataframe(leaderboard_frame(leaders), hide_index=True, use_container_width=True)
    if len(leaders) < TOP_K:
        st.caption(f"Showing {len(leaders)} countries (filtered by your selections)")
else:
    st.info(f"No countries match the current selection for {year}.")
