import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import List, Optional

from population_core import charts
from population_core.data import records_to_frame
from population_core.filters import FilterSpecification
from population_core.metrics_debug import compute_debug
from population_core.metrics_overview import compute_stat_cards
from population_core.session import PopulationDashboard


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def _chip(label: str, values: List[object]) -> str:
    if not values:
        return f"{label}: All"
    if len(values) > 3:
        return f"{label}: {len(values)} selected"
    return f"{label}: {', '.join(str(v) for v in values)}"


def format_filter_summary(spec: FilterSpecification) -> str:
    chips = [
        _chip("Years", list(spec.years)),
        _chip("Months", list(spec.months)),
        _chip("States", list(spec.states)),
        _chip("Gender", list(spec.genders)),
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None):
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name="population_records.csv",
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Population Projection Dashboard", layout="wide")
inject_base_styles()
st.title("Population Projection Dashboard")
st.caption("Population trends across states, years, and demographics.")

if "dashboard" not in st.session_state:
    st.session_state["dashboard"] = PopulationDashboard()
    st.session_state["dashboard"].load()
dashboard: PopulationDashboard = st.session_state["dashboard"]

if dashboard.error:
    st.error(f"Error loading data: {dashboard.error}")
    if st.button("Retry"):
        dashboard.refetch()
        st.rerun()
    st.stop()

views = dashboard.views
if views is None or not views.records:
    st.info("No population data found to display.")
    st.stop()

# ----- Sidebar: filters -----
options = views.available_filters
with st.sidebar:
    st.markdown("### Filters")
    selected_years = st.multiselect("Years", options=options["years"], default=list(dashboard.selected_filters.years))
    selected_months = st.multiselect("Months", options=options["months"], default=list(dashboard.selected_filters.months))
    selected_states = st.multiselect("States", options=options["states"], default=list(dashboard.selected_filters.states))
    selected_genders = st.multiselect("Gender", options=options["genders"], default=list(dashboard.selected_filters.genders))
    st.markdown("---")
    if st.button("Reload data"):
        dashboard.refetch()
        st.rerun()

dashboard.set_filters(
    FilterSpecification(
        years=tuple(selected_years),
        months=tuple(selected_months),
        states=tuple(selected_states),
        genders=tuple(selected_genders),
    )
)
spec = dashboard.selected_filters
filtered_views = dashboard.filtered_views
display = dashboard.display_views

render_page_header(
    "Overview",
    "Home / Overview",
    format_filter_summary(spec),
    export_df=records_to_frame(dashboard.filtered_records),
)
if not spec.is_empty():
    st.caption(f"Showing filtered results • {len(dashboard.filtered_records):,} records")
st.caption(f"Total records: {len(views.records):,}")

if filtered_views is None:
    st.warning("No records match the selected filters. Showing the full dataset.")

tab_overview, tab_demographics, tab_insights, tab_debug = st.tabs(["Overview", "Demographics", "Insights", "Data Quality"])

with tab_overview:
    kpis = compute_stat_cards(display)
    cols = st.columns(4)
    cols[0].metric("Total Projected Population", kpis["total_population"]["display"])
    cols[1].metric("Leading State", kpis["leading_state"]["state"], help=kpis["leading_state"]["display"])
    cols[2].metric("Male Population", kpis["male_population"]["display"], help=f"{kpis['male_population']['share_of_total']}% of total")
    cols[3].metric("Female Population", kpis["female_population"]["display"], help=f"{kpis['female_population']['share_of_total']}% of total")

    left, right = st.columns(2)
    with left:
        with card("Top 10 States by Population"):
            st.altair_chart(charts.top_states_chart(display.top_states), use_container_width=True)
    with right:
        with card("Gender Distribution"):
            st.altair_chart(charts.gender_distribution_chart(display.gender_distribution), use_container_width=True)
    with card("Yearly Trends"):
        st.altair_chart(charts.yearly_trends_chart(display.yearly_trends), use_container_width=True)

with tab_demographics:
    left, right = st.columns(2)
    with left:
        with card("Population Distribution by Month"):
            st.altair_chart(charts.monthly_distribution_chart(display.monthly_distribution), use_container_width=True)
    with right:
        with card("States with Largest Gender Gaps"):
            st.altair_chart(charts.gender_gaps_chart(display.state_gender_gaps), use_container_width=True)
    st.dataframe(pd.DataFrame(display.state_gender_gaps), hide_index=True, use_container_width=True)

with tab_insights:
    insights = display.insights
    if insights is None:
        st.info("No insights available for the current selection.")
    else:
        cols = st.columns(3)
        cols[0].metric("Total Population", insights.total_population)
        cols[1].metric("Leading State", insights.top_state)
        cols[2].metric("Peak Month", insights.peak_month)
        with card("Key Findings"):
            for sentence in insights.insights:
                st.markdown(f"- {sentence}")
        st.markdown(
            f"<div class='chip-row'><span class='chip'>Years: {insights.year_range}</span>"
            f"<span class='chip'>Dominant: {insights.dominant_gender}</span></div>",
            unsafe_allow_html=True,
        )

with tab_debug:
    debug_payload = compute_debug(
        spec,
        {
            "source": dashboard.source,
            "records": dashboard.records,
            "warnings": dashboard.warnings,
            "filtered_records": dashboard.filtered_records,
        },
    )
    st.write(debug_payload["row_counts"])
    if debug_payload["parse_warnings"]["count"]:
        st.markdown(f"**Parse warnings ({debug_payload['parse_warnings']['count']})**")
        st.dataframe(pd.DataFrame({"warning": dashboard.warnings}), hide_index=True, use_container_width=True)
    else:
        st.success("All CSV rows parsed cleanly.")
