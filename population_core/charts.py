from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from population_core.config import FEMALE, MALE, MONTH_ORDER, TOP_GAPS_CHART_LIMIT

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def top_states_chart(top_states: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(top_states, columns=["state", "population"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("population:Q", title="Population", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            y=alt.Y("state:N", title=None, sort="-x"),
            tooltip=["state", alt.Tooltip("population:Q", format=",")],
        )
        .properties(height=300, title="Top 10 States by Population")
    )


def gender_distribution_chart(distribution: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(distribution, columns=["gender", "value", "percentage"])
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("gender:N", title="Gender"),
            tooltip=["gender", alt.Tooltip("value:Q", format=","), alt.Tooltip("percentage:N", title="Share (%)")],
        )
        .properties(height=300, title="Gender Distribution")
    )


def yearly_trends_chart(trends: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(trends, columns=["year", MALE, FEMALE])
    long_df = df.melt(id_vars="year", value_vars=[MALE, FEMALE], var_name="gender", value_name="population")
    hover = alt.selection_point(fields=["gender"], on="mouseover", empty="all")
    return (
        alt.Chart(long_df)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("year:O", title="Year", axis=alt.Axis(grid=False)),
            y=alt.Y("population:Q", title="Population", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("gender:N", title="Gender"),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["year", "gender", alt.Tooltip("population:Q", format=",")],
        )
        .add_params(hover)
        .properties(height=260, title="Yearly Trends by Gender")
    )


def monthly_distribution_chart(monthly: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(monthly, columns=["month", "value"])
    return (
        alt.Chart(df)
        .mark_area(line=True, opacity=0.4)
        .encode(
            x=alt.X("month:N", title="Month", sort=list(MONTH_ORDER)),
            y=alt.Y("value:Q", title="Population", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            tooltip=["month", alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=260, title="Population Distribution by Month")
    )


def gender_gaps_chart(gaps: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(gaps[:TOP_GAPS_CHART_LIMIT], columns=["state", "male", "female", "gap", "gap_percentage"])
    long_df = df.melt(id_vars=["state", "gap", "gap_percentage"], value_vars=["male", "female"], var_name="gender", value_name="population")
    return (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("state:N", title=None, sort=df["state"].tolist()),
            xOffset="gender:N",
            y=alt.Y("population:Q", title="Population", axis=alt.Axis(format="~s")),
            color=alt.Color("gender:N", title="Gender"),
            tooltip=[
                "state",
                "gender",
                alt.Tooltip("population:Q", format=","),
                alt.Tooltip("gap:Q", format=","),
                alt.Tooltip("gap_percentage:N", title="Gap (%)"),
            ],
        )
        .properties(height=300, title="States with Largest Gender Gaps")
    )


def build_charts(views) -> Dict[str, Any]:
    if not views.records:
        return {}
    return {
        "top_states": to_vega_spec(top_states_chart(views.top_states)),
        "gender_distribution": to_vega_spec(gender_distribution_chart(views.gender_distribution)),
        "yearly_trends": to_vega_spec(yearly_trends_chart(views.yearly_trends)),
        "monthly_distribution": to_vega_spec(monthly_distribution_chart(views.monthly_distribution)),
        "state_gender_gaps": to_vega_spec(gender_gaps_chart(views.state_gender_gaps)),
    }
