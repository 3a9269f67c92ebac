import altair as alt
import pandas as pd

from diecast.models import color_to_hex

BAR_COLOR = "#10b981"


def bar_chart(table: pd.DataFrame, title: str, top_n: int = 15) -> alt.Chart:
    """Horizontal bars of a (name, value) count table, largest first."""
    data = table.head(top_n)
    height = max(120, 28 * len(data))
    return (
        alt.Chart(data)
        .mark_bar(color=BAR_COLOR, cornerRadiusEnd=4)
        .encode(
            x=alt.X("value:Q", title="Cars"),
            y=alt.Y("name:N", sort="-x", title=None),
            tooltip=[alt.Tooltip("name:N", title=title), alt.Tooltip("value:Q", title="Cars")],
        )
        .properties(height=height)
    )


def color_pie(table: pd.DataFrame, top_n: int = 10) -> alt.Chart:
    """Donut of colour counts, each slice painted with its guessed swatch."""
    data = table.head(top_n).copy()
    data["swatch"] = data["name"].apply(color_to_hex)
    return (
        alt.Chart(data)
        .mark_arc(innerRadius=60, stroke="#e2e8f0")
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("swatch:N", scale=None, legend=None),
            order=alt.Order("value:Q", sort="descending"),
            tooltip=[alt.Tooltip("name:N", title="Color"), alt.Tooltip("value:Q", title="Cars")],
        )
        .properties(height=320)
    )
