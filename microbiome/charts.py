from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from microbiome.aggregate import RankedSpecies

alt.data_transformers.disable_max_rows()

WFREQ_GAUGE_MAX = 9


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def histogram_chart(values: List[Any], *, title: str, x_title: str, y_title: str = "Count") -> alt.Chart:
    df = pd.DataFrame({"value": pd.to_numeric(pd.Series(values, dtype=object), errors="coerce")})
    return (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("value:Q", bin=alt.Bin(maxbins=20), title=x_title),
            y=alt.Y("count():Q", title=y_title),
            tooltip=[alt.Tooltip("count():Q", title=y_title)],
        )
    )


def category_bar_chart(counts: Dict[str, int], *, title: str, x_title: str, y_title: str = "Count") -> alt.Chart:
    df = pd.DataFrame({"category": list(counts.keys()), "count": list(counts.values())})
    hover = alt.selection_point(fields=["category"], on="mouseover", empty="all")
    return (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("category:N", title=x_title, axis=alt.Axis(grid=False)),
            y=alt.Y("count:Q", title=y_title, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip("category:N", title=x_title), alt.Tooltip("count:Q", title=y_title)],
        )
        .add_params(hover)
    )


def top_species_chart(ranked: List[RankedSpecies], *, title: str) -> alt.Chart:
    df = pd.DataFrame(
        {
            "display_id": [r.display_id for r in ranked],
            "count": [r.count for r in ranked],
            "label": [r.label for r in ranked],
        }
    )
    # ranked is bottom-to-top; Vega-Lite draws the first sort entry at the top
    order = [r.display_id for r in reversed(ranked)]
    return (
        alt.Chart(df, title=title)
        .mark_bar(orient="horizontal")
        .encode(
            x=alt.X("count:Q", title="Count"),
            y=alt.Y("display_id:N", sort=order, title=None),
            tooltip=[
                alt.Tooltip("display_id:N", title="OTU"),
                alt.Tooltip("count:Q", title="Count"),
                alt.Tooltip("label:N", title="Taxonomy"),
            ],
        )
    )


def species_bubble_chart(bubble: Dict[str, list], *, title: str) -> alt.Chart:
    df = pd.DataFrame(
        {
            "otu_id": bubble.get("otu_ids", []),
            "count": bubble.get("counts", []),
            "label": bubble.get("labels", []),
        }
    )
    return (
        alt.Chart(df, title=title)
        .mark_circle(opacity=0.7)
        .encode(
            x=alt.X("otu_id:Q", title="OTU ID"),
            y=alt.Y("count:Q", title="Count"),
            size=alt.Size("count:Q", legend=None),
            color=alt.Color("otu_id:Q", scale=alt.Scale(scheme="viridis"), legend=None),
            tooltip=[
                alt.Tooltip("otu_id:Q", title="OTU"),
                alt.Tooltip("count:Q", title="Count"),
                alt.Tooltip("label:N", title="Taxonomy"),
            ],
        )
    )


def gauge_chart(value: Optional[float], *, title: str, subtitle: str, max_value: float = WFREQ_GAUGE_MAX) -> alt.LayerChart:
    filled = min(max(float(value or 0), 0.0), float(max_value))
    df = pd.DataFrame(
        {
            "segment": ["value", "rest"],
            "amount": [filled, float(max_value) - filled],
            "order": [0, 1],
        }
    )
    arc = (
        alt.Chart(df)
        .mark_arc(innerRadius=60, outerRadius=100)
        .encode(
            theta=alt.Theta("amount:Q", stack=True),
            order=alt.Order("order:Q"),
            color=alt.Color(
                "segment:N",
                scale=alt.Scale(domain=["value", "rest"], range=["#0f766e", "#e5e7eb"]),
                legend=None,
            ),
        )
    )
    label = "N/A" if value is None else f"{value:g}"
    text = alt.Chart(pd.DataFrame({"text": [label]})).mark_text(fontSize=28, fontWeight="bold").encode(text="text:N")
    return alt.layer(arc, text).properties(title=alt.TitleParams(text=title, subtitle=subtitle))
