from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from microbiome.aggregate import frequency_table, numeric_values
from microbiome.charts import category_bar_chart, histogram_chart, to_vega_spec
from microbiome.data import DashboardData, feature_column
from microbiome.normalize import UNKNOWN, clean_value, feature_label, is_numeric_feature
from microbiome.selection import DashboardSelection


def compute_metadata(selection: DashboardSelection, data: DashboardData) -> Dict[str, Any]:
    feature = selection.feature
    label = feature_label(feature)
    cleaned = [clean_value(v, feature) for v in feature_column(data, feature)]

    payload: Dict[str, Any] = {
        "selection": asdict(selection),
        "feature": feature,
        "title": f"{label} of Volunteers",
        "x_title": label,
        "y_title": "Count",
        "volunteers": len(cleaned),
        "unknown": sum(1 for v in cleaned if v == UNKNOWN),
    }

    if is_numeric_feature(feature):
        values = numeric_values(cleaned)
        chart = histogram_chart(values, title=payload["title"], x_title=label)
        payload.update({"kind": "histogram", "values": values})
    else:
        counts = frequency_table(cleaned)
        chart = category_bar_chart(counts, title=payload["title"], x_title=label)
        payload.update({"kind": "bar", "categories": list(counts.keys()), "counts": list(counts.values())})

    payload["charts"] = {"distribution": to_vega_spec(chart)}
    return payload
