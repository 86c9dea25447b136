from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from microbiome.aggregate import all_species, top_species
from microbiome.charts import gauge_chart, species_bubble_chart, to_vega_spec, top_species_chart
from microbiome.data import DashboardData, find_metadata, find_sample
from microbiome.errors import RecordNotFoundError
from microbiome.normalize import FEATURES, clean_value, feature_label
from microbiome.selection import DashboardSelection

logger = logging.getLogger(__name__)

TOP_SPECIES_TITLE = "Top Bacterial Species in Sample"
BUBBLE_TITLE = "Bacterial Species in Sample"
GAUGE_TITLE = "Washing Frequency"
GAUGE_SUBTITLE = "Scrubs per week"


def build_info_card(record: Dict[str, Any]) -> List[Dict[str, Any]]:
    """The six demographic fields of a volunteer, each passed through clean_value."""
    return [
        {"feature": feat, "label": feature_label(feat), "value": clean_value(record.get(feat), feat)}
        for feat in FEATURES
    ]


def format_info_card(card: List[Dict[str, Any]]) -> str:
    return "\n".join(f"{row['label']} : {row['value']}" for row in card)


def _gauge_value(wfreq: Any) -> Optional[float]:
    if isinstance(wfreq, bool) or not isinstance(wfreq, (int, float)):
        return None
    return wfreq


def compute_sample(selection: DashboardSelection, data: DashboardData) -> Dict[str, Any]:
    sample_id = selection.sample_id
    record = find_metadata(data, sample_id)
    if record is None:
        logger.warning("No metadata for sample %r", sample_id)
        raise RecordNotFoundError("metadata", sample_id)
    sample = find_sample(data, sample_id)
    if sample is None:
        logger.warning("No measurements for sample %r", sample_id)
        raise RecordNotFoundError("sample", sample_id)

    card = build_info_card(record)
    wfreq = clean_value(record.get("wfreq"), "wfreq")

    ranked = top_species(sample, selection.top_n)
    top = {
        "title": TOP_SPECIES_TITLE,
        "x": [r.count for r in ranked],
        "y": [r.display_id for r in ranked],
        "text": [r.label for r in ranked],
        "otu_ids": [r.otu_id for r in ranked],
    }
    bubble = all_species(sample)
    gauge = {"title": GAUGE_TITLE, "subtitle": GAUGE_SUBTITLE, "value": wfreq}

    charts = {
        "top_species": to_vega_spec(top_species_chart(ranked, title=TOP_SPECIES_TITLE)),
        "bubble": to_vega_spec(species_bubble_chart(bubble, title=BUBBLE_TITLE)),
        "gauge": to_vega_spec(gauge_chart(_gauge_value(wfreq), title=GAUGE_TITLE, subtitle=GAUGE_SUBTITLE)),
    }

    return {
        "selection": asdict(selection),
        "sample_id": sample.id,
        "info_card": card,
        "info_text": format_info_card(card),
        "top_species": top,
        "bubble": {"title": BUBBLE_TITLE, **bubble},
        "gauge": gauge,
        "charts": charts,
    }
