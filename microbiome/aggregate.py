from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

import pandas as pd

from microbiome.normalize import UNKNOWN

DEFAULT_TOP_N = 10


@dataclass(frozen=True)
class SampleMeasurement:
    """One volunteer's OTU observations as three parallel sequences.

    The source dataset lists observations in descending count order; nothing
    here re-sorts them unless `sort_species` is called explicitly.
    """

    id: str
    otu_ids: tuple
    otu_labels: tuple
    sample_values: tuple

    def __len__(self) -> int:
        return len(self.sample_values)


@dataclass(frozen=True)
class RankedSpecies:
    otu_id: int
    display_id: str
    label: str
    count: int


def format_otu_id(otu_id: object) -> str:
    return f"OID {otu_id} "


def format_otu_label(label: str) -> str:
    return str(label).replace(";", " | ")


def _as_key(value: object) -> str:
    # keys render the way a browser prints them: 5.0 -> "5", True -> "true"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def frequency_table(values: Iterable[Any]) -> Dict[str, int]:
    """Count occurrences of each categorical value.

    Keys are the string form of each value, so 5, 5.0 and "5" share a key.
    """
    keys = pd.Series([_as_key(v) for v in values], dtype=object)
    if keys.empty:
        return {}
    counts = keys.value_counts(sort=False)
    return {str(k): int(v) for k, v in counts.items()}


def numeric_values(values: Iterable[Any], *, drop_unknown: bool = True) -> List[Any]:
    """Histogram input for numeric features.

    Normalized numeric columns carry "Unknown" wherever a volunteer had no
    value. Those entries are dropped by default; pass drop_unknown=False for
    the raw mixed passthrough.
    """
    if not drop_unknown:
        return list(values)
    return [v for v in values if v != UNKNOWN]


def top_species(sample: SampleMeasurement, n: int = DEFAULT_TOP_N) -> List[RankedSpecies]:
    """Return the first n observations of a sample, reversed for display.

    Assumes the sample is already ordered by descending count. The reversal
    puts the largest count last, which a horizontal bar chart draws on top.
    Samples with fewer than n observations return all of them.
    """
    n = max(0, int(n))
    ids = list(sample.otu_ids[:n])
    labels = list(sample.otu_labels[:n])
    counts = list(sample.sample_values[:n])
    ranked = [
        RankedSpecies(otu_id=oid, display_id=format_otu_id(oid), label=format_otu_label(lab), count=cnt)
        for oid, lab, cnt in zip(ids, labels, counts)
    ]
    ranked.reverse()
    return ranked


def sort_species(sample: SampleMeasurement) -> SampleMeasurement:
    """Order a sample's observations by descending count, ties kept in source order."""
    order = sorted(range(len(sample)), key=lambda i: -sample.sample_values[i])
    return SampleMeasurement(
        id=sample.id,
        otu_ids=tuple(sample.otu_ids[i] for i in order),
        otu_labels=tuple(sample.otu_labels[i] for i in order),
        sample_values=tuple(sample.sample_values[i] for i in order),
    )


def all_species(sample: SampleMeasurement) -> Dict[str, list]:
    """Full, unranked observation arrays for the bubble chart."""
    return {
        "otu_ids": list(sample.otu_ids),
        "counts": list(sample.sample_values),
        "labels": [format_otu_label(lab) for lab in sample.otu_labels],
        "sizes": list(sample.sample_values),
    }
