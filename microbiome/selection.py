from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from microbiome.aggregate import DEFAULT_TOP_N
from microbiome.normalize import FEATURES

TOP_N_DEFAULT = int(os.getenv("MICROBIOME_TOP_N", str(DEFAULT_TOP_N)))
TOP_N_MAX = 50


@dataclass(frozen=True)
class DashboardSelection:
    sample_id: str = ""
    feature: str = FEATURES[0]
    top_n: int = TOP_N_DEFAULT


def _as_top_n(value: object) -> int:
    try:
        top_n = int(value)
    except Exception:
        top_n = TOP_N_DEFAULT
    return max(1, min(TOP_N_MAX, top_n))


def normalize_selection(raw: dict, *, available_samples: Optional[List[str]] = None) -> DashboardSelection:
    """Coerce raw selector values; missing or unknown choices fall back to the first option."""
    available_samples = list(available_samples or [])

    sample_id = raw.get("sample_id")
    sample_id = "" if sample_id is None else str(sample_id).strip()
    if not sample_id and available_samples:
        sample_id = available_samples[0]

    feature = str(raw.get("feature") or "").strip().lower()
    if feature not in FEATURES:
        feature = FEATURES[0]

    return DashboardSelection(
        sample_id=sample_id,
        feature=feature,
        top_n=_as_top_n(raw.get("top_n", TOP_N_DEFAULT)),
    )
