from __future__ import annotations

import math
import re
from typing import Dict, List, Literal, Union

import pandas as pd

Feature = Literal["ethnicity", "gender", "age", "location", "bbtype", "wfreq"]
NormalizedValue = Union[str, int, float]

FEATURES: List[str] = ["ethnicity", "gender", "age", "location", "bbtype", "wfreq"]
NUMERIC_FEATURES = {"age", "wfreq"}
FEATURE_LABELS: Dict[str, str] = {
    "ethnicity": "Ethnicity",
    "gender": "Gender",
    "age": "Age",
    "location": "Location",
    "bbtype": "Belly Button Type",
    "wfreq": "Wash Frequency",
}

UNKNOWN = "Unknown"
MIXED = "Mixed"

_STATE_CODE = re.compile(r"[A-Z]{2}")


def feature_label(feature: str) -> str:
    return FEATURE_LABELS.get(feature, feature.capitalize())


def is_numeric_feature(feature: str) -> bool:
    return feature in NUMERIC_FEATURES


def is_absent(value: object) -> bool:
    """True for values that count as missing: None, NaN/NA, empty string and zero."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if not isinstance(value, (str, int, float)) and pd.api.types.is_scalar(value) and pd.isna(value):
        return True
    return not value


def clean_value(value: object, feature: str) -> NormalizedValue:
    """Clean a metadata value so it displays consistently for its feature.

    Missing values (including a numeric zero) become "Unknown". Gender and
    belly button type get a capitalized first letter, ethnicity loses any
    parenthetical detail and collapses multiple listed ethnicities to
    "Mixed", and location is shortened to the first two-letter upper-case
    code (US state or country) when one is present. Everything else passes
    through unchanged.
    """
    if is_absent(value):
        return UNKNOWN
    if feature in ("gender", "bbtype"):
        text = str(value)
        return text[0].upper() + text[1:]
    if feature == "ethnicity":
        text = str(value).split("(")[0]
        if "/" in text:
            return MIXED
        return text
    if feature == "location":
        match = _STATE_CODE.search(str(value))
        if match:
            return match.group(0)
        return value
    return value
