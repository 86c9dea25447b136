from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from microbiome.selection import TOP_N_DEFAULT


class SelectionModel(BaseModel):
    sample_id: Optional[Union[str, int]] = None
    feature: str = "ethnicity"
    top_n: int = Field(default=TOP_N_DEFAULT)


class FeatureOption(BaseModel):
    value: str
    label: str


class MetaSamplesResponse(BaseModel):
    samples: List[str]


class MetaFeaturesResponse(BaseModel):
    features: List[FeatureOption]


class HealthResponse(BaseModel):
    status: str
    samples: int
    source: str
