from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from microbiome.aggregate import SampleMeasurement
from microbiome.errors import DatasetLoadError
from microbiome.normalize import FEATURES

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_DATASET = DATA_DIR / "samples.json"
DATASET_ENV = "MICROBIOME_DATASET"
HTTP_TIMEOUT_SECONDS = float(os.getenv("MICROBIOME_HTTP_TIMEOUT", "15"))

METADATA_COLUMNS = ["id"] + FEATURES
REQUIRED_KEYS = ("names", "metadata", "samples")
SAMPLE_SEQUENCES = ("otu_ids", "otu_labels", "sample_values")


@dataclass(frozen=True)
class DashboardData:
    """Read-only dataset context built once at startup and passed to every page."""

    names: Tuple[str, ...]
    metadata: pd.DataFrame
    samples: Tuple[SampleMeasurement, ...]
    source: str = ""


def get_dataset_source() -> str:
    return os.getenv(DATASET_ENV, "").strip() or str(DEFAULT_DATASET)


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def sample_key(value: object) -> str:
    """Ids appear both as ints (metadata) and strings (names, samples); compare as text."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _build_retry_session() -> requests.Session:
    session = requests.Session()
    retry = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def fetch_remote_json(url: str, *, timeout: float = HTTP_TIMEOUT_SECONDS) -> Any:
    try:
        resp = _build_retry_session().get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise DatasetLoadError(f"HTTP error while fetching {url}: {exc}") from exc
    if resp.status_code != 200:
        raise DatasetLoadError(f"Dataset fetch failed (status={resp.status_code}) for {url}")
    try:
        return resp.json()
    except ValueError as exc:
        preview = (resp.text or "")[:200]
        raise DatasetLoadError(f"Non-JSON dataset response from {url}. Preview: {preview}") from exc


def read_local_json(path: Path) -> Any:
    if not path.exists():
        raise DatasetLoadError(f"Dataset file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise DatasetLoadError(f"Invalid JSON in {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DatasetLoadError(f"Dataset {path} is not UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise DatasetLoadError(f"Could not read dataset {path}: {exc}") from exc


def build_metadata_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(records, columns=METADATA_COLUMNS, dtype=object)
    df = df.astype(object).where(df.notna(), None)
    if df["id"].isna().any():
        raise DatasetLoadError("Metadata record without an id")
    df["sample_key"] = df["id"].map(sample_key)
    dupes = df.loc[df["sample_key"].duplicated(), "sample_key"].tolist()
    if dupes:
        raise DatasetLoadError(f"Duplicate metadata id {dupes[0]!r}")
    return df


def build_samples(records: List[Dict[str, Any]]) -> Tuple[SampleMeasurement, ...]:
    samples: List[SampleMeasurement] = []
    seen = set()
    for raw in records:
        if raw.get("id") is None:
            raise DatasetLoadError("Sample record without an id")
        sid = sample_key(raw["id"])
        if sid in seen:
            raise DatasetLoadError(f"Duplicate sample id {sid!r}")
        seen.add(sid)
        seqs = [raw.get(name) or [] for name in SAMPLE_SEQUENCES]
        for name, seq in zip(SAMPLE_SEQUENCES, seqs):
            if not isinstance(seq, list):
                raise DatasetLoadError(f"Sample {sid!r} field {name!r} must be a list, got {type(seq).__name__}")
        lengths = {len(s) for s in seqs}
        if len(lengths) != 1:
            raise DatasetLoadError(
                f"Sample {sid!r} has mismatched sequence lengths: "
                + ", ".join(f"{name}={len(s)}" for name, s in zip(SAMPLE_SEQUENCES, seqs))
            )
        otu_ids, otu_labels, sample_values = seqs
        samples.append(
            SampleMeasurement(
                id=sid,
                otu_ids=tuple(otu_ids),
                otu_labels=tuple(str(x) for x in otu_labels),
                sample_values=tuple(sample_values),
            )
        )
    return tuple(samples)


def _require_list(payload: Dict[str, Any], key: str, *, of_dicts: bool = False) -> list:
    value = payload[key] or []
    if not isinstance(value, list):
        raise DatasetLoadError(f"Dataset {key!r} must be a list, got {type(value).__name__}")
    if of_dicts:
        for i, entry in enumerate(value):
            if not isinstance(entry, dict):
                raise DatasetLoadError(f"Dataset {key}[{i}] must be an object, got {type(entry).__name__}")
    return value


def parse_dataset(payload: Any, *, source: str = "") -> DashboardData:
    if not isinstance(payload, dict):
        raise DatasetLoadError(f"Unexpected dataset type: {type(payload).__name__}")
    missing = [k for k in REQUIRED_KEYS if k not in payload]
    if missing:
        raise DatasetLoadError(f"Dataset is missing keys: {', '.join(missing)}")
    names = _require_list(payload, "names")
    metadata_records = _require_list(payload, "metadata", of_dicts=True)
    sample_records = _require_list(payload, "samples", of_dicts=True)
    return DashboardData(
        names=tuple(sample_key(n) for n in names),
        metadata=build_metadata_frame(metadata_records),
        samples=build_samples(sample_records),
        source=source,
    )


def load_dataset(source: Optional[str] = None) -> DashboardData:
    """Fetch and validate the samples dataset from a local path or an http(s) URL."""
    source = source or get_dataset_source()
    if is_remote(source):
        payload = fetch_remote_json(source)
    else:
        payload = read_local_json(Path(source))
    data = parse_dataset(payload, source=source)
    logger.info(
        "Loaded dataset from %s: %d names, %d metadata records, %d samples",
        source,
        len(data.names),
        len(data.metadata),
        len(data.samples),
    )
    return data


def source_signature(source: str) -> Tuple[str, float]:
    if is_remote(source):
        return source, 0.0
    path = Path(source)
    return source, (path.stat().st_mtime if path.exists() else 0.0)


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(signature: Tuple[str, float]) -> DashboardData:
    return load_dataset(signature[0])


def load_dashboard_data(source: Optional[str] = None) -> DashboardData:
    return _load_dashboard_data_cached(source_signature(source or get_dataset_source()))


# ---------------- Lookups ----------------
def sample_ids(data: DashboardData) -> List[str]:
    return list(data.names)


def find_metadata(data: DashboardData, sample_id: object) -> Optional[Dict[str, Any]]:
    if data.metadata.empty:
        return None
    match = data.metadata[data.metadata["sample_key"] == sample_key(sample_id)]
    if match.empty:
        return None
    row = match.iloc[0].to_dict()
    row.pop("sample_key", None)
    return row


def find_sample(data: DashboardData, sample_id: object) -> Optional[SampleMeasurement]:
    key = sample_key(sample_id)
    for sample in data.samples:
        if sample.id == key:
            return sample
    return None


def feature_column(data: DashboardData, feature: str) -> List[Any]:
    if feature not in data.metadata.columns:
        return []
    return data.metadata[feature].tolist()
