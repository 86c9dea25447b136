import json
from pathlib import Path

import pytest

from microbiome.data import DashboardData, parse_dataset


def _sample(sid, values):
    return {
        "id": sid,
        "otu_ids": [1000 + i for i in range(len(values))],
        "otu_labels": [f"Bacteria;Firmicutes;Genus{i}" for i in range(len(values))],
        "sample_values": list(values),
    }


@pytest.fixture
def raw_dataset() -> dict:
    return {
        "names": ["940", "941", "942"],
        "metadata": [
            {"id": 940, "ethnicity": "Caucasian(some detail)", "gender": "female", "age": 24, "location": "Austin, TX", "bbtype": "I", "wfreq": 2},
            {"id": 941, "ethnicity": "Asian/Caucasian", "gender": "M", "age": None, "location": "Tokyo, Japan", "bbtype": "out", "wfreq": 0},
            {"id": 942, "ethnicity": None, "gender": "", "age": 42, "location": None, "bbtype": None},
        ],
        "samples": [
            _sample("940", [50, 40, 30, 20, 10, 5, 4, 3, 2, 1, 0]),
            _sample("941", [9, 8, 7]),
            _sample("942", []),
        ],
    }


@pytest.fixture
def dataset(raw_dataset) -> DashboardData:
    return parse_dataset(raw_dataset, source="fixture")


@pytest.fixture
def dataset_file(tmp_path: Path, raw_dataset) -> Path:
    path = tmp_path / "samples.json"
    path.write_text(json.dumps(raw_dataset), encoding="utf-8")
    return path
