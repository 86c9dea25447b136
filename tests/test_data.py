from pathlib import Path

import pytest
import requests

from microbiome import data as data_mod
from microbiome.data import (
    feature_column,
    find_metadata,
    find_sample,
    load_dashboard_data,
    load_dataset,
    parse_dataset,
    sample_ids,
    sample_key,
)
from microbiome.errors import DatasetLoadError


def test_load_dataset_from_file(dataset_file: Path):
    data = load_dataset(str(dataset_file))
    assert sample_ids(data) == ["940", "941", "942"]
    assert len(data.samples) == 3
    assert data.source == str(dataset_file)


def test_load_dataset_env_source(monkeypatch, dataset_file: Path):
    monkeypatch.setenv("MICROBIOME_DATASET", str(dataset_file))
    assert len(load_dataset().metadata) == 3


def test_load_dashboard_data_is_cached(dataset_file: Path):
    first = load_dashboard_data(str(dataset_file))
    assert load_dashboard_data(str(dataset_file)) is first


def test_bundled_dataset_loads():
    data = load_dataset(str(data_mod.DEFAULT_DATASET))
    assert "940" in sample_ids(data)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(DatasetLoadError):
        load_dataset(str(tmp_path / "nope.json"))


def test_invalid_json_raises(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DatasetLoadError):
        load_dataset(str(path))


def test_missing_keys_raise(raw_dataset):
    del raw_dataset["samples"]
    with pytest.raises(DatasetLoadError, match="samples"):
        parse_dataset(raw_dataset)


def test_mismatched_sequences_raise(raw_dataset):
    raw_dataset["samples"][1]["otu_labels"].pop()
    with pytest.raises(DatasetLoadError, match="mismatched"):
        parse_dataset(raw_dataset)


def test_duplicate_sample_ids_raise(raw_dataset):
    raw_dataset["samples"][1]["id"] = "940"
    with pytest.raises(DatasetLoadError, match="Duplicate"):
        parse_dataset(raw_dataset)


def test_remote_source(monkeypatch, raw_dataset):
    class FakeResponse:
        status_code = 200
        text = ""

        def json(self):
            return raw_dataset

    class FakeSession:
        def get(self, url, timeout):
            assert url == "https://example.org/samples.json"
            return FakeResponse()

    monkeypatch.setattr(data_mod, "_build_retry_session", lambda: FakeSession())
    data = load_dataset("https://example.org/samples.json")
    assert len(data.samples) == 3


def test_remote_failure_raises(monkeypatch):
    class FailingSession:
        def get(self, url, timeout):
            raise requests.ConnectionError("down")

    monkeypatch.setattr(data_mod, "_build_retry_session", lambda: FailingSession())
    with pytest.raises(DatasetLoadError, match="HTTP error"):
        load_dataset("http://example.org/samples.json")


def test_sample_key():
    assert sample_key(940) == "940"
    assert sample_key(940.0) == "940"
    assert sample_key(" 940 ") == "940"


def test_find_metadata_matches_int_and_str_ids(dataset):
    record = find_metadata(dataset, "940")
    assert record is not None
    assert record["gender"] == "female"
    assert record["age"] == 24
    assert find_metadata(dataset, 940)["id"] == 940


def test_find_metadata_missing_fields_are_none(dataset):
    record = find_metadata(dataset, "942")
    assert record["wfreq"] is None
    assert record["ethnicity"] is None


def test_lookup_miss_returns_none(dataset):
    assert find_metadata(dataset, "999") is None
    assert find_sample(dataset, "999") is None


def test_find_sample(dataset):
    sample = find_sample(dataset, 941)
    assert sample.sample_values == (9, 8, 7)
    assert len(sample) == 3


def test_feature_column(dataset):
    assert feature_column(dataset, "gender") == ["female", "M", ""]
    assert feature_column(dataset, "unknown-feature") == []


def test_empty_dataset():
    data = parse_dataset({"names": [], "metadata": [], "samples": []})
    assert sample_ids(data) == []
    assert find_metadata(data, "940") is None
    assert feature_column(data, "age") == []


def test_directory_source_raises(tmp_path: Path):
    with pytest.raises(DatasetLoadError, match="Could not read"):
        load_dataset(str(tmp_path))


def test_non_utf8_file_raises(tmp_path: Path):
    path = tmp_path / "latin.json"
    path.write_bytes(b'{"names": ["\xff"]}')
    with pytest.raises(DatasetLoadError, match="UTF-8"):
        load_dataset(str(path))


def test_non_dict_metadata_entries_raise(raw_dataset):
    raw_dataset["metadata"] = [1, 2]
    with pytest.raises(DatasetLoadError, match="metadata"):
        parse_dataset(raw_dataset)


def test_non_dict_sample_entries_raise(raw_dataset):
    raw_dataset["samples"] = [None]
    with pytest.raises(DatasetLoadError, match="samples"):
        parse_dataset(raw_dataset)


def test_non_list_top_level_raises(raw_dataset):
    raw_dataset["names"] = "940"
    with pytest.raises(DatasetLoadError, match="names"):
        parse_dataset(raw_dataset)


def test_non_list_sequence_raises(raw_dataset):
    raw_dataset["samples"][0]["sample_values"] = 12
    with pytest.raises(DatasetLoadError, match="must be a list"):
        parse_dataset(raw_dataset)


def test_duplicate_metadata_ids_raise(raw_dataset):
    raw_dataset["metadata"][1]["id"] = "940"
    with pytest.raises(DatasetLoadError, match="Duplicate metadata"):
        parse_dataset(raw_dataset)


def test_metadata_without_id_raises(raw_dataset):
    del raw_dataset["metadata"][2]["id"]
    with pytest.raises(DatasetLoadError, match="without an id"):
        parse_dataset(raw_dataset)
