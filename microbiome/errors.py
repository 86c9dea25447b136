from __future__ import annotations


class MicrobiomeError(Exception):
    """Base class for dashboard errors."""


class DatasetLoadError(MicrobiomeError):
    """Raised when the samples dataset cannot be fetched, parsed or validated."""


class RecordNotFoundError(MicrobiomeError):
    """Raised when a selected sample has no matching metadata or measurement record."""

    def __init__(self, kind: str, sample_id: str):
        super().__init__(f"No {kind} record for sample {sample_id!r}")
        self.kind = kind
        self.sample_id = sample_id
