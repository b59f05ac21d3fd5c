"""Data ingestion and storage."""

from .cache import ObservationStore
from .csv_ingest import CsvIngestor

__all__ = ["ObservationStore", "CsvIngestor"]
