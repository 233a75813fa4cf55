"""
ERP Lens Backend - Dataset Storage
In-memory session storage with TTL expiration (nothing is persisted)
"""

import uuid
from datetime import datetime, timedelta
from typing import Any

from fastapi import HTTPException

import config


class DatasetInfo:
    """Container for an uploaded dataset: untouched raw rows, cleaned rows and derived metadata"""

    def __init__(
        self,
        raw_rows: list[dict[str, Any]],
        rows: list[dict[str, Any]],
        filenames: list[str],
        cleaning_actions: list[str],
        column_types: dict[str, str],
        statistics: dict,
    ):
        self.id = str(uuid.uuid4())
        # raw_rows is kept unmodified so the dataset can be re-cleaned with other settings.
        self.raw_rows = raw_rows
        self.rows = rows
        self.filenames = filenames
        self.cleaning_actions = cleaning_actions
        self.column_types = column_types
        self.statistics = statistics
        self.created_at = datetime.now()
        self.touch()

    @property
    def headers(self) -> list[str]:
        return list(self.column_types.keys())

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()

    def is_expired(self, ttl_hours: int = config.DATASET_TTL_HOURS) -> bool:
        """Check if dataset has expired"""
        return datetime.now() - self.last_accessed > timedelta(hours=ttl_hours)


# Global dataset storage
DATASETS: dict[str, DatasetInfo] = {}


def cleanup_expired():
    """Remove expired datasets from memory"""
    expired = [k for k, v in DATASETS.items() if v.is_expired()]
    for k in expired:
        del DATASETS[k]


def get_dataset(dataset_id: str) -> DatasetInfo:
    """Retrieve dataset by ID, with expiration check"""
    cleanup_expired()
    if dataset_id not in DATASETS:
        raise HTTPException(status_code=404, detail="Dataset not found or expired. Please re-upload.")
    ds = DATASETS[dataset_id]
    ds.touch()
    return ds


def store_dataset(ds_info: DatasetInfo) -> str:
    """Store dataset and return its ID"""
    cleanup_expired()

    # Evict oldest if at capacity
    if len(DATASETS) >= config.MAX_DATASETS:
        oldest_id = min(DATASETS.keys(), key=lambda k: DATASETS[k].last_accessed)
        del DATASETS[oldest_id]

    DATASETS[ds_info.id] = ds_info
    return ds_info.id
