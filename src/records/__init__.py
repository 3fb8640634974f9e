"""Vector record lifecycle."""

from src.records.models import VectorRecord
from src.records.store import VectorRecordStore

__all__ = [
    "VectorRecord",
    "VectorRecordStore",
]
