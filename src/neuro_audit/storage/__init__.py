"""Record store collaborators."""

from .record_store import IRecordStore, InMemoryRecordStore, JsonlRecordStore

__all__ = ["IRecordStore", "InMemoryRecordStore", "JsonlRecordStore"]
