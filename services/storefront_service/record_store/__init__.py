"""Record store contract and backends."""

from services.storefront_service.record_store.base import (
    Filter,
    Join,
    RecordStore,
    Row,
    Sort,
)
from services.storefront_service.record_store.memory import MemoryRecordStore
from services.storefront_service.record_store.policy import PolicyRecordStore
from services.storefront_service.record_store.sql import SqlRecordStore

__all__ = [
    "Filter",
    "Join",
    "MemoryRecordStore",
    "PolicyRecordStore",
    "RecordStore",
    "Row",
    "SqlRecordStore",
    "Sort",
]
