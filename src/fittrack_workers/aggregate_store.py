"""Persisted historical 1RM document.

The whole exercise → record mapping lives under one key and is always read
and written as one document. Reads never fail: anything unreadable is an
empty mapping, since the index can be rebuilt from the sets at any time.
"""

from __future__ import annotations

import json
import logging

from .kv import KeyValueStore, StorageUnavailable
from .metrics import record_index_write
from .models import Best1RmRecord

logger = logging.getLogger(__name__)

HISTORICAL_1RM_KEY = "fittrack-demo-historical-1rm"


class AggregateStore:
    def __init__(self, kv: KeyValueStore, key: str = HISTORICAL_1RM_KEY) -> None:
        self.kv = kv
        self.key = key

    def load(self) -> dict[int, Best1RmRecord]:
        try:
            raw = self.kv.get_item(self.key)
        except StorageUnavailable as exc:
            logger.warning("Historical 1RM store unavailable, treating as empty: %s", exc)
            return {}
        if not raw:
            return {}

        try:
            document = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Historical 1RM document %s is not valid JSON, treating as empty", self.key)
            return {}
        if not isinstance(document, dict):
            logger.warning(
                "Historical 1RM document %s is a %s, not an object; treating as empty",
                self.key, type(document).__name__,
            )
            return {}

        records: dict[int, Best1RmRecord] = {}
        for key, entry in document.items():
            try:
                exercise_id = int(key)
                records[exercise_id] = Best1RmRecord.from_document(entry)
            except ValueError as exc:
                logger.warning("Dropping malformed historical 1RM entry %r: %s", key, exc)
        return records

    def save(self, records: dict[int, Best1RmRecord]) -> None:
        document = {str(exercise_id): record.to_document() for exercise_id, record in records.items()}
        self.kv.set_item(self.key, json.dumps(document))
        record_index_write(len(document))

    def clear(self) -> None:
        self.kv.remove_item(self.key)
