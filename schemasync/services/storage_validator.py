# ============================================================================
# STORAGE VALIDATOR
# ============================================================================
# STATUS: Service - Startup health check for persisted schema data
# PURPOSE: Remove oversized or corrupted items before the app loads them
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: StorageValidator, ValidationReport
# DEPENDENCIES: none
# ============================================================================
"""
Storage Validator

Runs before PersistenceService.load so that a bloated or corrupted cache
cannot take the app down:

1. Items larger than max_item_bytes are removed.
2. Items under schema key prefixes that are not valid JSON are removed.
3. A table list above corruption_threshold_bytes whose average per-table
   size exceeds max_avg_table_bytes is treated as corrupted and removed.
4. If the total is still above validator_total_bytes, all schema data
   (tables, edges, enums, visible/collapsed schemas) is cleared.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

from schemasync.config import StorageDefaults, get_defaults
from schemasync.logging import ComponentType, get_logger, log_checkpoint
from schemasync.services.persistence_service import StorageBackend, storage_size

logger = get_logger(__name__, ComponentType.STORAGE)


@dataclass
class ValidationReport:
    total_before: int = 0
    total_after: int = 0
    removed_keys: List[str] = field(default_factory=list)
    purged: bool = False

    @property
    def healthy(self) -> bool:
        return not self.removed_keys and not self.purged


class StorageValidator:
    """Checks and cleans a StorageBackend."""

    def __init__(self, storage: StorageBackend, defaults: Optional[StorageDefaults] = None):
        self.storage = storage
        self.defaults = defaults or get_defaults().storage

    def needs_cleanup(self) -> bool:
        return storage_size(self.storage) > self.defaults.validator_total_bytes

    def _is_json_key(self, key: str) -> bool:
        return key.startswith(self.defaults.json_key_prefixes)

    def _table_list_corrupted(self) -> bool:
        text = self.storage.read(self.defaults.tables_key)
        if text is None or len(text) <= self.defaults.corruption_threshold_bytes:
            return False
        try:
            tables = json.loads(text)
        except ValueError:
            logger.error("Cannot parse stored table list")
            return True
        if not isinstance(tables, dict) or not tables:
            return True
        average = len(text) / len(tables)
        if average > self.defaults.max_avg_table_bytes:
            logger.error(f"Table data appears corrupted ({average:.0f} chars per table)")
            return True
        return False

    def validate(self) -> ValidationReport:
        report = ValidationReport(total_before=storage_size(self.storage))
        to_remove: List[str] = []

        for key in self.storage.keys():
            value = self.storage.read(key)
            if value is None:
                continue
            size = len(key) + len(value)
            if size > self.defaults.max_item_bytes:
                logger.warning(f"Oversized item: {key} ({size / 1024:.2f}KB)")
                to_remove.append(key)
                continue
            if self._is_json_key(key):
                try:
                    json.loads(value)
                except ValueError:
                    logger.error(f"Corrupted JSON: {key}")
                    to_remove.append(key)

        if self.defaults.tables_key not in to_remove and self._table_list_corrupted():
            to_remove.append(self.defaults.tables_key)

        for key in to_remove:
            self.storage.remove(key)
        report.removed_keys = to_remove

        if storage_size(self.storage) > self.defaults.validator_total_bytes:
            logger.error("Storage still oversized; clearing all schema data")
            for key in self.defaults.schema_keys:
                self.storage.remove(key)
            report.purged = True
            log_checkpoint("storage_purged", {"keys": list(self.defaults.schema_keys)}, logger=logger.logger)

        report.total_after = storage_size(self.storage)
        if report.healthy:
            logger.debug(f"Storage is healthy ({report.total_after} chars)")
        else:
            logger.info(f"Storage cleaned up: removed {len(to_remove)} items, purged={report.purged}")
        return report


__all__ = ["StorageValidator", "ValidationReport"]
