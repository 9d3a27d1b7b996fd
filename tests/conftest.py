"""Shared fixtures: every test starts from environment-free defaults."""

import pytest

from schemasync.config import reset_defaults

ENV_VARS = (
    "SCHEMA_HISTORY_MAX_ENTRIES",
    "SCHEMA_HISTORY_SAVE_ENTRIES",
    "SCHEMA_HISTORY_STORAGE_KEY",
    "SCHEMA_STORAGE_MAX_BYTES",
    "SCHEMA_STORAGE_MAX_ITEM_BYTES",
    "SCHEMA_FALLBACK_COLUMN_TYPE",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_defaults(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_defaults()
    yield
    reset_defaults()
