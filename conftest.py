# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared fixtures. The environment is pinned before any roster_service import
so every test module runs against an in-memory document store.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEFAULT_METADATA"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

from roster_service.core.config import settings
from roster_service.core.dependencies import (
    get_document_store,
    get_entry_store,
    get_failure_repo,
    get_history_repo,
    get_metadata_service,
)

get_document_store().init_schema()


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state(monkeypatch):
    """Reset every store before each test, then re-seed default metadata."""
    # No real waiting between sync retries
    monkeypatch.setattr(settings, "SYNC_RETRY_BACKOFF", 0.0)
    get_document_store().clear()
    get_entry_store().clear()
    get_history_repo().clear()
    get_failure_repo().clear()
    get_metadata_service().seed_defaults()
    yield
