# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire repositories and services.
"""

from roster_service.core.database import engine
from roster_service.repositories.document_store import DocumentStore
from roster_service.repositories.entry_store import DirtyEntryStore
from roster_service.repositories.history_repository import HistoryRepository
from roster_service.repositories.sync_failure_repository import SyncFailureRepository
from roster_service.services.dashboard_service import DashboardService
from roster_service.services.metadata_service import MetadataService
from roster_service.services.roster_service import RosterService
from roster_service.services.sync_service import ROSTER_COLLECTION, RosterSyncService

# ── Singleton repository instances ──
_document_store = DocumentStore(engine)
_entry_store = DirtyEntryStore()
_history_repo = HistoryRepository()
_failure_repo = SyncFailureRepository()

# ── Service instances (with injected dependencies) ──
_metadata_service = MetadataService(store=_document_store)
_sync_service = RosterSyncService(
    store=_document_store,
    entry_store=_entry_store,
    failure_repo=_failure_repo,
)
_roster_service = RosterService(
    entry_store=_entry_store,
    metadata=_metadata_service,
    sync=_sync_service,
    history_repo=_history_repo,
)
_dashboard_service = DashboardService(
    entry_store=_entry_store,
    metadata=_metadata_service,
)

# Synced entries follow every committed roster document change
_document_store.subscribe(ROSTER_COLLECTION, _entry_store.apply_remote)


# ── FastAPI dependency functions ──
def get_document_store() -> DocumentStore:
    return _document_store


def get_entry_store() -> DirtyEntryStore:
    return _entry_store


def get_history_repo() -> HistoryRepository:
    return _history_repo


def get_failure_repo() -> SyncFailureRepository:
    return _failure_repo


def get_metadata_service() -> MetadataService:
    return _metadata_service


def get_sync_service() -> RosterSyncService:
    return _sync_service


def get_roster_service() -> RosterService:
    return _roster_service


def get_dashboard_service() -> DashboardService:
    return _dashboard_service
