# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the dirty-overlay entry store and the SQLAlchemy document store.
"""

from unittest.mock import MagicMock

import pytest

from roster_service.core.dependencies import get_document_store, get_entry_store
from roster_service.models.domain import RosterEntry, Team
from roster_service.repositories.document_store import DocumentStore
from roster_service.repositories.entry_store import DirtyEntryStore
from roster_service.services.cycle import cycle_assignment

DATE = "2025-06-01"
TEAM = Team(name="Worship", max_conflict=2)


def _assign(identifier, position):
    return lambda entry: cycle_assignment(entry, TEAM, identifier, [position])


# ============================================
# DirtyEntryStore
# ============================================
class TestDirtyEntryStore:
    def test_stage_creates_entry_lazily(self):
        store = DirtyEntryStore()
        entry, version = store.stage(DATE, _assign("a@x.com", "Vocals"))
        assert entry.teams["Worship"]["a@x.com"] == ["Vocals"]
        assert version == 1
        assert store.dirty_dates() == [DATE]
        assert store.synced(DATE) is None

    def test_versions_increase_per_date(self):
        store = DirtyEntryStore()
        store.stage(DATE, _assign("a@x.com", "Vocals"))
        _, version = store.stage(DATE, _assign("b@x.com", "Vocals"))
        _, other = store.stage("2025-06-08", _assign("a@x.com", "Vocals"))
        assert version == 2
        assert other == 1
        assert store.version(DATE) == 2

    def test_dirty_shadows_synced(self):
        store = DirtyEntryStore()
        store.apply_remote(DATE, {"teams": {"Worship": {"a@x.com": ["Keys"]}}})
        store.stage(DATE, _assign("b@x.com", "Vocals"))
        resolved = store.resolve(DATE)
        assert resolved.teams["Worship"] == {"a@x.com": ["Keys"], "b@x.com": ["Vocals"]}
        assert store.synced(DATE).teams["Worship"] == {"a@x.com": ["Keys"]}

    def test_remote_update_does_not_clobber_dirty(self):
        store = DirtyEntryStore()
        store.stage(DATE, _assign("a@x.com", "Vocals"))
        store.apply_remote(DATE, {"teams": {"Worship": {"z@x.com": ["Drums"]}}})
        assert store.resolve(DATE).teams["Worship"] == {"a@x.com": ["Vocals"]}

    def test_discard_reverts_to_synced(self):
        store = DirtyEntryStore()
        store.apply_remote(DATE, {"teams": {"Worship": {"a@x.com": ["Keys"]}}})
        before = store.resolve(DATE)
        store.stage(DATE, _assign("b@x.com", "Vocals"))
        store.stage("2025-06-08", _assign("b@x.com", "Vocals"))

        restored = store.discard()
        assert list(restored) == [DATE, "2025-06-08"]
        assert restored["2025-06-08"] is None
        assert store.resolve(DATE) == before
        assert store.resolve("2025-06-08") is None
        assert store.discard() == {}

    def test_discard_undoes_edit_echoed_by_sync_stream(self):
        store = DirtyEntryStore()
        store.stage(DATE, _assign("a@x.com", "Vocals"))
        # A background push copies the edit into the synced map
        store.apply_remote(DATE, store.resolve(DATE).to_document())
        assert store.discard() == {DATE: None}
        assert store.resolve(DATE) is None
        assert store.synced(DATE) is None

    def test_commit_merges_and_clears(self):
        store = DirtyEntryStore()
        store.stage(DATE, _assign("a@x.com", "Vocals"))
        merged = store.commit()
        assert list(merged) == [DATE]
        assert not store.has_changes()
        assert store.synced(DATE).teams["Worship"]["a@x.com"] == ["Vocals"]

    def test_reads_return_copies(self):
        store = DirtyEntryStore()
        store.stage(DATE, _assign("a@x.com", "Vocals"))
        leaked = store.resolve(DATE)
        leaked.teams["Worship"]["a@x.com"].append("Hacked")
        assert store.resolve(DATE).teams["Worship"]["a@x.com"] == ["Vocals"]

    def test_stage_clone_does_not_alias_synced(self):
        store = DirtyEntryStore()
        store.apply_remote(DATE, {"teams": {"Worship": {"a@x.com": ["Keys"]}}})

        def mutate(entry):
            entry.teams["Worship"]["a@x.com"].append("Vocals")
            return entry

        store.stage(DATE, mutate)
        assert store.synced(DATE).teams["Worship"]["a@x.com"] == ["Keys"]

    def test_failed_mutation_stages_nothing(self):
        store = DirtyEntryStore()

        def boom(entry):
            raise ValueError("rejected")

        with pytest.raises(ValueError):
            store.stage(DATE, boom)
        assert not store.has_changes()
        assert store.version(DATE) == 0

    def test_remote_delete_drops_synced_entry(self):
        store = DirtyEntryStore()
        store.apply_remote(DATE, {"teams": {}})
        store.apply_remote(DATE, None)
        assert store.resolve(DATE) is None

    def test_resolve_range_sorted_and_bounded(self):
        store = DirtyEntryStore()
        store.load_snapshot({
            "2025-06-15": {"teams": {}},
            "2025-06-01": {"teams": {}},
        })
        store.stage("2025-06-08", _assign("a@x.com", "Vocals"))
        dates = [e.date for e in store.resolve_range("2025-06-02", "2025-06-30")]
        assert dates == ["2025-06-08", "2025-06-15"]

    def test_read_helpers(self):
        store = DirtyEntryStore()
        store.apply_remote(DATE, {
            "teams": {"Worship": {"a@x.com": ["Vocals"]}},
            "absence": {"b@x.com": {"reason": "trip"}},
        })
        assert store.has_assignments(DATE)
        assert store.has_assignments(f"{DATE}T00:00:00")
        assert not store.has_assignments("2025-06-08")
        assert store.is_absent(DATE, "b@x.com")
        assert not store.is_absent(DATE, "a@x.com")
        assert store.absence_reason(DATE, "b@x.com") == "trip"
        assert store.absence_reason(DATE, "a@x.com") == ""


# ============================================
# DocumentStore
# ============================================
class TestDocumentStore:
    def test_set_and_get_stamps_updated_at(self):
        store = get_document_store()
        saved = store.set("roster", DATE, {"date": DATE, "teams": {}})
        assert saved["date"] == DATE
        assert "updatedAt" in saved
        assert store.get("roster", DATE) == saved

    def test_set_is_full_overwrite(self):
        store = get_document_store()
        store.set("roster", DATE, {"date": DATE, "eventName": "Easter"})
        store.set("roster", DATE, {"date": DATE})
        assert "eventName" not in store.get("roster", DATE)

    def test_get_missing_returns_none(self):
        assert get_document_store().get("roster", "1999-01-01") is None

    def test_get_all_ordered_by_id(self):
        store = get_document_store()
        store.set("roster", "2025-06-08", {"date": "2025-06-08"})
        store.set("roster", "2025-06-01", {"date": "2025-06-01"})
        assert list(store.get_all("roster")) == ["2025-06-01", "2025-06-08"]

    def test_delete(self):
        store = get_document_store()
        store.set("roster", DATE, {"date": DATE})
        store.delete("roster", DATE)
        assert store.get("roster", DATE) is None

    def test_batch_applies_atomically(self):
        store = get_document_store()
        store.set("roster", "old", {"date": "old"})
        batch = store.batch()
        batch.set("roster", "new", {"date": "new"})
        batch.delete("roster", "old")
        assert batch.commit() == 2
        assert list(store.get_all("roster")) == ["new"]

    def test_batch_limit_enforced(self):
        store = DocumentStore(get_document_store()._engine, batch_limit=2)
        batch = store.batch()
        batch.set("roster", "a", {})
        batch.set("roster", "b", {})
        with pytest.raises(ValueError, match="limit"):
            batch.set("roster", "c", {})

    def test_batch_cannot_be_reused(self):
        batch = get_document_store().batch()
        batch.commit()
        with pytest.raises(RuntimeError):
            batch.set("roster", "a", {})

    def test_subscribers_receive_changes(self):
        store = get_document_store()
        listener = MagicMock()
        unsubscribe = store.subscribe("users", listener)
        store.set("users", "uid-1", {"email": "a@x.com"})
        store.delete("users", "uid-1")
        unsubscribe()
        store.set("users", "uid-2", {"email": "b@x.com"})

        assert listener.call_count == 2
        doc_id, data = listener.call_args_list[0].args
        assert doc_id == "uid-1"
        assert data["email"] == "a@x.com"
        assert listener.call_args_list[1].args == ("uid-1", None)

    def test_failing_listener_does_not_break_writer(self):
        store = get_document_store()
        unsubscribe = store.subscribe("users", MagicMock(side_effect=RuntimeError("boom")))
        try:
            store.set("users", "uid-1", {"email": "a@x.com"})
        finally:
            unsubscribe()
        assert store.get("users", "uid-1")["email"] == "a@x.com"

    def test_roster_writes_flow_into_synced_entries(self):
        get_document_store().set("roster", DATE, {
            "date": DATE, "teams": {"Band": {"a@x.com": ["Drums"]}},
        })
        synced = get_entry_store().synced(DATE)
        assert synced.teams["Band"]["a@x.com"] == ["Drums"]
        assert synced.updated_at is not None

    def test_ping(self):
        get_document_store().ping()

    def test_entry_round_trips_through_aliases(self):
        entry = RosterEntry(date=DATE, event_name="Easter")
        doc = entry.to_document()
        assert doc["eventName"] == "Easter"
        assert RosterEntry.model_validate(doc).event_name == "Easter"
