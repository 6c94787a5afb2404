# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for remote persistence: per-edit pushes, retries, coalescing, bulk save.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from roster_service.core.config import settings
from roster_service.core.dependencies import (
    get_document_store,
    get_entry_store,
    get_failure_repo,
    get_history_repo,
    get_roster_service,
    get_sync_service,
)
from roster_service.models.errors import RemoteSyncFailure
from roster_service.services.sync_service import ROSTER_COLLECTION, RosterSyncService

DATE = "2025-06-01"


def _cycle(identifier="a@x.com", position="Vocals", team="Worship", date=DATE):
    return get_roster_service().cycle_assignment(date, team, identifier, position)


# ============================================
# Per-edit push
# ============================================
class TestPush:
    def test_push_writes_full_entry(self):
        result = _cycle()
        assert get_sync_service().push(DATE, result["version"]) is True
        stored = get_document_store().get(ROSTER_COLLECTION, DATE)
        assert stored["teams"]["Worship"]["a@x.com"] == ["Vocals"]
        assert stored["date"] == DATE

    def test_push_updates_synced_state_via_subscription(self):
        result = _cycle()
        get_sync_service().push(DATE, result["version"])
        assert get_entry_store().synced(DATE).teams["Worship"]["a@x.com"] == ["Vocals"]
        # Still unsaved until the bulk save
        assert get_entry_store().dirty_dates() == [DATE]

    def test_superseded_version_is_skipped(self):
        first = _cycle("a@x.com")
        second = _cycle("b@x.com", position="Keys")
        sync = get_sync_service()
        assert sync.push(DATE, first["version"]) is False
        assert sync.push(DATE, second["version"]) is True
        stored = get_document_store().get(ROSTER_COLLECTION, DATE)
        assert set(stored["teams"]["Worship"]) == {"a@x.com", "b@x.com"}

    def test_push_after_discard_is_skipped(self):
        result = _cycle()
        get_roster_service().discard()
        assert get_sync_service().push(DATE, result["version"]) is False
        assert get_document_store().get(ROSTER_COLLECTION, DATE) is None

    def test_retries_then_succeeds(self):
        result = _cycle()
        store = get_document_store()
        real_set = store.set
        calls = {"n": 0}

        def flaky(collection, doc_id, data):
            calls["n"] += 1
            if calls["n"] < 3:
                raise SQLAlchemyError("connection reset")
            return real_set(collection, doc_id, data)

        with patch.object(store, "set", side_effect=flaky):
            assert get_sync_service().push(DATE, result["version"]) is True
        assert calls["n"] == 3
        assert get_failure_repo().count() == 0

    def test_backoff_doubles(self):
        sleep = MagicMock()
        sync = RosterSyncService(
            store=get_document_store(),
            entry_store=get_entry_store(),
            failure_repo=get_failure_repo(),
            sleep=sleep,
        )
        result = _cycle()
        with patch.object(settings, "SYNC_RETRY_BACKOFF", 0.5), patch.object(
            get_document_store(), "set", side_effect=SQLAlchemyError("down"),
        ):
            assert sync.push(DATE, result["version"]) is False
        delays = [c.args[0] for c in sleep.call_args_list]
        assert delays == [0.5, 1.0, 2.0][: settings.SYNC_MAX_RETRIES]

    def test_final_failure_recorded_without_rollback(self):
        result = _cycle()
        with patch.object(
            get_document_store(), "set", side_effect=SQLAlchemyError("down"),
        ) as mocked:
            assert get_sync_service().push(DATE, result["version"]) is False
        assert mocked.call_count == settings.SYNC_MAX_RETRIES + 1

        failures = get_sync_service().list_failures()
        assert len(failures) == 1
        assert failures[0]["date"] == DATE
        assert failures[0]["error_type"] == "SQLAlchemyError"
        # Optimistic edit kept
        assert get_entry_store().resolve(DATE).teams["Worship"]["a@x.com"] == ["Vocals"]

    def test_later_success_resolves_failure(self):
        result = _cycle()
        with patch.object(get_document_store(), "set", side_effect=SQLAlchemyError("down")):
            get_sync_service().push(DATE, result["version"])
        assert get_failure_repo().count() == 1
        get_sync_service().push(DATE, result["version"])
        assert get_failure_repo().count() == 0

    def test_list_failures_filters_by_date(self):
        repo = get_failure_repo()
        repo.append({"date": DATE, "error": "x"})
        repo.append({"date": "2025-06-08", "error": "y"})
        assert [f["error"] for f in get_sync_service().list_failures(date=DATE)] == ["x"]


# ============================================
# Bulk save / discard
# ============================================
class TestSave:
    def test_nothing_to_save(self):
        assert get_roster_service().save() == {"status": "nothing_to_save", "saved": []}

    def test_save_persists_and_clears_dirty(self):
        _cycle()
        _cycle(date="2025-06-08")
        result = get_roster_service().save()
        assert result == {"status": "saved", "saved": [DATE, "2025-06-08"]}
        assert not get_entry_store().has_changes()
        assert set(get_document_store().get_all(ROSTER_COLLECTION)) == {DATE, "2025-06-08"}
        assert get_entry_store().synced(DATE).updated_at is not None

    def test_save_respects_batch_limit(self):
        for day in range(1, 6):
            _cycle(date=f"2025-06-0{day}")
        store = get_document_store()
        real_batch = store.batch
        sizes = []

        def tracking_batch():
            batch = real_batch()
            real_commit = batch.commit

            def commit():
                sizes.append(len(batch))
                return real_commit()

            batch.commit = commit
            return batch

        with patch.object(settings, "BATCH_LIMIT", 2), patch.object(
            store, "batch", side_effect=tracking_batch,
        ):
            get_roster_service().save()
        assert sizes == [2, 2, 1]

    def test_failed_save_keeps_dirty_entries(self):
        _cycle()
        with patch.object(
            get_document_store(), "_apply_ops", side_effect=SQLAlchemyError("down"),
        ):
            with pytest.raises(RemoteSyncFailure):
                get_roster_service().save()
        assert get_entry_store().dirty_dates() == [DATE]
        assert get_roster_service().save()["status"] == "saved"

    def test_discard_reverts(self):
        get_document_store().set(ROSTER_COLLECTION, DATE, {
            "date": DATE, "teams": {"Band": {"c@x.com": ["Sound"]}},
        })
        before = get_entry_store().resolve(DATE)
        _cycle()
        result = get_roster_service().discard()
        assert result == {"status": "discarded", "discarded": [DATE]}
        assert get_entry_store().resolve(DATE) == before

    def test_discard_after_push_restores_store(self):
        store = get_document_store()
        store.set(ROSTER_COLLECTION, DATE, {
            "date": DATE, "teams": {"Band": {"c@x.com": ["Sound"]}},
        })
        for date in (DATE, "2025-06-08"):
            result = _cycle(date=date)
            assert get_sync_service().push(date, result["version"]) is True

        get_roster_service().discard()
        assert store.get(ROSTER_COLLECTION, DATE)["teams"] == {"Band": {"c@x.com": ["Sound"]}}
        assert store.get(ROSTER_COLLECTION, "2025-06-08") is None
        assert get_entry_store().resolve(DATE).teams == {"Band": {"c@x.com": ["Sound"]}}
        assert get_entry_store().resolve("2025-06-08") is None

    def test_discard_leaves_unpushed_documents_alone(self):
        store = get_document_store()
        store.set(ROSTER_COLLECTION, DATE, {"date": DATE, "teams": {}})
        stamp = store.get(ROSTER_COLLECTION, DATE)["updatedAt"]
        _cycle()
        get_roster_service().discard()
        assert store.get(ROSTER_COLLECTION, DATE)["updatedAt"] == stamp

    def test_failed_restore_recorded(self):
        result = _cycle()
        get_sync_service().push(DATE, result["version"])
        with patch.object(
            get_document_store(), "_apply_ops", side_effect=SQLAlchemyError("down"),
        ):
            assert get_roster_service().discard()["discarded"] == [DATE]
        failures = get_sync_service().list_failures()
        assert [f["date"] for f in failures] == [DATE]
        assert get_entry_store().resolve(DATE) is None

    def test_history_records_save(self):
        _cycle()
        get_roster_service().save()
        types = [e["event_type"] for e in get_history_repo().get_all()]
        assert types == ["assignment_cycled", "roster_saved"]
