"""Tests for MonitoredUserRepository."""

import pytest
from datetime import timedelta
from unittest.mock import patch
from sqlalchemy.exc import IntegrityError

from carshopwatch.database.models import MonitoredUserDB
from carshopwatch.database.monitored_user_repository import MonitoredUserRepository
from carshopwatch.models.monitored_user import MonitoringStatus
from tests.conftest import USER_ID, SUSPECT_ID

REASON = "High frequency of CREATE operations"


class TestEscalate:
    """Test create-or-refresh semantics of escalate()."""
    
    def test_creates_active_entry(self, db_session, now):
        entry, created = MonitoredUserRepository(db_session).escalate(SUSPECT_ID, REASON, 15, "5 minutes", now)
        
        assert created is True
        assert entry.id is not None
        assert entry.user_id == SUSPECT_ID
        assert entry.reason == REASON
        assert entry.actions_count == 15
        assert entry.time_window == "5 minutes"
        assert entry.status == MonitoringStatus.ACTIVE.value
        assert entry.first_detected == now
        assert entry.last_updated == now
    
    def test_refreshes_existing_active_entry_in_place(self, db_session, now):
        repo = MonitoredUserRepository(db_session)
        first, _ = repo.escalate(SUSPECT_ID, REASON, 15, "5 minutes", now)
        later = now + timedelta(minutes=1)
        
        second, created = repo.escalate(SUSPECT_ID, REASON, 20, "5 minutes", later)
        
        assert created is False
        assert second.id == first.id
        assert second.actions_count == 20
        assert second.first_detected == now
        assert second.last_updated == later
        assert len(repo.get_all_for_user(SUSPECT_ID)) == 1
    
    def test_resolved_entry_is_not_reused(self, db_session, now):
        """A new breach after resolution opens a new active entry; history is kept."""
        repo = MonitoredUserRepository(db_session)
        first, _ = repo.escalate(SUSPECT_ID, REASON, 15, "5 minutes", now)
        repo.update_status(first.id, MonitoringStatus.RESOLVED, now=now)
        
        second, created = repo.escalate(SUSPECT_ID, REASON, 11, "5 minutes", now + timedelta(hours=1))
        
        assert created is True
        assert second.id != first.id
        statuses = sorted(entry.status for entry in repo.get_all_for_user(SUSPECT_ID))
        assert statuses == ["active", "resolved"]
    
    def test_separate_reasons_get_separate_entries(self, db_session, now):
        repo = MonitoredUserRepository(db_session)
        repo.escalate(SUSPECT_ID, REASON, 15, "5 minutes", now)
        repo.escalate(SUSPECT_ID, "High frequency of DELETE operations", 6, "5 minutes", now)
        
        assert len(repo.list_active()) == 2
    
    def test_recovers_when_concurrent_writer_inserted_first(self, db_session, session_factory, now):
        """If another writer wins the insert, the unique index rejects ours and the winner is updated."""
        with session_factory() as other:
            MonitoredUserRepository(other).escalate(SUSPECT_ID, REASON, 12, "5 minutes", now)
        
        original = MonitoredUserRepository._find_active
        calls = []
        
        def stale_first_lookup(self, user_id, reason):
            calls.append(user_id)
            if len(calls) == 1:
                return None
            return original(self, user_id, reason)
        
        repo = MonitoredUserRepository(db_session)
        with patch.object(MonitoredUserRepository, "_find_active", autospec=True, side_effect=stale_first_lookup):
            entry, created = repo.escalate(SUSPECT_ID, REASON, 14, "5 minutes", now + timedelta(seconds=5))
        
        assert created is False
        assert entry.actions_count == 14
        assert len(repo.get_all_for_user(SUSPECT_ID)) == 1


class TestActiveUniqueness:
    """The store itself enforces one active entry per (user, reason)."""
    
    def _row(self, status, now):
        return MonitoredUserDB(
            user_id=SUSPECT_ID,
            reason=REASON,
            actions_count=10,
            time_window="5 minutes",
            first_detected=now,
            last_updated=now,
            status=status,
        )
    
    def test_second_active_row_is_rejected(self, db_session, now):
        db_session.add(self._row("active", now))
        db_session.commit()
        
        db_session.add(self._row("active", now))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
    
    def test_history_rows_are_unconstrained(self, db_session, now):
        db_session.add_all([
            self._row("resolved", now),
            self._row("resolved", now),
            self._row("false_positive", now),
            self._row("active", now),
        ])
        db_session.commit()
        
        assert len(MonitoredUserRepository(db_session).get_all_for_user(SUSPECT_ID)) == 4


class TestOperatorQueries:
    """Test list/get/update_status."""
    
    def test_list_active_newest_first(self, db_session, now):
        repo = MonitoredUserRepository(db_session)
        older, _ = repo.escalate(USER_ID, REASON, 10, "5 minutes", now)
        newer, _ = repo.escalate(SUSPECT_ID, REASON, 10, "5 minutes", now + timedelta(minutes=1))
        resolved, _ = repo.escalate(SUSPECT_ID, "High frequency of LOGIN operations", 9, "5 minutes", now)
        repo.update_status(resolved.id, MonitoringStatus.FALSE_POSITIVE, now=now)
        
        active = repo.list_active()
        
        assert [entry.id for entry in active] == [newer.id, older.id]
    
    def test_update_status_sets_last_updated(self, db_session, now):
        repo = MonitoredUserRepository(db_session)
        entry, _ = repo.escalate(SUSPECT_ID, REASON, 10, "5 minutes", now)
        later = now + timedelta(hours=2)
        
        updated = repo.update_status(entry.id, MonitoringStatus.RESOLVED, now=later)
        
        assert updated.status == MonitoringStatus.RESOLVED.value
        assert updated.last_updated == later
        assert repo.get_active(SUSPECT_ID, REASON) is None
    
    def test_update_status_unknown_entry_returns_none(self, db_session):
        assert MonitoredUserRepository(db_session).update_status(12345, MonitoringStatus.RESOLVED) is None
    
    def test_reopening_conflicts_with_existing_active_entry(self, db_session, now):
        repo = MonitoredUserRepository(db_session)
        first, _ = repo.escalate(SUSPECT_ID, REASON, 10, "5 minutes", now)
        repo.update_status(first.id, MonitoringStatus.RESOLVED, now=now)
        repo.escalate(SUSPECT_ID, REASON, 12, "5 minutes", now)
        
        with pytest.raises(IntegrityError):
            repo.update_status(first.id, MonitoringStatus.ACTIVE, now=now)
