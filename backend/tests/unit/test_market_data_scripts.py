"""Tests for the record_daily_snapshots and refresh_history scripts."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from integrations.market_data_protocol import HistoryBar
from schemas.performance import RefreshResult
from scripts import record_daily_snapshots, refresh_history
from services.exceptions import HistoryPersistenceError
from services.snapshot_service import SnapshotRunSummary


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def session():
    return MagicMock()


def _patch(module, service, session):
    return (
        patch.object(module, "get_market_data_service", return_value=service),
        patch.object(module, "get_session_local", return_value=lambda: session),
    )


class TestRecordDailySnapshots:
    def test_all_users_summary(self, service, session, capsys):
        service.snapshots.record_all_user_snapshots.return_value = SnapshotRunSummary(
            users_processed=3, snapshots_recorded=2, errors=[]
        )
        svc_patch, db_patch = _patch(record_daily_snapshots, service, session)
        with svc_patch, db_patch:
            code = record_daily_snapshots.record_snapshots()

        assert code == 0
        assert "Snapshots recorded: 2" in capsys.readouterr().out
        session.close.assert_called_once()
        service.close.assert_called_once()

    def test_errors_give_failing_exit_code(self, service, session):
        service.snapshots.record_all_user_snapshots.return_value = SnapshotRunSummary(
            users_processed=1, errors=["u1: boom"]
        )
        svc_patch, db_patch = _patch(record_daily_snapshots, service, session)
        with svc_patch, db_patch:
            assert record_daily_snapshots.record_snapshots() == 1

    def test_single_user_without_holdings(self, service, session, capsys):
        service.snapshots.record_daily_snapshot.return_value = None
        svc_patch, db_patch = _patch(record_daily_snapshots, service, session)
        with svc_patch, db_patch:
            assert record_daily_snapshots.record_snapshots("user-1") == 0

        service.snapshots.record_daily_snapshot.assert_called_once_with(session, "user-1")
        assert "no holdings" in capsys.readouterr().out


class TestRefreshHistory:
    def test_symbols_refreshed(self, service, session, capsys):
        bar = HistoryBar("AAPL", date(2024, 6, 14), 1, 1, 1, 1, 1)
        service.history.get_historical_data.side_effect = [
            [bar],
            [],
            HistoryPersistenceError("TSLA"),
        ]
        svc_patch, db_patch = _patch(refresh_history, service, session)
        with svc_patch, db_patch:
            code = refresh_history.refresh_symbols(["aapl", "FAKE", "TSLA"], days=30)

        assert code == 1
        service.history.get_historical_data.assert_any_call(session, "aapl", days=30, force_refresh=True)
        output = capsys.readouterr().out
        assert "AAPL: 1 bars" in output
        assert "FAKE: no data" in output
        assert "TSLA" in output

    def test_user_refresh(self, service, session, capsys):
        service.performance.refresh_history.return_value = RefreshResult(
            symbols_refreshed=["AAPL"], snapshots_written=12
        )
        svc_patch, db_patch = _patch(refresh_history, service, session)
        with svc_patch, db_patch:
            assert refresh_history.refresh_user("user-1") == 0

        assert "Snapshots written: 12" in capsys.readouterr().out
