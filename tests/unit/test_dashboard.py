"""Tests for the memoized audit dashboard."""

from datetime import date

import pytest

from neuro_audit.core.enums import DisciplineBand, ReadinessOutcome
from neuro_audit.dashboard import AuditDashboard
from neuro_audit.draft import MSG_NAME_REQUIRED, MSG_SAVED
from neuro_audit.storage.record_store import InMemoryRecordStore


@pytest.fixture
def dashboard(memory_store, utc_settings, make_record):
    memory_store.append(make_record(trader_name="Ana", audit_date="2024-01-01"))
    memory_store.append(make_record(trader_name="Ana", audit_date="2024-01-02"))
    memory_store.append(make_record(trader_name="Bob", audit_date="2024-01-02"))
    dash = AuditDashboard(memory_store, utc_settings)
    dash.set_filter("Ana")
    yield dash
    dash.close()


class TestSnapshots:
    def test_receives_initial_snapshot(self, dashboard):
        assert len(dashboard.records) == 3
        assert len(dashboard.working_set) == 2

    def test_store_change_replaces_records(self, dashboard, memory_store, make_record):
        before = dashboard.records
        memory_store.append(make_record(trader_name="ana", audit_date="2024-01-03"))
        assert dashboard.records is not before
        assert len(dashboard.working_set) == 3

    def test_close_stops_delivery(self, dashboard, memory_store, make_record):
        dashboard.close()
        memory_store.append(make_record())
        assert len(dashboard.records) == 3


class TestFiltering:
    def test_date_range(self, dashboard):
        dashboard.set_filter(start_date="2024-01-02")
        assert [r.audit_date for r in dashboard.working_set] == ["2024-01-02"]
        assert dashboard.draft.trader_name == "Ana"

    def test_name_follows_draft(self, dashboard):
        dashboard.edit_draft(trader_name="bob")
        assert dashboard.criteria.trader_name == "bob"
        assert [r.trader_name for r in dashboard.working_set] == ["Bob"]

    def test_projections(self, dashboard):
        assert len(dashboard.trend) == 2
        assert len(dashboard.session_log) == 2
        assert len(dashboard.reprogramming_log) == 2
        # createdAt (Monday 2024-06-03 08:00 UTC from the sim clock) wins
        # over auditDate
        assert dashboard.heatmap[(1, 8)].session_count == 2
        assert dashboard.heatmap[(1, 9)].session_count == 0


class TestRecomputation:
    def test_unrelated_draft_edit_keeps_heatmap(self, dashboard):
        grid = dashboard.heatmap
        counts = dashboard.computations()
        dashboard.edit_draft(coherence_index=55, daily_pnl=-10, session_details="noise")
        assert dashboard.heatmap is grid
        assert dashboard.computations()["heatmap"] == counts["heatmap"]
        assert dashboard.computations()["working_set"] == counts["working_set"]

    def test_store_change_recomputes_heatmap_once(self, dashboard, memory_store, make_record):
        dashboard.heatmap
        before = dashboard.computations()["heatmap"]
        memory_store.append(make_record(audit_date="2024-01-04"))
        dashboard.heatmap
        dashboard.heatmap
        assert dashboard.computations()["heatmap"] == before + 1

    def test_discipline_tracks_losses_only(self, dashboard):
        dashboard.edit_draft(losses_today=2)
        dashboard.set_loss_classification(1, "Clean")
        assert dashboard.discipline.percent == 50
        computed = dashboard.computations()["discipline_factor"]

        dashboard.edit_draft(coherence_index=72)
        assert dashboard.discipline.band == DisciplineBand.CAUTION
        assert dashboard.computations()["discipline_factor"] == computed
        assert [p.value for p in dashboard.correlation] == [72, 50]

    def test_emotion_edit_recomputes_discipline(self, dashboard):
        dashboard.edit_draft(losses_today=1)
        dashboard.discipline
        computed = dashboard.computations()["discipline_factor"]
        dashboard.set_loss_emotion(1, "Fear")
        dashboard.discipline
        assert dashboard.computations()["discipline_factor"] == computed + 1


class TestCoachDirectory:
    def test_valid_code(self, dashboard):
        assert dashboard.trader_directory("COACH2024") == ["Ana", "Bob"]

    def test_invalid_code(self, dashboard):
        assert dashboard.trader_directory("guess") == []
        assert dashboard.trader_directory(None) == []

    def test_disabled_without_configured_code(self, memory_store):
        dash = AuditDashboard(memory_store)
        assert dash.trader_directory("COACH2024") == []


class TestActions:
    def test_readiness_on_draft(self, dashboard):
        dashboard.edit_draft(plan_reviewed="Yes", coherence_index=90, presence_level=9)
        assert dashboard.evaluate_readiness().outcome == ReadinessOutcome.OPTIMIZED
        dashboard.edit_draft(nervous_system_state="Dorsal")
        assert dashboard.evaluate_readiness().outcome == ReadinessOutcome.NOT_READY

    def test_submit_resets_form_keeping_name(self, dashboard):
        dashboard.edit_draft(audit_date="2024-01-05", coherence_index=66, losses_today=3)
        result = dashboard.submit(today=date(2024, 1, 8))
        assert result.ok
        assert result.message == MSG_SAVED
        assert dashboard.draft.trader_name == "Ana"
        assert dashboard.draft.audit_date == "2024-01-08"
        assert dashboard.draft.losses_today == 0
        assert len(dashboard.working_set) == 3

    def test_submit_without_name_keeps_draft(self, utc_settings):
        dash = AuditDashboard(InMemoryRecordStore(), utc_settings)
        dash.edit_draft(coherence_index=61)
        result = dash.submit()
        assert not result.ok
        assert result.message == MSG_NAME_REQUIRED
        assert dash.draft.coherence_index == 61
        assert dash.records == ()
