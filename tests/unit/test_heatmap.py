"""Tests for the weekday x hour heatmap."""

from datetime import datetime, timedelta, timezone

import pytest

from neuro_audit.analytics.filtering import filter_working_set
from neuro_audit.analytics.heatmap import (
    HOURS,
    WEEKDAYS,
    HeatmapCell,
    build_heatmap,
    color_class,
    from_audit_date,
    heatmap_rows,
    resolve_timestamp,
)
from neuro_audit.analytics.projection import project_trend
from neuro_audit.core.enums import HeatmapColor
from neuro_audit.core.models import StoreTimestamp

UTC = timezone.utc


def _cell(count: int, coherence: int = 0, pnl: float = 0.0) -> HeatmapCell:
    return HeatmapCell(session_count=count, avg_coherence=coherence, avg_pnl=pnl)


class TestGridShape:
    def test_empty_input_has_all_cells(self):
        grid = build_heatmap([])
        assert len(grid) == 45
        assert set(grid) == {(d, h) for d in WEEKDAYS for h in HOURS}
        assert all(not cell.has_data for cell in grid.values())

    def test_rows_for_rendering(self):
        rows = heatmap_rows(build_heatmap([]))
        assert [hour for hour, _ in rows] == list(range(8, 17))
        assert all(len(cells) == 5 for _, cells in rows)


class TestResolution:
    def test_session_timestamp_wins(self, make_record, stamped):
        record = make_record(
            session_timestamp=stamped(2024, 1, 3, 14),  # Wednesday
            created_at=stamped(2024, 1, 4, 10),
            audit_date="2024-01-01",
        )
        assert resolve_timestamp(record, UTC) == datetime(2024, 1, 3, 14, tzinfo=UTC)

    def test_zero_session_timestamp_falls_through(self, make_record, stamped):
        record = make_record(
            session_timestamp=StoreTimestamp(seconds=0),
            created_at=stamped(2024, 1, 4, 10),
        )
        assert resolve_timestamp(record, UTC).hour == 10

    def test_string_created_at_falls_through_to_audit_date(self, make_record):
        record = make_record(
            created_at={"seconds": "1704448800"}, audit_date="2024-01-02", session_start_time="11:00"
        )
        assert resolve_timestamp(record, UTC) == datetime(2024, 1, 2, 11, 0)

    def test_created_at_before_audit_date(self, make_record, stamped):
        record = make_record(created_at=stamped(2024, 1, 5, 11), audit_date="2024-01-01")
        assert resolve_timestamp(record, UTC).isoweekday() == 5

    def test_audit_date_with_start_time(self, make_record):
        record = make_record(audit_date="2024-01-02", session_start_time="15:30")
        assert resolve_timestamp(record) == datetime(2024, 1, 2, 15, 30)

    def test_audit_date_defaults_to_ten(self, make_record):
        record = make_record(audit_date="2024-01-02", session_start_time=None)
        assert resolve_timestamp(record).hour == 10

    def test_audit_date_ignores_display_zone(self, make_record):
        record = make_record(audit_date="2024-01-02", session_start_time="09:00")
        shifted = timezone(timedelta(hours=-8))
        assert resolve_timestamp(record, shifted) == datetime(2024, 1, 2, 9, 0)

    def test_epoch_uses_display_zone(self, make_record, stamped):
        record = make_record(session_timestamp=stamped(2024, 1, 2, 9))
        madrid_winter = timezone(timedelta(hours=1))
        assert resolve_timestamp(record, madrid_winter).hour == 10

    @pytest.mark.parametrize("bad", ["2024/01/02", "2024-13-40", "yesterday"])
    def test_malformed_date_unresolved(self, make_record, bad):
        assert resolve_timestamp(make_record(audit_date=bad)) is None

    def test_malformed_start_time_unresolved(self, make_record):
        assert resolve_timestamp(make_record(session_start_time="nine")) is None

    def test_nothing_to_resolve(self, make_record):
        assert resolve_timestamp(make_record(audit_date=None)) is None

    def test_audit_date_resolver_not_applicable(self, make_record):
        assert from_audit_date(make_record(audit_date=None), None) is None

    def test_custom_resolver_chain(self, make_record):
        fixed = datetime(2024, 1, 4, 12)
        record = make_record()
        assert resolve_timestamp(record, None, [lambda r, tz: fixed]) == fixed


class TestBinning:
    def test_averages_per_cell(self, make_record):
        records = [
            make_record(coherence_index=80, daily_pnl=100),
            make_record(coherence_index=71, daily_pnl=-30.555),
        ]
        cell = build_heatmap(records)[(1, 9)]
        assert cell.session_count == 2
        assert cell.avg_coherence == 76  # 75.5 rounds up
        assert cell.avg_pnl == 34.72

    def test_small_net_loss_stays_negative(self, make_record):
        cell = build_heatmap(
            [make_record(coherence_index=90, daily_pnl=-0.01),
             make_record(coherence_index=90, daily_pnl=0.0)]
        )[(1, 9)]
        assert cell.avg_pnl == -0.01
        assert color_class(cell) == HeatmapColor.CRITICAL

    def test_absent_values_read_as_zero(self, make_record):
        cell = build_heatmap([make_record(coherence_index=None, daily_pnl=None)])[(1, 9)]
        assert cell.session_count == 1
        assert cell.avg_coherence == 0
        assert cell.avg_pnl == 0

    def test_weekend_excluded(self, make_record):
        grid = build_heatmap([make_record(audit_date="2024-01-06")])  # Saturday
        assert sum(c.session_count for c in grid.values()) == 0

    @pytest.mark.parametrize("start", ["07:59", "17:00", "23:10"])
    def test_outside_hours_excluded(self, make_record, start):
        grid = build_heatmap([make_record(session_start_time=start)])
        assert sum(c.session_count for c in grid.values()) == 0

    def test_edge_hours_included(self, make_record):
        grid = build_heatmap(
            [make_record(session_start_time="08:00"), make_record(session_start_time="16:59")]
        )
        assert grid[(1, 8)].session_count == 1
        assert grid[(1, 16)].session_count == 1

    @pytest.mark.parametrize("bad_date", ["2024-02-31", "2024-01", "2024-01-02-03"])
    def test_unplaceable_record_kept_elsewhere(self, make_record, bad_date):
        good = make_record(audit_date="2024-01-02")
        bad = make_record(audit_date=bad_date)
        working_set = filter_working_set([good, bad], "ana")
        assert len(working_set) == 2
        assert len(project_trend(working_set)) == 2
        grid = build_heatmap(working_set)
        assert sum(c.session_count for c in grid.values()) == 1

    def test_saturday_session_timestamp_excluded(self, make_record, stamped):
        record = make_record(session_timestamp=stamped(2024, 1, 6, 10), audit_date="2024-01-01")
        grid = build_heatmap([record], UTC)
        assert sum(c.session_count for c in grid.values()) == 0

    def test_order_independent(self, make_record):
        records = [make_record(audit_date=f"2024-01-0{d}", coherence_index=d * 10) for d in range(1, 6)]
        forward = build_heatmap(records)
        backward = build_heatmap(list(reversed(records)))
        assert forward == backward


class TestColorClass:
    def test_no_data(self):
        assert color_class(_cell(0)) == HeatmapColor.NO_DATA

    def test_low_coherence_critical(self):
        assert color_class(_cell(1, coherence=49, pnl=500)) == HeatmapColor.CRITICAL

    def test_losing_critical_even_with_high_coherence(self):
        assert color_class(_cell(2, coherence=95, pnl=-0.01)) == HeatmapColor.CRITICAL

    @pytest.mark.parametrize("coherence", [50, 64])
    def test_borderline_caution(self, coherence):
        assert color_class(_cell(1, coherence=coherence, pnl=0)) == HeatmapColor.CAUTION

    def test_optimal(self):
        assert color_class(_cell(3, coherence=65, pnl=0)) == HeatmapColor.OPTIMAL

    def test_zero_average_is_not_no_data(self):
        assert color_class(_cell(1, coherence=0, pnl=0)) == HeatmapColor.CRITICAL
