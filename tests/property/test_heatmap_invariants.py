"""Property test: heatmap grid shape and colour classification.

The grid always has the same 45 Monday-Friday x 08-16 cells, every
binned session lands in exactly one of them, and every cell maps to
exactly one colour.
"""

from datetime import date, timedelta

from hypothesis import given, settings, strategies as st

from neuro_audit.analytics.heatmap import HOURS, WEEKDAYS, HeatmapCell, build_heatmap, color_class
from neuro_audit.core.enums import HeatmapColor
from neuro_audit.core.models import AuditRecord

days = st.dates(min_value=date(2023, 1, 1), max_value=date(2025, 12, 31))
starts = st.tuples(st.integers(0, 23), st.integers(0, 59)).map(lambda t: f"{t[0]:02d}:{t[1]:02d}")

records = st.builds(
    lambda day, start, ic, pnl: AuditRecord(
        traderName="Ana",
        auditDate=day.isoformat(),
        sessionStartTime=start,
        coherenceIndex=ic,
        dailyPnL=pnl,
    ),
    days,
    starts,
    st.one_of(st.none(), st.integers(0, 100)),
    st.one_of(st.none(), st.floats(-1e6, 1e6, allow_nan=False)),
)


def _in_grid(record: AuditRecord) -> bool:
    day = date.fromisoformat(record.audit_date)
    hour = int(record.session_start_time.split(":")[0])
    return day.isoweekday() in WEEKDAYS and hour in HOURS


@settings(max_examples=200)
@given(working_set=st.lists(records, max_size=40))
def test_fixed_grid_and_conservation(working_set):
    grid = build_heatmap(working_set)
    assert set(grid) == {(d, h) for d in WEEKDAYS for h in HOURS}
    binned = sum(cell.session_count for cell in grid.values())
    assert binned == sum(1 for r in working_set if _in_grid(r))


@given(working_set=st.lists(records, max_size=20))
def test_averages_bounded_by_inputs(working_set):
    for cell in build_heatmap(working_set).values():
        if cell.has_data:
            assert 0 <= cell.avg_coherence <= 100
        else:
            assert cell.avg_coherence == 0 and cell.avg_pnl == 0


@given(
    count=st.integers(0, 50),
    coherence=st.integers(-10, 120),
    pnl=st.floats(-1e6, 1e6, allow_nan=False),
)
def test_color_class_total(count, coherence, pnl):
    cell = HeatmapCell(session_count=count, avg_coherence=coherence, avg_pnl=pnl)
    color = color_class(cell)
    assert isinstance(color, HeatmapColor)
    assert (color == HeatmapColor.NO_DATA) == (count == 0)


@given(day=days)
def test_weekends_never_binned(day):
    saturday = day + timedelta(days=(6 - day.isoweekday()) % 7)
    record = AuditRecord(auditDate=saturday.isoformat(), sessionStartTime="10:00")
    assert sum(c.session_count for c in build_heatmap([record]).values()) == 0
