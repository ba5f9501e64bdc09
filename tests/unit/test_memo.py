"""Tests for dependency-tracked memoization."""

from datetime import date

from neuro_audit.analytics.memo import MemoCell, same_dependency
from neuro_audit.core.enums import YesNo


class TestSameDependency:
    def test_value_types_compare_by_value(self):
        assert same_dependency("ana", "".join(["a", "na"]))
        assert same_dependency(3, 3)
        assert same_dependency(date(2024, 1, 1), date(2024, 1, 1))
        assert same_dependency(YesNo.YES, YesNo.YES)
        assert same_dependency(None, None)

    def test_containers_compare_by_identity(self):
        a = (1, 2)
        assert same_dependency(a, a)
        assert not same_dependency([1, 2], [1, 2])
        assert not same_dependency({"a": 1}, {"a": 1})

    def test_type_mismatch(self):
        assert not same_dependency(1, 1.0)
        assert not same_dependency(True, 1)


class TestMemoCell:
    def test_computes_once_for_same_deps(self):
        calls = []
        cell = MemoCell("double", lambda x: calls.append(x) or x * 2)
        assert cell.get(2) == 4
        assert cell.get(2) == 4
        assert calls == [2]
        assert cell.computations == 1

    def test_recomputes_on_change(self):
        cell = MemoCell("sum", lambda a, b: a + b)
        cell.get(1, 2)
        assert cell.get(1, 3) == 4
        assert cell.computations == 2

    def test_identity_tracking(self):
        cell = MemoCell("length", len)
        records = [1, 2, 3]
        cell.get(records)
        cell.get(records)
        assert cell.computations == 1
        cell.get([1, 2, 3])
        assert cell.computations == 2

    def test_caches_none_results(self):
        cell = MemoCell("nothing", lambda x: None)
        cell.get(1)
        cell.get(1)
        assert cell.computations == 1

    def test_invalidate(self):
        cell = MemoCell("const", lambda: 42)
        cell.get()
        cell.invalidate()
        cell.get()
        assert cell.computations == 2
