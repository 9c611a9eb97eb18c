"""
Memory Diagnostics 单元测试

测试上下文组装、健康度（重复率、膨胀风险）与漂移（话题重叠、停滞风险）诊断。
"""

from __future__ import annotations

import pytest

from conftest import make_window
from memguard.engine.context import assemble_context
from memguard.engine.governance.drift import analyze_drift, stagnation_risk, tokenize, topical_drift
from memguard.engine.governance.health import analyze_health, duplicate_ratio, inflation_risk
from memguard.engine.types import AssembledContext, MemoryRecord, MemoryWindow


class TestMemoryWindow:
    """记忆窗口模型测试"""

    def test_window_truncates_to_limit(self):
        """记录数超过上限时截断，保留最新的前 N 条"""
        window = make_window(["a", "b", "c", "d"], limit=2)
        assert len(window) == 2
        assert window.contents == ["a", "b"]

    def test_empty_window(self):
        window = MemoryWindow(memory_type="chat", limit=3)
        assert window.is_empty
        assert window.contents == []

    def test_record_tolerates_missing_and_foreign_fields(self):
        """缺失字段取默认值，未知字段被忽略"""
        record = MemoryRecord.model_validate({"content": 42, "metadata": "oops", "vector": [0.1]})
        assert record.content == "42"
        assert record.metadata == {}
        assert record.id is None

    def test_record_null_content_becomes_empty(self):
        record = MemoryRecord.model_validate({"content": None})
        assert record.content == ""


class TestContextAssembly:
    """上下文组装测试

    扩展条件（任一满足且中期窗口非空）:
        stability ≠ stable / trend ≠ stable / 短期窗口 < 2 条
    """

    def test_stable_context_uses_short_term_only(self):
        short = make_window(["s1", "s2", "s3"])
        mid = make_window(["m1", "m2"])
        context = assemble_context(short, mid, stability="stable", trend="stable")
        assert context.contents == ["s1", "s2", "s3"]
        assert context.expanded is False
        assert context.expansion_reasons == ()

    def test_unknown_trend_expands_with_mid_term(self):
        """趋势未知时追加中期窗口，顺序为短期在前"""
        short = make_window(["s1", "s2"])
        mid = make_window(["m1", "m2"])
        context = assemble_context(short, mid, stability="stable", trend="unknown")
        assert context.contents == ["s1", "s2", "m1", "m2"]
        assert context.expanded is True
        assert context.expansion_reasons == ("trend_unknown",)

    def test_thin_short_term_expands(self):
        short = make_window(["s1"])
        mid = make_window(["m1"])
        context = assemble_context(short, mid, stability="stable", trend="stable")
        assert context.expanded is True
        assert "short_term_thin" in context.expansion_reasons

    def test_unstable_system_collects_all_reasons(self):
        short = make_window(["s1"])
        mid = make_window(["m1"])
        context = assemble_context(short, mid, stability="monitor", trend="increasing")
        assert context.expansion_reasons == ("stability_monitor", "trend_increasing", "short_term_thin")

    def test_empty_mid_term_never_expands(self):
        short = make_window(["s1"])
        mid = MemoryWindow(memory_type="chat", limit=10)
        context = assemble_context(short, mid, stability="unstable", trend="unknown")
        assert context.contents == ["s1"]
        assert context.expanded is False


class TestHealthAnalysis:
    """健康度诊断测试"""

    def test_duplicate_ratio_empty_is_zero(self):
        assert duplicate_ratio([]) == 0.0

    def test_duplicate_ratio_all_distinct(self):
        assert duplicate_ratio(["a", "b", "c", "d"]) == 0.0

    def test_duplicate_ratio_rounded_to_two_places(self):
        """9 条记录、2 种内容: (9-2)/9 ≈ 0.777 → 0.78"""
        contents = ["a", "b", "a", "b", "a", "b", "a", "b", "a"]
        assert duplicate_ratio(contents) == 0.78

    def test_duplicate_ratio_is_case_sensitive(self):
        """重复判断为逐字比较，不做大小写归一"""
        assert duplicate_ratio(["Hello", "hello"]) == 0.0

    @pytest.mark.parametrize(
        "size,expected",
        [(0, "low"), (4, "low"), (5, "medium"), (7, "medium"), (8, "high"), (20, "high")],
    )
    def test_inflation_thresholds(self, size, expected):
        assert inflation_risk(size) == expected

    def test_analyze_health_reports_sizes(self):
        short = make_window(["a", "b"])
        mid = make_window(["a", "b", "c"])
        context = AssembledContext(records=short.records + mid.records, expanded=True)
        health = analyze_health(short, mid, context)
        assert health.short_term_size == 2
        assert health.mid_term_size == 3
        assert health.context_size == 5
        assert health.duplicate_ratio == 0.4
        assert health.inflation_risk == "medium"
        assert 0.0 <= health.duplicate_ratio <= 1.0

    def test_health_snapshot_serializes(self):
        short = make_window(["a"])
        context = AssembledContext(records=short.records)
        payload = analyze_health(short, make_window([]), context).to_dict()
        assert payload == {
            "short_term_size": 1,
            "mid_term_size": 0,
            "context_size": 1,
            "duplicate_ratio": 0.0,
            "inflation_risk": "low",
        }


class TestDriftAnalysis:
    """漂移诊断测试"""

    def test_tokenize_strips_punctuation_and_lowercases(self):
        assert tokenize("Hello, World! It's   fine.") == ["hello", "world", "its", "fine"]

    def test_tokenize_keeps_digits_and_underscores(self):
        assert tokenize("plan_b v2") == ["plan_b", "v2"]

    @pytest.mark.parametrize(
        "overlap,expected",
        [(0.0, "high"), (0.19, "high"), (0.2, "medium"), (0.49, "medium"), (0.5, "low"), (1.0, "low")],
    )
    def test_topical_drift_thresholds(self, overlap, expected):
        assert topical_drift(overlap) == expected

    def test_stagnation_requires_thin_recent_and_rich_history(self):
        assert stagnation_risk(4, 21) == "high"
        assert stagnation_risk(5, 21) == "low"
        assert stagnation_risk(4, 20) == "low"

    def test_disjoint_vocabulary_is_high_drift_and_stagnation(self):
        """短期 {a,b,c} 与 21 个不重叠的中期词汇: 重叠 0，漂移高，停滞高"""
        short = make_window(["a b c"])
        mid = make_window([" ".join(f"w{i}" for i in range(21))])
        drift = analyze_drift(short, mid)
        assert drift.overlap_ratio == 0.0
        assert drift.topical_drift == "high"
        assert drift.stagnation_risk == "high"
        assert drift.short_term_tokens == 3
        assert drift.mid_term_tokens == 21

    def test_full_overlap_is_low_drift(self):
        short = make_window(["Deploy the service"])
        mid = make_window(["deploy THE service!", "rollback plan"])
        drift = analyze_drift(short, mid)
        assert drift.overlap_ratio == 1.0
        assert drift.topical_drift == "low"
        assert drift.stagnation_risk == "low"

    def test_partial_overlap_rounded(self):
        """|S ∩ M| / |S| = 1/3 → 0.33"""
        short = make_window(["alpha beta gamma"])
        mid = make_window(["alpha delta"])
        drift = analyze_drift(short, mid)
        assert drift.overlap_ratio == 0.33
        assert drift.topical_drift == "medium"

    def test_empty_short_term_has_zero_overlap(self):
        drift = analyze_drift(make_window([]), make_window(["anything"]))
        assert drift.overlap_ratio == 0.0
        assert drift.topical_drift == "high"
