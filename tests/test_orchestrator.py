"""Tests for the recommendation waterfall and the batch scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List

import pytest

from campuspulse.errors import StudentNotFoundError, UpstreamError
from campuspulse.features.aggregator import FeatureAggregator
from campuspulse.llm import clients as llm_clients
from campuspulse.llm.clients import OpenAICompatibleClient
from campuspulse.recommendations.llm_adapter import LLMRecommendationAdapter
from campuspulse.recommendations.orchestrator import (
    InterventionOrchestrator,
    RecommendationOrchestrator,
    Tier,
    build_intervention_orchestrator,
    build_recommendation_orchestrator,
)
from campuspulse.recommendations.types import InterventionSuggestion, Recommendation
from campuspulse.rules.interventions import InterventionRuleEngine
from campuspulse.rules.recommendations import RecommendationRuleEngine
from campuspulse.store.records import CsvRecordStore
from scripts.run_recommendations import render_markdown
from scripts.run_recommendations_batch import make_markdown, run_batch, student_ids
from scripts.seed_demo_store import ensure_demo_store

AS_OF = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _clock() -> datetime:
    return AS_OF


def _rec(idx: int) -> Recommendation:
    return Recommendation(id=f"llm_{idx}", type="study_tip", title=f"Idea {idx}", description="Do the thing.")


@dataclass
class FakeAdapter:
    recommendations: List[Recommendation] = field(default_factory=list)
    suggestions: List[InterventionSuggestion] = field(default_factory=list)
    error: str | None = None
    calls: List[Any] = field(default_factory=list)

    def generate(self, features, recommendation_type="diverse", count=4):
        self.calls.append((features.student_id, recommendation_type, count))
        if self.error:
            raise UpstreamError(self.error, "model unavailable")
        return list(self.recommendations)

    def generate_interventions(self, inputs, specific_concern=None, count=5):
        self.calls.append((inputs.profile.id, specific_concern, count))
        if self.error:
            raise UpstreamError(self.error, "model unavailable")
        return list(self.suggestions)


class EmptyRules:
    def evaluate(self, features):
        return []


@pytest.fixture
def demo_store(tmp_path: Path) -> CsvRecordStore:
    data_dir = tmp_path / "store"
    ensure_demo_store(data_dir)
    return CsvRecordStore(data_dir)


def _orchestrator(store, adapter=None, rules=None, max_items=4) -> RecommendationOrchestrator:
    return RecommendationOrchestrator(
        aggregator=FeatureAggregator(store, clock=_clock),
        rules=rules or RecommendationRuleEngine(),
        adapter=adapter,
        max_items=max_items,
    )


def test_without_llm_rules_are_served(demo_store) -> None:
    result = _orchestrator(demo_store).run(2)

    assert result.tier is Tier.RULES
    assert [rec.id for rec in result.recommendations] == ["rule_attendance", "rule_overdue_tasks", "rule_study_habit"]
    assert "25%" in result.recommendations[0].description


def test_llm_output_is_served_and_truncated(demo_store) -> None:
    adapter = FakeAdapter(recommendations=[_rec(i) for i in range(6)])

    result = _orchestrator(demo_store, adapter).run("002")

    assert result.tier is Tier.LLM
    assert [rec.id for rec in result.recommendations] == ["llm_0", "llm_1", "llm_2", "llm_3"]
    assert adapter.calls == [("2", "diverse", 4)]


@pytest.mark.parametrize("reason", ["transport", "unparsable"])
def test_llm_failure_falls_back_to_rules(demo_store, reason: str) -> None:
    result = _orchestrator(demo_store, FakeAdapter(error=reason)).run(2)

    assert result.tier is Tier.RULES
    assert result.recommendations[0].id == "rule_attendance"
    assert f"LLM tier failed: {reason}" in result.audit_log


def test_empty_llm_output_falls_back_to_rules(demo_store) -> None:
    result = _orchestrator(demo_store, FakeAdapter()).run(1)

    assert result.tier is Tier.RULES
    assert [rec.title for rec in result.recommendations] == ["Implement Active Recall Techniques"]


def test_empty_rules_fall_back_to_defaults(demo_store) -> None:
    result = _orchestrator(demo_store, FakeAdapter(error="transport"), rules=EmptyRules()).run(1)

    assert result.tier is Tier.DEFAULTS
    assert [rec.id for rec in result.recommendations] == [
        "default_attendance",
        "default_organization",
        "default_study",
    ]
    assert result.audit_log[-1] == "Served default recommendations"


def test_unknown_student_gets_defaults(demo_store) -> None:
    adapter = FakeAdapter(recommendations=[_rec(1)])

    result = _orchestrator(demo_store, adapter).run(404)

    assert result.tier is Tier.DEFAULTS
    assert len(result.recommendations) == 3
    assert result.audit_log == ["Student not found"]
    assert adapter.calls == []


def test_generate_for_never_returns_empty(demo_store) -> None:
    orchestrator = _orchestrator(demo_store, FakeAdapter(error="transport"))

    for sid in [1, 2, 3, 404]:
        recs = orchestrator.generate_for(sid)
        assert 1 <= len(recs) <= 4


def test_result_serializes_tier_name(demo_store) -> None:
    payload = _orchestrator(demo_store).run(3).to_dict()

    assert payload["tier"] == "rules"
    assert payload["student_id"] == "3"
    assert [rec["type"] for rec in payload["recommendations"]] == ["schedule_optimization", "study_tip", "study_tip"]
    assert "Monday" in payload["recommendations"][0]["description"]
    assert payload["recommendations"][-1]["title"] == "Review the Fundamentals"


def _interventions(store, adapter=None) -> InterventionOrchestrator:
    return InterventionOrchestrator(
        aggregator=FeatureAggregator(store, clock=_clock),
        rules=InterventionRuleEngine(),
        adapter=adapter,
    )


def test_interventions_from_rules(demo_store) -> None:
    result = _interventions(demo_store, FakeAdapter(error="unparsable")).suggest_for(2, "missed exams")

    assert result.tier is Tier.RULES
    assert [s.id for s in result.suggestions] == [
        "attendance_intervention",
        "task_management_intervention",
        "general_support",
    ]
    assert "Ben Okafor" in result.suggestions[0].description
    summary = result.to_dict()["student_summary"]
    assert summary["tasks"]["overdue_count"] == 2


def test_interventions_from_llm(demo_store) -> None:
    suggestion = InterventionSuggestion(id="x", type="career", title="Mentor", description="Pair with a mentor.")
    adapter = FakeAdapter(suggestions=[suggestion])

    result = _interventions(demo_store, adapter).suggest_for(1, "career doubts")

    assert result.tier is Tier.LLM
    assert result.suggestions == [suggestion]
    assert adapter.calls == [("1", "career doubts", 5)]


def test_interventions_for_unknown_student_raise(demo_store) -> None:
    with pytest.raises(StudentNotFoundError):
        _interventions(demo_store).suggest_for(404)


def test_factories_respect_config(demo_store) -> None:
    cfg = {"llm": {"enabled": False}, "recommendations": {"max_items": 2}, "interventions": {"max_items": 1}}

    recommender = build_recommendation_orchestrator(cfg, demo_store)
    counselor = build_intervention_orchestrator(cfg, demo_store)

    assert recommender.adapter is None
    assert recommender.max_items == 2
    assert len(counselor.suggest_for(2).suggestions) == 1


def test_demo_store_is_not_overwritten(tmp_path: Path) -> None:
    data_dir = tmp_path / "store"
    ensure_demo_store(data_dir)
    (data_dir / "profiles.csv").write_text("id,full_name,role\n9,Zed,student\n", encoding="utf-8")

    ensure_demo_store(data_dir)
    assert student_ids(CsvRecordStore(data_dir)) == ["9"]

    ensure_demo_store(data_dir, force=True)
    assert student_ids(CsvRecordStore(data_dir)) == ["1", "2", "3"]


def test_batch_run_and_markdown(demo_store) -> None:
    ids = student_ids(demo_store, top_n=2)
    outputs = run_batch(_orchestrator(demo_store), ids)

    assert [item["student_id"] for item in outputs] == ["1", "2"]
    text = make_markdown("2026-10-01", outputs)
    assert "## Student 2 (tier: rules)" in text
    assert "- [high] Improve Your Attendance Rate:" in text

    single = render_markdown("2", "recommendations", outputs[1])
    assert "Served by tier: `rules`" in single
    assert "## Audit Log" in single


def test_healthy_student_gets_same_tip_when_llm_fails(demo_store) -> None:
    recs = _orchestrator(demo_store, FakeAdapter(error="transport")).generate_for(1)

    assert len(recs) == 1
    assert recs[0].type == "study_tip"
    assert recs[0] == RecommendationRuleEngine().evaluate(FeatureAggregator(demo_store, clock=_clock).aggregate(1))[0]


@dataclass
class RawClient:
    reply: str

    def generate(self, prompt: str) -> str:
        return self.reply


@pytest.mark.parametrize("reply", ["[" * 100000, "no array here", '[{"title": "only a title"}]'])
def test_malformed_model_replies_fall_back_to_rules(demo_store, reply: str) -> None:
    adapter = LLMRecommendationAdapter(RawClient(reply))

    result = _orchestrator(demo_store, adapter).run(2)

    assert result.tier is Tier.RULES
    assert result.recommendations[0].id == "rule_attendance"


def test_non_text_model_content_falls_back_to_rules(demo_store, monkeypatch) -> None:
    class DictContentResponse:
        def raise_for_status(self) -> None:
            return None

        def json(self) -> dict:
            return {"choices": [{"message": {"content": {"text": "oops"}}}]}

    monkeypatch.setattr(llm_clients.requests, "post", lambda *args, **kwargs: DictContentResponse())
    adapter = LLMRecommendationAdapter(OpenAICompatibleClient(endpoint="https://llm.example/v1", model="m"))

    recs = _orchestrator(demo_store, adapter).generate_for(2)

    assert [rec.id for rec in recs] == ["rule_attendance", "rule_overdue_tasks", "rule_study_habit"]
