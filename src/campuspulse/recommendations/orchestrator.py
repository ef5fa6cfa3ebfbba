"""Recommendation and intervention orchestrators.

Both run a fixed waterfall of tiers. A tier that fails or produces nothing
hands over to the next one; only the final tier is guaranteed to produce.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from campuspulse.errors import StudentNotFoundError, UpstreamError
from campuspulse.features.aggregator import FeatureAggregator
from campuspulse.llm.clients import build_llm_client
from campuspulse.recommendations.llm_adapter import LLMRecommendationAdapter
from campuspulse.recommendations.types import (
    CounselingInputs,
    InterventionSuggestion,
    Recommendation,
    StudentFeatureSet,
)
from campuspulse.rules.defaults import default_recommendations
from campuspulse.rules.interventions import InterventionRuleEngine
from campuspulse.rules.recommendations import RecommendationRuleEngine
from campuspulse.store.records import RecordStore

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    LLM = "llm"
    RULES = "rules"
    DEFAULTS = "defaults"


@dataclass
class GenerationResult:
    student_id: str
    tier: Tier
    recommendations: List[Recommendation]
    audit_log: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "tier": self.tier.value,
            "recommendations": [asdict(rec) for rec in self.recommendations],
            "audit_log": list(self.audit_log),
        }


@dataclass
class InterventionResult:
    student_id: str
    tier: Tier
    suggestions: List[InterventionSuggestion]
    inputs: CounselingInputs
    audit_log: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "tier": self.tier.value,
            "suggestions": [asdict(item) for item in self.suggestions],
            "student_summary": asdict(self.inputs),
            "audit_log": list(self.audit_log),
        }


@dataclass
class RecommendationOrchestrator:
    """Serve recommendations through the LLM, rules, defaults waterfall."""

    aggregator: FeatureAggregator
    rules: RecommendationRuleEngine
    adapter: Optional[LLMRecommendationAdapter] = None
    max_items: int = 4
    recommendation_type: str = "diverse"

    def generate_for(self, student_id: str | int) -> List[Recommendation]:
        return self.run(student_id).recommendations

    def run(self, student_id: str | int) -> GenerationResult:
        audit_log: List[str] = []
        try:
            features = self.aggregator.aggregate(student_id)
        except StudentNotFoundError:
            logger.info("No profile for student %s; serving defaults", student_id)
            audit_log.append("Student not found")
            return self._result(str(student_id), Tier.DEFAULTS, default_recommendations(), audit_log)
        audit_log.append("Aggregated student features")

        tier = Tier.LLM if self.adapter is not None else Tier.RULES
        while True:
            if tier is Tier.DEFAULTS:
                audit_log.append("Served default recommendations")
                return self._result(features.student_id, tier, default_recommendations(), audit_log)
            produced = self._run_tier(tier, features, audit_log)
            if produced:
                return self._result(features.student_id, tier, produced, audit_log)
            tier = Tier.RULES if tier is Tier.LLM else Tier.DEFAULTS

    def _run_tier(self, tier: Tier, features: StudentFeatureSet, audit_log: List[str]) -> List[Recommendation]:
        if tier is Tier.LLM:
            try:
                produced = self.adapter.generate(features, self.recommendation_type, self.max_items)
            except UpstreamError as exc:
                logger.warning("LLM tier failed for student %s (%s): %s", features.student_id, exc.reason, exc)
                audit_log.append(f"LLM tier failed: {exc.reason}")
                return []
            audit_log.append(f"LLM tier produced {len(produced)} item(s)")
            return produced
        produced = self.rules.evaluate(features)
        audit_log.append(f"Rule tier produced {len(produced)} item(s)")
        return produced

    def _result(
        self, student_id: str, tier: Tier, recommendations: List[Recommendation], audit_log: List[str]
    ) -> GenerationResult:
        logger.info("Serving %s recommendations for student %s", tier.value, student_id)
        return GenerationResult(
            student_id=student_id,
            tier=tier,
            recommendations=recommendations[: self.max_items],
            audit_log=audit_log,
        )


@dataclass
class InterventionOrchestrator:
    """Serve counselor suggestions: LLM first, then the rule engine."""

    aggregator: FeatureAggregator
    rules: InterventionRuleEngine
    adapter: Optional[LLMRecommendationAdapter] = None
    max_items: int = 5

    def suggest_for(self, student_id: str | int, specific_concern: str | None = None) -> InterventionResult:
        inputs = self.aggregator.load_counseling_inputs(student_id)
        audit_log = ["Loaded counseling inputs"]
        sid = inputs.profile.id

        if self.adapter is not None:
            try:
                suggestions = self.adapter.generate_interventions(inputs, specific_concern, self.max_items)
            except UpstreamError as exc:
                logger.warning("LLM tier failed for interventions on %s (%s): %s", sid, exc.reason, exc)
                audit_log.append(f"LLM tier failed: {exc.reason}")
            else:
                audit_log.append(f"LLM tier produced {len(suggestions)} item(s)")
                if suggestions:
                    return InterventionResult(sid, Tier.LLM, suggestions[: self.max_items], inputs, audit_log)

        suggestions = self.rules.evaluate(inputs.attendance, inputs.tasks, inputs.profile)
        audit_log.append(f"Rule tier produced {len(suggestions)} item(s)")
        return InterventionResult(sid, Tier.RULES, suggestions[: self.max_items], inputs, audit_log)


def _build_adapter(cfg: Dict[str, Any]) -> LLMRecommendationAdapter | None:
    client = build_llm_client(cfg)
    return LLMRecommendationAdapter(client=client) if client is not None else None


def build_recommendation_orchestrator(cfg: Dict[str, Any], store: RecordStore) -> RecommendationOrchestrator:
    rec_cfg = cfg.get("recommendations") or {}
    return RecommendationOrchestrator(
        aggregator=FeatureAggregator(store, cfg),
        rules=RecommendationRuleEngine(cfg),
        adapter=_build_adapter(cfg),
        max_items=int(rec_cfg.get("max_items", 4)),
    )


def build_intervention_orchestrator(cfg: Dict[str, Any], store: RecordStore) -> InterventionOrchestrator:
    int_cfg = cfg.get("interventions") or {}
    return InterventionOrchestrator(
        aggregator=FeatureAggregator(store, cfg),
        rules=InterventionRuleEngine(cfg),
        adapter=_build_adapter(cfg),
        max_items=int(int_cfg.get("max_items", 5)),
    )
