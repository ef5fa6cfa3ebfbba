"""LLM-backed recommendation generation with strict parsing."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Sequence

from campuspulse.errors import UPSTREAM_UNPARSABLE, UpstreamError
from campuspulse.llm.clients import BaseLLMClient
from campuspulse.recommendations.tools import safe_text
from campuspulse.recommendations.types import (
    INTERVENTION_TYPES,
    PRIORITIES,
    RECOMMENDATION_TYPES,
    URGENCIES,
    CounselingInputs,
    InterventionSuggestion,
    Recommendation,
    StudentFeatureSet,
)

logger = logging.getLogger(__name__)

PROMPT_SAMPLE_SIZE = 5
_DECODER = json.JSONDecoder()


def _feature_payload(features: StudentFeatureSet) -> Dict[str, Any]:
    pending = [task for task in features.tasks if task.status != "completed"]
    return {
        "student_id": features.student_id,
        "attendance_rate": features.attendance_rate,
        "recent_attendance": [asdict(event) for event in features.recent_attendance[:PROMPT_SAMPLE_SIZE]],
        "pending_tasks": [asdict(task) for task in pending[:PROMPT_SAMPLE_SIZE]],
        "overdue_task_count": sum(1 for task in features.tasks if task.is_overdue(features.as_of)),
        "schedule": [asdict(entry) for entry in features.schedule[:PROMPT_SAMPLE_SIZE]],
        "busiest_weekdays": features.busiest_weekdays,
        "performance_metrics": features.performance_metrics,
    }


def build_recommendation_prompt(features: StudentFeatureSet, recommendation_type: str, count: int) -> str:
    focus = (
        "Provide a diverse set of recommendations."
        if recommendation_type in {"diverse", "all"}
        else f"Focus specifically on {recommendation_type} recommendations."
    )
    data = json.dumps(_feature_payload(features), indent=2, default=str)
    return (
        f"As an educational assistant, generate {count} personalized learning recommendations "
        "for a student with the following data:\n"
        f"{data}\n\n"
        f"{focus}\n\n"
        "Format each recommendation as a JSON object with these fields:\n"
        "- id: a unique identifier\n"
        f"- type: one of {', '.join(RECOMMENDATION_TYPES)}\n"
        "- title: a concise, actionable title\n"
        "- description: a personalized, self-contained explanation (2-3 sentences)\n"
        f"- priority: one of {', '.join(PRIORITIES)}\n"
        "- actionable: true or false\n"
        "- estimated_impact: expected benefit if implemented\n"
        "- category: general classification\n\n"
        "Return ONLY the JSON array without additional text."
    )


def build_intervention_prompt(inputs: CounselingInputs, specific_concern: str | None, count: int) -> str:
    data = {
        "student": asdict(inputs.profile),
        "attendance": asdict(inputs.attendance),
        "task_completion": asdict(inputs.tasks),
        "academic_performance": inputs.analytics,
    }
    concern = f"Specific concern: {specific_concern}\n\n" if specific_concern else ""
    return (
        f"As an educational advisor for counselors, generate up to {count} personalized intervention "
        "suggestions for a student with these attributes:\n"
        f"{json.dumps(data, indent=2, default=str)}\n\n"
        f"{concern}"
        "Format each intervention suggestion as a JSON object with these fields:\n"
        "- id: a unique identifier\n"
        f"- type: one of {', '.join(INTERVENTION_TYPES)}\n"
        "- title: a concise title for the intervention\n"
        "- approach: the recommended counseling approach\n"
        "- description: a detailed explanation of the intervention (3-5 sentences)\n"
        f"- urgency: one of {', '.join(URGENCIES)}\n"
        "- expected_outcome: the anticipated result of a successful intervention\n"
        "- follow_up: suggested follow-up actions and timeframe\n\n"
        "Return ONLY the JSON array without additional text."
    )


def extract_json_array(text: str) -> List[Any]:
    """Return the first JSON array embedded in ``text``.

    Models often wrap the array in prose or code fences, so every ``[`` is
    tried as a starting point; arrays holding only scalars (``[1]`` in a
    sentence) are skipped. Raises ``UpstreamError`` when none decodes or the
    nesting is too deep to decode at all.
    """
    if not isinstance(text, str):
        raise UpstreamError(UPSTREAM_UNPARSABLE, f"Model reply is {type(text).__name__}, not text.")
    if not text:
        raise UpstreamError(UPSTREAM_UNPARSABLE, "Model reply was empty.")
    start = text.find("[")
    while start != -1:
        try:
            parsed, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        except RecursionError as exc:
            raise UpstreamError(UPSTREAM_UNPARSABLE, "Model reply nests too deeply to decode.") from exc
        if isinstance(parsed, list) and (not parsed or any(isinstance(item, dict) for item in parsed)):
            return parsed
        start = text.find("[", start + 1)
    raise UpstreamError(UPSTREAM_UNPARSABLE, "No JSON array found in model reply.")


def _text(item: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _choice(value: Any, allowed: Sequence[str], default: str) -> str:
    text = safe_text(value).strip().lower()
    return text if text in allowed else default


def _flag(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    if value is None:
        return default
    return bool(value)


def _unique_id(raw: Any, seen: set[str], prefix: str) -> str:
    candidate = safe_text(raw).strip()
    n = len(seen) + 1
    while not candidate or candidate in seen:
        candidate = f"{prefix}_{n}"
        n += 1
    seen.add(candidate)
    return candidate


def normalize_recommendations(items: Sequence[Any], count: int) -> List[Recommendation]:
    """Promote loosely-typed model items to recommendations.

    Items without a title or description are dropped; every other missing
    field gets a default.
    """
    recommendations: List[Recommendation] = []
    seen: set[str] = set()
    for item in items:
        if len(recommendations) >= count:
            break
        if not isinstance(item, dict):
            continue
        title = _text(item, "title")
        description = _text(item, "description")
        if not title or not description:
            continue
        rec_type = _choice(item.get("type"), RECOMMENDATION_TYPES, "study_tip")
        recommendations.append(
            Recommendation(
                id=_unique_id(item.get("id"), seen, "llm"),
                type=rec_type,
                title=title,
                description=description,
                priority=_choice(item.get("priority"), PRIORITIES, "medium"),
                actionable=_flag(item.get("actionable")),
                estimated_impact=_text(item, "estimated_impact", "estimatedImpact"),
                category=_text(item, "category") or rec_type.replace("_", " ").title(),
            )
        )
    return recommendations


def normalize_interventions(items: Sequence[Any], count: int) -> List[InterventionSuggestion]:
    suggestions: List[InterventionSuggestion] = []
    seen: set[str] = set()
    for item in items:
        if len(suggestions) >= count:
            break
        if not isinstance(item, dict):
            continue
        title = _text(item, "title")
        description = _text(item, "description")
        if not title or not description:
            continue
        kind = _choice(item.get("type"), INTERVENTION_TYPES, "personal")
        suggestions.append(
            InterventionSuggestion(
                id=_unique_id(item.get("id"), seen, "llm_intervention"),
                type=kind,
                title=title,
                description=description,
                approach=_text(item, "approach"),
                urgency=_choice(item.get("urgency"), URGENCIES, "monitoring"),
                actionable=_flag(item.get("actionable")),
                expected_outcome=_text(item, "expected_outcome", "expectedOutcome"),
                follow_up=_text(item, "follow_up", "followUp"),
                category=_text(item, "category") or kind.title(),
            )
        )
    return suggestions


@dataclass
class LLMRecommendationAdapter:
    client: BaseLLMClient

    def generate(
        self, features: StudentFeatureSet, recommendation_type: str = "diverse", count: int = 4
    ) -> List[Recommendation]:
        raw = self.client.generate(build_recommendation_prompt(features, recommendation_type, count))
        logger.debug("Model reply for student %s: %s", features.student_id, raw)
        return normalize_recommendations(extract_json_array(raw), count)

    def generate_interventions(
        self, inputs: CounselingInputs, specific_concern: str | None = None, count: int = 5
    ) -> List[InterventionSuggestion]:
        raw = self.client.generate(build_intervention_prompt(inputs, specific_concern, count))
        logger.debug("Model reply for interventions on student %s: %s", inputs.profile.id, raw)
        return normalize_interventions(extract_json_array(raw), count)
