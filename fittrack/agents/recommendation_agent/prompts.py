"""
추천 유형별 프롬프트 템플릿

type -> (system prompt, user prompt 접두어, title) 고정 매핑.
알 수 없는 type은 항상 'other' 템플릿으로 대체됩니다.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class PromptTemplate:
    recommendation_type: str
    system_prompt: str
    request_line: str
    title: str


TEMPLATES: Dict[str, PromptTemplate] = {
    "meal": PromptTemplate(
        recommendation_type="meal",
        system_prompt=(
            "You are a nutrition expert. Based on health data and workout history, provide personalized "
            "meal recommendations. Be specific and practical."
        ),
        request_line="Create a meal plan recommendation based on:",
        title="AI Meal Plan",
    ),
    "workout": PromptTemplate(
        recommendation_type="workout",
        system_prompt=(
            "You are a fitness coach. Based on health data and workout history, provide personalized "
            "workout recommendations. Be specific with exercises, sets, and reps."
        ),
        request_line="Create a workout plan recommendation based on:",
        title="AI Workout Plan",
    ),
    "health": PromptTemplate(
        recommendation_type="health",
        system_prompt=(
            "You are a health specialist. Based on health data and recent workouts, provide actionable "
            "health recommendations (sleep, stress, general wellbeing, preventative tips). "
            "Be specific and practical."
        ),
        request_line="Create a health recommendation based on:",
        title="AI Health Recommendation",
    ),
    "other": PromptTemplate(
        recommendation_type="other",
        system_prompt="You are an expert. Provide general recommendations based on the provided data.",
        request_line="Create a recommendation based on:",
        title="AI Recommendation",
    ),
}

RECOMMENDATION_TYPES = tuple(TEMPLATES.keys())


def serialize_context(value: Any) -> str:
    """컨텍스트를 압축 JSON으로 직렬화 (한글 등 비 ASCII 문자 유지)"""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def is_known_type(recommendation_type: Any) -> bool:
    return isinstance(recommendation_type, str) and recommendation_type in TEMPLATES


def select_template(recommendation_type: Optional[Any]) -> PromptTemplate:
    if is_known_type(recommendation_type):
        return TEMPLATES[recommendation_type]
    return TEMPLATES["other"]


def build_prompt(recommendation_type: Optional[Any], health_data: Any,
                 workout_history: Any) -> Tuple[PromptTemplate, str, str]:
    """(template, system prompt, user prompt) 반환

    user prompt는 type과 무관하게 두 컨텍스트를 그대로 포함합니다.
    """
    template = select_template(recommendation_type)
    user_prompt = (
        f"{template.request_line} "
        f"Health metrics: {serialize_context(health_data)}, "
        f"Recent workouts: {serialize_context(workout_history)}"
    )
    return template, template.system_prompt, user_prompt
