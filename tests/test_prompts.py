import pytest

from fittrack.agents.recommendation_agent.prompts import (
    RECOMMENDATION_TYPES, build_prompt, select_template, serialize_context
)


@pytest.mark.parametrize("recommendation_type, title, role", [
    ("meal", "AI Meal Plan", "You are a nutrition expert."),
    ("workout", "AI Workout Plan", "You are a fitness coach."),
    ("health", "AI Health Recommendation", "You are a health specialist."),
    ("other", "AI Recommendation", "You are an expert."),
])
def test_known_types_map_to_fixed_templates(recommendation_type, title, role):
    template = select_template(recommendation_type)

    assert template.recommendation_type == recommendation_type
    assert template.title == title
    assert template.system_prompt.startswith(role)
    assert select_template(recommendation_type) is template


@pytest.mark.parametrize("value", [None, "", "MEAL", "snack", 3, ["meal"], {"type": "meal"}])
def test_unrecognized_types_use_generic_template(value):
    assert select_template(value).recommendation_type == "other"


def test_recommendation_types_are_the_four_tags():
    assert set(RECOMMENDATION_TYPES) == {"meal", "workout", "health", "other"}


@pytest.mark.parametrize("recommendation_type", ["meal", "workout", "health", "unknown"])
def test_user_prompt_always_embeds_both_contexts(recommendation_type):
    health = [{"metric_type": "steps", "value": 8000}]
    workouts = [{"title": "Leg day", "duration_minutes": 45}]

    _, _, user_prompt = build_prompt(recommendation_type, health, workouts)

    assert f"Health metrics: {serialize_context(health)}" in user_prompt
    assert f"Recent workouts: {serialize_context(workouts)}" in user_prompt


def test_workout_prompt_text():
    template, system_prompt, user_prompt = build_prompt("workout", [], [{"title": "Run"}])

    assert "sets, and reps" in system_prompt
    assert user_prompt == (
        'Create a workout plan recommendation based on: Health metrics: [], '
        'Recent workouts: [{"title":"Run"}]'
    )


def test_serialize_context_is_compact_and_keeps_unicode():
    assert serialize_context({"note": "잘 잤음", "values": [1, 2]}) == '{"note":"잘 잤음","values":[1,2]}'
    assert serialize_context(None) == "null"
