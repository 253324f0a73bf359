from .prompts import PromptTemplate, RECOMMENDATION_TYPES, build_prompt, select_template
from .recommendation_agent import RecommendationAgent

__all__ = ["PromptTemplate", "RECOMMENDATION_TYPES", "build_prompt", "select_template", "RecommendationAgent"]
