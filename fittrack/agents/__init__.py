from .recommendation_agent import RecommendationAgent

__all__ = ["RecommendationAgent"]
