"""Achievement engine: context building, rule predicates and the unlock driver."""

from bookmaker.achievements.catalog import CatalogLoader
from bookmaker.achievements.context import EvaluationContext, build_context
from bookmaker.achievements.evaluator import AchievementEvaluator, find_newly_unlocked
from bookmaker.achievements.predicates import evaluate_rule

__all__ = [
    "AchievementEvaluator",
    "CatalogLoader",
    "EvaluationContext",
    "build_context",
    "evaluate_rule",
    "find_newly_unlocked",
]
