from .awards import clear_manual_points, record_manual_points
from .conditions import evaluate_condition
from .errors import (
    ConfigurationError,
    InvalidVariableValue,
    ProfileInUse,
    RuleInUse,
    RulesEngineError,
    ScoringNotAllowed,
    StructuralError,
    UnknownVariable,
    VariableResolutionError,
)
from .evaluator import PointAward, RuleSpec, evaluate_rule
from .leaderboard import leaderboard
from .profiles import EffectiveRuleSet, ResolutionTier, resolve_effective_rules
from .rules_admin import delete_rule, delete_rules_profile, effective_rules_for_team, review_rules
from .scoring import compute_game_points, preview_rule, score_game
from .variables import EvaluationContext, VariableRegistry, load_registry, resolve

__all__ = [
    "score_game", "compute_game_points", "preview_rule",
    "resolve_effective_rules", "EffectiveRuleSet", "ResolutionTier",
    "evaluate_rule", "RuleSpec", "PointAward",
    "evaluate_condition",
    "resolve", "load_registry", "VariableRegistry", "EvaluationContext",
    "record_manual_points", "clear_manual_points",
    "leaderboard",
    "delete_rule", "delete_rules_profile", "review_rules", "effective_rules_for_team",
    "RulesEngineError", "VariableResolutionError", "UnknownVariable", "InvalidVariableValue",
    "ConfigurationError", "StructuralError", "ScoringNotAllowed", "RuleInUse", "ProfileInUse",
]
