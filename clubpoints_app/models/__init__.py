from .core import Club, Team, Player, PlayingPosition
from .games import Game, GamePlayer, GamePlayerStats, GameStatus
from .rules import (
    ConditionOperator,
    Rule,
    RuleCategory,
    RuleCondition,
    RulesProfile,
    RulesProfileRule,
    TargetScope,
    Variable,
    VariableDataType,
    VariableScope,
)
from .points import PlayerGameRulePoints, PointType

__all__ = [
    "Club", "Team", "Player", "PlayingPosition",
    "Game", "GamePlayer", "GamePlayerStats", "GameStatus",
    "Variable", "VariableScope", "VariableDataType",
    "Rule", "RuleCategory", "RuleCondition", "ConditionOperator", "TargetScope",
    "RulesProfile", "RulesProfileRule",
    "PlayerGameRulePoints", "PointType",
]
