# file: clubpoints_app/services/errors.py
"""Exception hierarchy of the rules engine.

All domain errors derive from :class:`RulesEngineError` so callers (admin
actions, management commands) can catch the whole family at once.
"""

from __future__ import annotations


class RulesEngineError(Exception):
    """Base class for all scoring and rule administration errors."""


class VariableResolutionError(RulesEngineError):
    """A condition operand could not be resolved to a typed value."""


class UnknownVariable(VariableResolutionError):
    """Key is neither a built-in of the scope nor an active custom variable."""

    def __init__(self, key: str, scope: str) -> None:
        self.key = key
        self.scope = scope
        super().__init__(f"Neznámá proměnná '{key}' v rozsahu {scope}.")


class InvalidVariableValue(VariableResolutionError):
    """Stored value cannot be coerced to the variable's declared data type."""


class ConfigurationError(RulesEngineError):
    """Rule configuration is inconsistent (e.g. targeting without positions)."""


class StructuralError(RulesEngineError):
    """Data needed for scoring is structurally missing (team, club)."""


class ScoringNotAllowed(RulesEngineError):
    """Game is not in a state that permits scoring."""


class RuleInUse(RulesEngineError):
    """Rule cannot be deleted while a rules profile references it."""


class ProfileInUse(RulesEngineError):
    """Profile cannot be deleted while it is a club default or used by a team."""
