# file: clubpoints_app/services/variables.py
"""Variable catalogue and resolution of variable keys to typed values.

Two kinds of variables exist:

* **Built-in** variables, declared in :data:`BUILTIN_VARIABLES`, read from the
  facts gathered into an :class:`EvaluationContext` (player statistics, game
  score, team aggregates).
* **Custom** variables, rows of :class:`~clubpoints_app.models.Variable`
  defined by admins. Their values come from the ``custom_values`` maps of the
  stats row (PLAYER) or the game (GAME and TEAM), falling back to the
  variable's default.

Resolution is strict per scope: a built-in key only resolves in the scope it
is declared in. Custom variables are read from a :class:`VariableRegistry`
snapshot loaded once per scoring run, so resolving never touches the
database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from clubpoints_app.models import Variable, VariableDataType, VariableScope

from .errors import InvalidVariableValue, UnknownVariable
from .values import TypedValue, coerce

__all__ = [
    "VariableDefinition",
    "BUILTIN_VARIABLES",
    "VariableRegistry",
    "EvaluationContext",
    "load_registry",
    "lookup_definition",
    "resolve",
]


@dataclass(frozen=True)
class VariableDefinition:
    """Key, scope and data type of a resolvable variable."""

    key: str
    scope: str
    data_type: str
    label: str = ""
    default_value: Any = None
    builtin: bool = False


def _builtin(key: str, scope: str, data_type: str, label: str) -> tuple[str, VariableDefinition]:
    return key, VariableDefinition(key=key, scope=scope, data_type=data_type, label=label, builtin=True)


_N = VariableDataType.NUMBER
_B = VariableDataType.BOOLEAN
_S = VariableDataType.STRING

BUILTIN_VARIABLES: dict[str, VariableDefinition] = dict(
    [
        # player
        _builtin("goalsScored", VariableScope.PLAYER, _N, "Góly"),
        _builtin("assists", VariableScope.PLAYER, _N, "Asistence"),
        _builtin("greenCards", VariableScope.PLAYER, _N, "Zelené karty"),
        _builtin("yellowCards", VariableScope.PLAYER, _N, "Žluté karty"),
        _builtin("redCards", VariableScope.PLAYER, _N, "Červené karty"),
        _builtin("saves", VariableScope.PLAYER, _N, "Zákroky"),
        _builtin("tackles", VariableScope.PLAYER, _N, "Odebrané míče"),
        _builtin("played", VariableScope.PLAYER, _B, "Nastoupil"),
        _builtin("position", VariableScope.PLAYER, _N, "Pozice"),
        # game
        _builtin("goalsFor", VariableScope.GAME, _N, "Vstřelené góly"),
        _builtin("goalsAgainst", VariableScope.GAME, _N, "Obdržené góly"),
        _builtin("goalDifference", VariableScope.GAME, _N, "Rozdíl skóre"),
        _builtin("result", VariableScope.GAME, _S, "Výsledek (win/draw/loss)"),
        _builtin("cleanSheet", VariableScope.GAME, _B, "Čisté konto"),
        # team
        _builtin("teamGoals", VariableScope.TEAM, _N, "Góly týmu"),
        _builtin("teamAssists", VariableScope.TEAM, _N, "Asistence týmu"),
        _builtin("teamYellowCards", VariableScope.TEAM, _N, "Žluté karty týmu"),
        _builtin("teamRedCards", VariableScope.TEAM, _N, "Červené karty týmu"),
        _builtin("squadSize", VariableScope.TEAM, _N, "Počet hráčů"),
    ]
)


class VariableRegistry:
    """Immutable snapshot of active custom variables keyed by ``(scope, key)``."""

    def __init__(self, definitions: Iterable[VariableDefinition] = ()) -> None:
        self._by_scope: dict[tuple[str, str], VariableDefinition] = {
            (d.scope, d.key): d for d in definitions
        }

    def get(self, key: str, scope: str) -> VariableDefinition | None:
        return self._by_scope.get((scope, key))

    def __len__(self) -> int:
        return len(self._by_scope)

    def __iter__(self):
        return iter(self._by_scope.values())


def _definition_from_model(variable: Variable) -> VariableDefinition:
    return VariableDefinition(
        key=variable.key,
        scope=variable.scope,
        data_type=variable.data_type,
        label=variable.label,
        default_value=variable.default_value,
    )


def load_registry() -> VariableRegistry:
    """Snapshot all active custom variables (one query)."""
    return VariableRegistry(_definition_from_model(v) for v in Variable.objects.filter(is_active=True))


def lookup_definition(
    key: str, scope: str, registry: VariableRegistry | None = None
) -> VariableDefinition | None:
    """Return the definition ``key`` resolves to in ``scope``, or ``None``.

    Without a registry, active custom variables are queried directly, which
    is what model validation needs.
    """
    builtin = BUILTIN_VARIABLES.get(key)
    if builtin is not None:
        return builtin if builtin.scope == scope else None
    if registry is not None:
        return registry.get(key, scope)
    variable = Variable.objects.filter(is_active=True, key=key, scope=scope).first()
    return _definition_from_model(variable) if variable else None


@dataclass
class EvaluationContext:
    """Facts available to conditions when scoring one player in one game.

    ``player``, ``game`` and ``team`` hold built-in facts keyed by built-in
    variable key; the ``*_custom`` maps hold raw custom variable values.
    """

    player_id: int | None = None
    position: int | None = None
    player: dict[str, Any] = field(default_factory=dict)
    game: dict[str, Any] = field(default_factory=dict)
    team: dict[str, Any] = field(default_factory=dict)
    player_custom: Mapping[str, Any] = field(default_factory=dict)
    game_custom: Mapping[str, Any] = field(default_factory=dict)
    team_custom: Mapping[str, Any] = field(default_factory=dict)

    def facts(self, scope: str) -> Mapping[str, Any]:
        return {
            VariableScope.PLAYER: self.player,
            VariableScope.GAME: self.game,
            VariableScope.TEAM: self.team,
        }.get(scope, {})

    def custom(self, scope: str) -> Mapping[str, Any]:
        return {
            VariableScope.PLAYER: self.player_custom,
            VariableScope.GAME: self.game_custom,
            VariableScope.TEAM: self.team_custom,
        }.get(scope, {})


def resolve(key: str, scope: str, context: EvaluationContext, registry: VariableRegistry) -> TypedValue:
    """Resolve ``key`` in ``scope`` to a typed value.

    Args:
        key: Built-in or custom variable key.
        scope: One of :class:`VariableScope`.
        context: Facts of the player/game/team being evaluated.
        registry: Snapshot of active custom variables.

    Returns:
        TypedValue: The value coerced to the variable's data type.

    Raises:
        UnknownVariable: If ``key`` is not resolvable in ``scope``.
        InvalidVariableValue: If the stored value does not fit the data type.
    """
    definition = lookup_definition(key, scope, registry)
    if definition is None:
        raise UnknownVariable(key, scope)

    if definition.builtin:
        raw = context.facts(scope).get(key)
        if raw is None:
            raise UnknownVariable(key, scope)
    else:
        raw = context.custom(scope).get(key, definition.default_value)

    try:
        return coerce(raw, definition.data_type)
    except (TypeError, ValueError) as exc:
        raise InvalidVariableValue(f"{scope}.{key}: {exc}") from exc
