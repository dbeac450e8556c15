# file: clubpoints_app/services/values.py
"""Typed values flowing through condition evaluation.

Every resolved operand is one of :class:`NumberValue`, :class:`BoolValue` or
:class:`StringValue`. Numbers are kept as :class:`~decimal.Decimal` so point
arithmetic never picks up float noise.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from clubpoints_app.models.rules import VariableDataType

__all__ = ["NumberValue", "BoolValue", "StringValue", "TypedValue", "coerce", "canonical_text"]

_TRUE = {"true", "1", "ano", "yes"}
_FALSE = {"false", "0", "ne", "no", ""}


@dataclass(frozen=True)
class NumberValue:
    value: Decimal
    data_type = VariableDataType.NUMBER

    @property
    def json(self) -> int | float:
        """JSON-safe form: ``int`` when integral, ``float`` otherwise."""
        if self.value == self.value.to_integral_value():
            return int(self.value)
        return float(self.value)


@dataclass(frozen=True)
class BoolValue:
    value: bool
    data_type = VariableDataType.BOOLEAN

    @property
    def json(self) -> bool:
        return self.value


@dataclass(frozen=True)
class StringValue:
    value: str
    data_type = VariableDataType.STRING

    @property
    def json(self) -> str:
        return self.value


TypedValue = Union[NumberValue, BoolValue, StringValue]


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise TypeError("Boolean is not a number.")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        return Decimal(str(raw))
    if isinstance(raw, str):
        try:
            number = Decimal(raw.strip().replace(",", "."))
        except InvalidOperation:
            raise ValueError(f"'{raw}' is not a number.")
        if not number.is_finite():
            raise ValueError(f"'{raw}' is not a finite number.")
        return number
    raise TypeError(f"Cannot convert {type(raw).__name__} to a number.")


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, Decimal)) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise ValueError(f"'{raw}' is not a boolean.")


def coerce(raw: Any, data_type: str) -> TypedValue:
    """Convert a raw stored value to the typed value of ``data_type``.

    Args:
        raw: Value as stored in JSON (literal, default or custom value).
        data_type: One of :class:`VariableDataType`.

    Returns:
        TypedValue: The matching typed variant.

    Raises:
        ValueError: If ``raw`` is ``None`` or cannot represent ``data_type``.
        TypeError: If ``raw`` has a type that can never be converted.
    """
    if raw is None:
        raise ValueError("Missing value.")
    if data_type == VariableDataType.NUMBER:
        return NumberValue(_to_decimal(raw))
    if data_type == VariableDataType.BOOLEAN:
        return BoolValue(_to_bool(raw))
    if data_type == VariableDataType.STRING:
        if isinstance(raw, (dict, list)):
            raise TypeError("Text value cannot be a collection.")
        return StringValue(canonical_text(raw))
    raise ValueError(f"Unknown data type '{data_type}'.")


def canonical_text(raw: Any) -> str:
    """Text form used for lexical equality (``true``/``false``, ``2`` not ``2.0``)."""
    if isinstance(raw, (NumberValue, BoolValue, StringValue)):
        raw = raw.value
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float, Decimal)):
        number = _to_decimal(raw).normalize()
        if number == number.to_integral_value():
            return str(int(number))
        return format(number, "f")
    return str(raw)
