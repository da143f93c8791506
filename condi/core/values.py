# 📄 File: condi/core/values.py
#
# 🧭 Purpose (Layman Explanation):
# Describes what kind of value a setting holds (text, whole number, decimal, yes/no, or a list
# of those) and knows how to turn text like "42" or "true" into the right kind of value.
#
# 🧪 Purpose (Technical Summary):
# Tagged-union parameter value model (ValueKind / ValueSource / ParameterValue) plus strict
# canonical formatting and parsing rules for int, int64, float32, float64 and bool coercion.
#
# 🔗 Dependencies:
# - re, struct, math (parsing and single-precision rounding)
# - condi.core.exceptions
#
# 🔄 Connected Modules / Calls From:
# - condi.core.parameters (typed getters)
# - condi.infrastructure.sources (bootstrap results are wrapped as ParameterValue)

import math
import re
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Sequence, Tuple

from condi.core.exceptions import InvalidParameterError, MalformedParameterError

ARRAY_DELIMITER = ","

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)

_TRUE_LITERALS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_LITERALS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class ValueKind(str, Enum):
    """Scalar type of a parameter value (or of each element of an array value)."""

    STRING = "string"
    INT = "int"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"


class ValueSource(str, Enum):
    """Where a stored value came from."""

    EXPLICIT = "explicit"
    SECRET = "secret"
    ENVIRONMENT = "environment"


# =============================================================================
# PARSING
# =============================================================================

def _parse_int(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(text)
    value = int(text)
    if value < INT64_MIN or value > INT64_MAX:
        raise ValueError(f"{text} out of range")
    return value


def _parse_float64(text: str) -> float:
    if not _FLOAT_PATTERN.fullmatch(text):
        raise ValueError(text)
    value = float(text)
    if math.isinf(value) and "inf" not in text.lower():
        raise ValueError(f"{text} out of range")
    return value


def _round_float32(value: float) -> float:
    rounded = struct.unpack("f", struct.pack("f", value))[0]
    # depending on the interpreter, pack either raises or rounds to inf
    if math.isinf(rounded) and not math.isinf(value):
        raise OverflowError(f"{value!r} out of float32 range")
    return rounded


def _parse_float32(text: str) -> float:
    value = _parse_float64(text)
    try:
        return _round_float32(value)
    except OverflowError as e:
        raise ValueError(f"{text} out of range") from e


def _parse_bool(text: str) -> bool:
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise ValueError(text)


_PARSERS: Dict[ValueKind, Callable[[str], Any]] = {
    ValueKind.STRING: str,
    ValueKind.INT: _parse_int,
    ValueKind.INT64: _parse_int,
    ValueKind.FLOAT32: _parse_float32,
    ValueKind.FLOAT64: _parse_float64,
    ValueKind.BOOL: _parse_bool,
}

ZERO_VALUES: Dict[ValueKind, Any] = {
    ValueKind.STRING: "",
    ValueKind.INT: 0,
    ValueKind.INT64: 0,
    ValueKind.FLOAT32: 0.0,
    ValueKind.FLOAT64: 0.0,
    ValueKind.BOOL: False,
}


def format_scalar(value: Any) -> str:
    """Render a scalar in canonical text form (bools as true/false, whole floats without a fraction)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def parse_scalar(name: str, text: str, kind: ValueKind) -> Any:
    """
    Parse ``text`` as ``kind``.

    Empty text yields the zero value of the kind. Anything the parser rejects
    raises MalformedParameterError naming the parameter.
    """
    if text == "":
        return ZERO_VALUES[kind]
    try:
        return _PARSERS[kind](text)
    except ValueError as e:
        raise MalformedParameterError(name=name, value=text, expected_type=kind.value) from e


def split_array(text: str) -> List[str]:
    return text.split(ARRAY_DELIMITER)


# =============================================================================
# TAGGED VALUE
# =============================================================================

def _infer_kind(name: str, value: Any) -> ValueKind:
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT64
    if isinstance(value, str):
        return ValueKind.STRING
    raise InvalidParameterError(
        message=f'Parameter "{name}" has unsupported value type {type(value).__name__}',
        name=name,
        details={"value_type": type(value).__name__},
    )


def _infer_array_kind(name: str, items: Sequence[Any]) -> ValueKind:
    kinds = {_infer_kind(name, item) for item in items}
    if len(kinds) == 1:
        return kinds.pop()
    # ints widen to float64 alongside floats; bools never do
    if kinds == {ValueKind.INT, ValueKind.FLOAT64}:
        return ValueKind.FLOAT64
    raise InvalidParameterError(
        message=f'Parameter "{name}" mixes {", ".join(sorted(k.value for k in kinds))} elements',
        name=name,
        details={"kinds": sorted(k.value for k in kinds)},
    )


def _normalize(name: str, kind: ValueKind, value: Any) -> Any:
    """Check that an explicitly-kinded value really is of that kind."""
    expected = {
        ValueKind.STRING: (str,),
        ValueKind.INT: (int,),
        ValueKind.INT64: (int,),
        ValueKind.FLOAT32: (int, float),
        ValueKind.FLOAT64: (int, float),
        ValueKind.BOOL: (bool,),
    }[kind]
    if not isinstance(value, expected) or (isinstance(value, bool) and kind is not ValueKind.BOOL):
        raise InvalidParameterError(
            message=f'Parameter "{name}" value {value!r} is not a {kind.value}',
            name=name,
            details={"kind": kind.value, "value_type": type(value).__name__},
        )
    if kind is ValueKind.FLOAT32:
        try:
            return _round_float32(float(value))
        except OverflowError as e:
            raise InvalidParameterError(
                message=f'Parameter "{name}" value {value!r} does not fit in float32',
                name=name,
            ) from e
    if kind is ValueKind.FLOAT64:
        return float(value)
    if kind is ValueKind.INT64 and not INT64_MIN <= value <= INT64_MAX:
        raise InvalidParameterError(
            message=f'Parameter "{name}" value {value} does not fit in int64',
            name=name,
        )
    return value


@dataclass(frozen=True)
class ParameterValue:
    """
    A stored parameter: a scalar or a homogeneous array of one ValueKind.

    ``data`` holds the Python scalar, or a tuple of scalars when ``is_array``.
    Arrays built from an empty sequence carry ``kind=None`` until read.
    """

    kind: Any
    data: Any
    is_array: bool = False
    source: ValueSource = field(default=ValueSource.EXPLICIT, compare=False)

    @classmethod
    def of(cls, value: Any, name: str = "", source: ValueSource = ValueSource.EXPLICIT) -> "ParameterValue":
        """Wrap a plain Python value, inferring its kind."""
        if isinstance(value, ParameterValue):
            return value.with_source(source)
        if isinstance(value, (list, tuple)):
            return cls.array(None, value, name=name, source=source)
        return cls(kind=_infer_kind(name, value), data=value, source=source)

    @classmethod
    def scalar(cls, kind: ValueKind, value: Any, name: str = "",
               source: ValueSource = ValueSource.EXPLICIT) -> "ParameterValue":
        return cls(kind=kind, data=_normalize(name, kind, value), source=source)

    @classmethod
    def array(cls, kind: Any, values: Sequence[Any], name: str = "",
              source: ValueSource = ValueSource.EXPLICIT) -> "ParameterValue":
        items = tuple(values)
        for item in items:
            if isinstance(item, (list, tuple, dict, set, ParameterValue)):
                raise InvalidParameterError(
                    message=f'Parameter "{name}" contains a nested value; only flat arrays are supported',
                    name=name,
                )
        if kind is None and items:
            kind = _infer_array_kind(name, items)
        if kind is not None:
            items = tuple(_normalize(name, kind, item) for item in items)
        return cls(kind=kind, data=items, is_array=True, source=source)

    @classmethod
    def text(cls, value: str, source: ValueSource = ValueSource.EXPLICIT) -> "ParameterValue":
        return cls(kind=ValueKind.STRING, data=value, source=source)

    def with_source(self, source: ValueSource) -> "ParameterValue":
        return ParameterValue(kind=self.kind, data=self.data, is_array=self.is_array, source=source)

    @property
    def shape(self) -> str:
        return "array" if self.is_array else "scalar"

    def as_text(self) -> str:
        """Canonical text of a scalar value, or the comma-joined elements of an array."""
        if self.is_array:
            return ARRAY_DELIMITER.join(format_scalar(item) for item in self.data)
        return format_scalar(self.data)

    def raw(self) -> Any:
        """Plain Python value: a scalar, or a list for arrays."""
        if self.is_array:
            return list(self.data)
        return self.data

    def coerce(self, name: str, kind: ValueKind) -> Any:
        """Read a scalar value as ``kind``."""
        if self.kind == kind:
            return self.data
        return parse_scalar(name, format_scalar(self.data), kind)

    def coerce_array(self, name: str, kind: ValueKind) -> List[Any]:
        """Read the value as a list of ``kind`` elements."""
        if not self.is_array:
            if self.kind == ValueKind.STRING:
                texts: Tuple[str, ...] = tuple(split_array(self.data))
            else:
                texts = (format_scalar(self.data),)
            return [parse_scalar(name, text, kind) for text in texts]
        if self.kind == kind or self.kind is None:
            return list(self.data)
        return [parse_scalar(name, format_scalar(item), kind) for item in self.data]
