"""Command parameters.

Parameter descriptors, positional and row-based value assignment, and
normalization of `:name` placeholders in SQL text to the driver's format.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from proc_query.core.enums import ParameterDirection
from proc_query.core.exceptions import InvalidParameterNameError, ParameterCountMismatchError

PARAMETER_MARKER = "@"

# Matches :name but not ::typecast and not inside words
# Negative lookbehind for : (handles ::), \w (handles mid-word colons)
_PARAM_PATTERN = re.compile(r"(?<![:\w]):([a-zA-Z_]\w*)")

# Matches single-quoted string literals (with escaped quotes handled)
_STRING_LITERAL_PATTERN = re.compile(r"'(?:[^'\\]|\\.)*'")


class _Unset:
    """Sentinel for a parameter that has been given no value at all.

    Distinct from ``None``, which binds as an explicit SQL NULL.
    """

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Unset:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Unset:
        return self

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass
class Parameter:
    """Descriptor for one command parameter.

    Args:
        name: Marker-prefixed name, e.g. ``@order_id``.
        value: Bound value. ``None`` is SQL NULL, ``UNSET`` means no value.
        direction: Input, output, input-output or return value.
        db_type: Database type name as reported by the backend.
        size: Maximum size for character and binary types.
        precision: Numeric precision.
        scale: Numeric scale.
    """

    name: str
    value: Any = UNSET
    direction: ParameterDirection = ParameterDirection.INPUT
    db_type: str | None = None
    size: int | None = None
    precision: int | None = None
    scale: int | None = None

    @property
    def bind_name(self) -> str:
        """Name without the marker, as used in SQL text and row columns."""
        if self.name.startswith(PARAMETER_MARKER):
            return self.name[len(PARAMETER_MARKER) :]
        return self.name

    @property
    def is_output(self) -> bool:
        """True for every direction except plain input."""
        return self.direction is not ParameterDirection.INPUT

    @property
    def has_value(self) -> bool:
        return self.value is not UNSET

    def clone(self) -> Parameter:
        """Return an independent deep copy of this descriptor."""
        return copy.deepcopy(self)


def is_valid_parameter_name(name: Any) -> bool:
    """Return True if *name* is the marker followed by at least one character."""
    return isinstance(name, str) and len(name) > len(PARAMETER_MARKER) and name.startswith(
        PARAMETER_MARKER
    )


def validate_parameter_names(parameters: Iterable[Parameter]) -> None:
    """Raise InvalidParameterNameError for the first malformed name."""
    for position, parameter in enumerate(parameters):
        if not is_valid_parameter_name(parameter.name):
            raise InvalidParameterNameError(position, parameter.name)


def clone_parameters(parameters: Iterable[Parameter]) -> list[Parameter]:
    """Deep-copy a parameter sequence."""
    return [parameter.clone() for parameter in parameters]


def assign_parameter_values(
    parameters: Sequence[Parameter] | None,
    values: Sequence[Any] | None,
) -> None:
    """Assign *values* to *parameters* by position.

    Does nothing if either side is None. No value is assigned unless the
    counts match.

    Raises:
        ParameterCountMismatchError: If the two sequences differ in length.
    """
    if parameters is None or values is None:
        return
    if len(parameters) != len(values):
        raise ParameterCountMismatchError(len(parameters), len(values))
    for parameter, value in zip(parameters, values, strict=True):
        parameter.value = value


def assign_row_values(
    parameters: Sequence[Parameter] | None,
    row: Mapping[str, Any] | None,
) -> None:
    """Assign values from a row mapping to parameters matched by bind name.

    Parameters with no matching column keep their current value.

    Raises:
        InvalidParameterNameError: If any parameter name is malformed.
    """
    if parameters is None or row is None:
        return
    validate_parameter_names(parameters)
    for parameter in parameters:
        if parameter.bind_name in row:
            parameter.value = row[parameter.bind_name]


def prepare_for_binding(parameters: Iterable[Parameter]) -> None:
    """Give derived output parameters an explicit NULL instead of no value.

    An input-output parameter left UNSET would otherwise let the database
    apply the procedure's default.
    """
    for parameter in parameters:
        if parameter.direction is ParameterDirection.INPUT_OUTPUT and parameter.value is UNSET:
            parameter.value = None


def bound_value(parameter: Parameter) -> Any:
    """Value sent to the driver: UNSET binds as NULL."""
    return None if parameter.value is UNSET else parameter.value


def to_bind_mapping(parameters: Iterable[Parameter]) -> dict[str, Any]:
    """Build a driver parameter dict keyed by bind name.

    Return-value slots are not sent to the driver.
    """
    return {
        parameter.bind_name: bound_value(parameter)
        for parameter in parameters
        if parameter.direction is not ParameterDirection.RETURN_VALUE
    }


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert :name parameters to the target param style.

    Args:
        sql: SQL string with :name parameters.
        paramstyle: Target style - 'named' (no conversion) or 'pyformat' (%(name)s).

    Returns:
        SQL with parameters converted to the target style.
    """
    if paramstyle == "named":
        return sql
    return _convert_to_pyformat(sql)


@lru_cache(maxsize=256)
def _convert_to_pyformat(sql: str) -> str:
    """Convert :name params to %(name)s, preserving string literals."""
    parts: list[str] = []
    last_end = 0

    for match in _STRING_LITERAL_PATTERN.finditer(sql):
        start, end = match.span()
        if start > last_end:
            parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:start]))
        parts.append(match.group())
        last_end = end

    if last_end < len(sql):
        parts.append(_PARAM_PATTERN.sub(r"%(\1)s", sql[last_end:]))

    return "".join(parts)
