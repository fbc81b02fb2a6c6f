"""Schema-driven coercion of untrusted tool arguments returned by the model."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from careeros.providers.types import ToolSchema

_MISSING = object()


class MalformedToolCall(Exception):
    """A tool call whose arguments cannot be turned into any effect."""

    def __init__(self, tool_name: str, message: str, issues: Optional[List[str]] = None) -> None:
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name
        self.issues = issues or []


@dataclass
class CoercedArguments:
    """Arguments reshaped to match a tool schema, plus what had to change."""

    values: Dict[str, Any]
    issues: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.issues


def coerce_arguments(schema: ToolSchema, arguments: Any) -> CoercedArguments:
    """Coerce model-provided arguments against the tool's parameter schema.

    Fields that cannot be coerced are dropped rather than guessed, so that the
    typed payload model downstream falls back to its empty defaults.
    """
    issues: List[str] = []
    value = _coerce(schema.parameters, arguments, "", issues)
    if value is _MISSING or not isinstance(value, dict):
        value = {}
    return CoercedArguments(values=value, issues=issues)


def _coerce(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    type_name = str(schema.get("type", "string")).lower()
    coercer = _COERCERS.get(type_name, _coerce_string)
    return coercer(schema, value, path, issues)


def _coerce_object(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    if value is None:
        return _MISSING
    if not isinstance(value, dict):
        # protobuf map composites and similar mappings
        try:
            value = dict(value)
        except (TypeError, ValueError):
            issues.append(f"{path or '<root>'}: expected object, got {type(value).__name__}")
            return _MISSING

    properties = schema.get("properties") or {}
    result: Dict[str, Any] = {}
    for key, raw in value.items():
        child_path = f"{path}.{key}" if path else str(key)
        if key not in properties:
            issues.append(f"{child_path}: unknown field dropped")
            continue
        coerced = _coerce(properties[key], raw, child_path, issues)
        if coerced is not _MISSING:
            result[key] = coerced

    for key in schema.get("required") or []:
        if key not in result:
            child_path = f"{path}.{key}" if path else key
            issues.append(f"{child_path}: missing required field")
    return result


def _coerce_array(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    if value is None:
        return _MISSING
    if isinstance(value, (str, bytes, dict)) or not hasattr(value, "__iter__"):
        issues.append(f"{path}: expected array, got {type(value).__name__}")
        return _MISSING

    items_schema = schema.get("items") or {"type": "string"}
    result: List[Any] = []
    for index, item in enumerate(value):
        coerced = _coerce(items_schema, item, f"{path}[{index}]", issues)
        if coerced is _MISSING:
            continue
        result.append(coerced)
    return result


def _coerce_string(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    if value is None:
        return _MISSING
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (str, int, float)):
        text = value if isinstance(value, str) else _format_number(value)
    else:
        issues.append(f"{path}: expected string, got {type(value).__name__}")
        return _MISSING

    enum_values = schema.get("enum")
    if enum_values and text not in enum_values:
        issues.append(f"{path}: {text!r} is not one of {list(enum_values)}")
        return _MISSING
    return text


def _coerce_number(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    parsed, ok = _parse_number(value)
    if not ok:
        if value is not None:
            issues.append(f"{path}: expected number, got {value!r}")
        return _MISSING
    return parsed


def _coerce_integer(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    parsed, ok = _parse_number(value)
    if not ok:
        if value is not None:
            issues.append(f"{path}: expected integer, got {value!r}")
        return _MISSING
    return int(parsed)


def _coerce_boolean(schema: Dict[str, Any], value: Any, path: str, issues: List[str]) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    if value is not None:
        issues.append(f"{path}: expected boolean, got {value!r}")
    return _MISSING


def _parse_number(value: Any) -> Tuple[float, bool]:
    if isinstance(value, bool) or value is None:
        return 0.0, False
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().rstrip("%").strip()
        try:
            number = float(text)
        except ValueError:
            return 0.0, False
    else:
        return 0.0, False
    if math.isnan(number) or math.isinf(number):
        return 0.0, False
    return number, True


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_COERCERS = {
    "object": _coerce_object,
    "array": _coerce_array,
    "string": _coerce_string,
    "number": _coerce_number,
    "integer": _coerce_integer,
    "boolean": _coerce_boolean,
}
