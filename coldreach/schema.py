"""
Response schemas for the AI provider.

Each schema lists the keys we read from the model's JSON and how to
coerce them. ``validate_with_defaults`` is the only place provider
output is interpreted; anything missing, empty or of the wrong type gets
the field's default.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class FieldSpec:
    """One expected key in a provider response."""
    name: str
    kind: type
    default: Any
    required: bool = True
    max_length: Optional[int] = None


def _coerce_str(value: Any) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_str_list(value: Any) -> Optional[list[str]]:
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    if not isinstance(value, list):
        return None
    items = [s for s in (_coerce_str(v) for v in value) if s]
    return items or None


_COERCERS: dict[type, Callable[[Any], Any]] = {
    str: _coerce_str,
    list: _coerce_str_list,
}


RESUME_SCHEMA = [
    FieldSpec("name", str, "Name not found"),
    FieldSpec("email", str, "email@example.com"),
    FieldSpec("phone", str, "", required=False),
    FieldSpec("experience", str, "Professional experience"),
    FieldSpec("education", str, "Education background"),
    FieldSpec("skills", list, ["General skills"]),
    FieldSpec("title", str, None, required=False),
    FieldSpec("location", str, None, required=False),
    FieldSpec("linkedin", str, None, required=False),
    FieldSpec("website", str, None, required=False),
    FieldSpec("summary", str, None, required=False),
]

EMAIL_SCHEMA = [
    FieldSpec("subject", str, None, max_length=60),
    FieldSpec("body", str, "Default email body"),
]


def validate_with_defaults(data: Any, schema: list[FieldSpec]) -> tuple[dict, list[str]]:
    """
    Validate a parsed JSON value against ``schema``.

    A list response (the model sometimes wraps the object) is unwrapped
    to its first element.

    Returns:
        Tuple of (values, missing) where ``missing`` names the required
        fields that had to be defaulted.
    """
    if isinstance(data, list):
        data = data[0] if data else {}
    if not isinstance(data, dict):
        data = {}

    values: dict = {}
    missing: list[str] = []
    for field in schema:
        value = _COERCERS[field.kind](data.get(field.name))
        if value is None:
            value = list(field.default) if isinstance(field.default, list) else field.default
            if field.required:
                missing.append(field.name)
        if field.max_length and isinstance(value, str):
            value = value[:field.max_length]
        values[field.name] = value

    return values, missing
