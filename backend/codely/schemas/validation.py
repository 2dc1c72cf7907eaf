"""Boundary validation returning a typed result instead of raising."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from marshmallow import Schema, ValidationError

from codely.services._shared.errors import RequestValidationError

INVALID_BODY = "Invalid request body"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Outcome of :func:`validate_payload`.

    :ivar data: Loaded payload when valid, else ``None``.
    :ivar message: First field error (or ``"Invalid request body"``) when invalid.
    :ivar errors: Marshmallow error mapping when invalid.
    """

    data: dict[str, Any] | None = None
    message: str | None = None
    errors: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.data is not None

    def unwrap(self) -> dict[str, Any]:
        """Return the data or raise :class:`RequestValidationError`."""
        if self.data is None:
            raise RequestValidationError(self.message or INVALID_BODY, self.errors)
        return self.data


def _first_message(schema: Schema, errors: dict[str, Any]) -> str:
    for name in schema.fields:
        messages = errors.get(name)
        if isinstance(messages, list) and messages:
            return str(messages[0])
        if isinstance(messages, str):
            return messages
    return INVALID_BODY


def validate_payload(schema: Schema, payload: Any) -> ValidationResult:
    """
    Validate a decoded JSON body against ``schema``.

    Anything but a JSON object fails with ``"Invalid request body"``.
    """
    if not isinstance(payload, dict):
        return ValidationResult(message=INVALID_BODY, errors={"_schema": [INVALID_BODY]})
    try:
        data = schema.load(payload)
    except ValidationError as exc:
        errors = exc.normalized_messages()
        if not isinstance(errors, dict):
            errors = {"_schema": errors}
        return ValidationResult(message=_first_message(schema, errors), errors=errors)
    return ValidationResult(data=dict(data))
