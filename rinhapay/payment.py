"""Payment payloads, processing results and summary records."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass

MAX_DESCRIPTION_LENGTH = 255

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_FIELDS = ("amount", "description", "type")


class ValidationError(ValueError):
    """Raised when a payment payload breaks a business rule."""


@dataclass
class PaymentRequest:
    """An incoming payment as posted by a client."""

    amount: int = 0
    type: str = ""
    description: str = ""

    def validate(self) -> None:
        """Raise ValidationError if the payment cannot be accepted."""
        if self.amount <= 0:
            raise ValidationError("amount must be positive")
        if self.type == "":
            raise ValidationError("type is required")
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("description too long")

    def to_json(self) -> bytes:
        """Encode as compact JSON; an empty description is left out."""
        payload: dict[str, object] = {"amount": self.amount}
        if self.description:
            payload["description"] = self.description
        payload["type"] = self.type
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_json(cls, data: str | bytes) -> PaymentRequest:
        """Decode the first JSON value of *data* strictly.

        Unknown fields and values of the wrong type raise ValueError.
        Field names match case-insensitively; null leaves a field at its default.
        """
        if isinstance(data, (bytes, bytearray)):
            try:
                text = bytes(data).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ValueError("Invalid JSON") from exc
        else:
            text = data
        text = text.lstrip()
        try:
            obj, _ = json.JSONDecoder().raw_decode(text)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid JSON") from exc

        if obj is None:
            return cls()
        if not isinstance(obj, dict):
            raise ValueError("Invalid JSON: expected an object")

        values: dict[str, object] = {}
        for key, value in obj.items():
            name = key if key in _FIELDS else key.lower()
            if name not in _FIELDS:
                raise ValueError(f"Invalid JSON: unknown field {key!r}")
            if value is None:
                continue
            if name == "amount":
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError("Invalid JSON: amount must be an integer")
                if not _INT64_MIN <= value <= _INT64_MAX:
                    raise ValueError("Invalid JSON: amount out of range")
            elif not isinstance(value, str):
                raise ValueError(f"Invalid JSON: {name} must be a string")
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class PaymentResponse:
    """The outcome reported back for a processed payment."""

    id: str
    status: str
    processed_by: str


@dataclass(frozen=True)
class ProcessorResult:
    """The result of handing a payment to a processor."""

    success: bool
    processor_id: str
    error: str | None = None


@dataclass(frozen=True)
class PaymentSummary:
    """Counters of processed payments."""

    total_payments: int = 0
    default_success: int = 0
    fallback_success: int = 0
    total_errors: int = 0

    def to_dict(self) -> dict[str, int]:
        """Return the summary as a JSON-ready mapping."""
        return asdict(self)