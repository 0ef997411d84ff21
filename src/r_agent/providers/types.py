"""
Wire types of the text completion endpoint.

Only ``choices[0].text`` is used by the agent, but every other field of the
decoded body is kept so ``to_dict()`` reproduces it without loss.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import DecodeError

_RESPONSE_FIELDS = ("id", "object", "created", "model", "choices")


def _require(data: dict[str, Any], key: str, kind: type | tuple[type, ...], where: str) -> Any:
    if key not in data:
        raise DecodeError(f"Missing '{key}' in {where}")
    value = data[key]
    # bool is an int subclass; a boolean "created" is still malformed
    if not isinstance(value, kind) or isinstance(value, bool):
        raise DecodeError(f"Field '{key}' in {where} has type {type(value).__name__}")
    return value


@dataclass
class Choice:
    """One generated alternative."""

    text: str
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def index(self) -> int | None:
        return self.extra.get("index")

    @property
    def finish_reason(self) -> str | None:
        return self.extra.get("finish_reason")

    @classmethod
    def from_dict(cls, data: Any) -> Choice:
        if not isinstance(data, dict):
            raise DecodeError(f"Choice must be an object, got {type(data).__name__}")
        text = _require(data, "text", str, "choice")
        return cls(text=text, extra={k: v for k, v in data.items() if k != "text"})

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, **self.extra}


@dataclass
class CompletionResponse:
    """Decoded body of a completion call."""

    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Text of the first choice, verbatim."""
        return self.choices[0].text

    @classmethod
    def from_dict(cls, data: Any) -> CompletionResponse:
        """
        Decode a response body.

        Raises:
            DecodeError: If a required field is missing or mistyped, or there
                are no choices.
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Response must be an object, got {type(data).__name__}")

        raw_choices = _require(data, "choices", list, "response")
        if not raw_choices:
            raise DecodeError("Response has no choices")

        return cls(
            id=_require(data, "id", str, "response"),
            object=_require(data, "object", str, "response"),
            created=_require(data, "created", int, "response"),
            model=_require(data, "model", str, "response"),
            choices=[Choice.from_dict(c) for c in raw_choices],
            extra={k: v for k, v in data.items() if k not in _RESPONSE_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "object": self.object,
            "created": self.created,
            "model": self.model,
            "choices": [c.to_dict() for c in self.choices],
            **self.extra,
        }


__all__ = ["Choice", "CompletionResponse"]
