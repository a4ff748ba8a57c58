from __future__ import annotations

import dataclasses
from datetime import datetime
from enum import Enum
from typing import Any

import rfc8785
from pydantic import BaseModel

from .session import ConversationSession

# JSON-primitive types that rfc8785 can serialize directly.
_PASSTHROUGH_TYPES = (bool, int, float, str, type(None))


def _normalize(value: Any) -> bool | int | float | str | None | list[Any] | dict[str, Any]:
    """Recursively convert dataclasses, models, enums and collections into JSON primitives.

    Raises:
        TypeError: If value contains a type that cannot be converted to JSON.
    """
    if isinstance(value, Enum):
        return _normalize(value.value)

    if isinstance(value, _PASSTHROUGH_TYPES):
        return value

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: _normalize(getattr(value, field.name)) for field in dataclasses.fields(value)}

    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json"))

    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}

    if isinstance(value, (set, frozenset)):
        return sorted(_normalize(item) for item in value)

    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]

    if isinstance(value, datetime):
        return value.isoformat()

    raise TypeError(f"Cannot serialize type {type(value).__name__} to canonical JSON")


def to_canonical_json(value: Any) -> str:
    """Serialize ``value`` to byte-for-byte reproducible JSON per RFC 8785.

    Configuration snapshots rendered this way compare equal exactly when the
    underlying ledgers are equal.
    """
    return rfc8785.dumps(_normalize(value)).decode("utf-8")


def render_session(session: ConversationSession) -> str:
    """Canonical JSON view of a session: its key, pending proposal and ledger."""
    return to_canonical_json(
        {
            "session": session.key,
            "pending_action": session.pending_action,
            "state": session.state,
        }
    )
