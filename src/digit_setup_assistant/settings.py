from __future__ import annotations

import os
from dataclasses import dataclass

CLASSIFIER_BACKENDS: frozenset[str] = frozenset({"auto", "openai", "keyword"})


@dataclass(frozen=True)
class RuntimeSettings:
    """Runtime settings loaded from environment with fail-fast validation."""

    classifier_backend: str = "auto"
    model_name: str = "gpt-4o-mini"
    request_timeout_seconds: int = 30
    max_retries: int = 2
    default_session_id: str = "default"

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        return cls(
            classifier_backend=os.getenv("DIGIT_ASSISTANT_CLASSIFIER", "auto"),
            model_name=os.getenv("DIGIT_ASSISTANT_MODEL", "gpt-4o-mini"),
            request_timeout_seconds=_get_env_int("DIGIT_ASSISTANT_TIMEOUT_SECONDS", default=30, minimum=1, maximum=600),
            max_retries=_get_env_int("DIGIT_ASSISTANT_MAX_RETRIES", default=2, minimum=0, maximum=10),
            default_session_id=os.getenv("DIGIT_ASSISTANT_DEFAULT_SESSION", "default"),
        ).normalized()

    def normalized(self) -> "RuntimeSettings":
        """Validate and normalize all fields. Raises ValueError on invalid configuration."""
        classifier_backend = self.classifier_backend.strip().lower()
        if classifier_backend not in CLASSIFIER_BACKENDS:
            raise ValueError(
                "DIGIT_ASSISTANT_CLASSIFIER must be one of: " + ", ".join(sorted(CLASSIFIER_BACKENDS))
            )

        model_name = self.model_name.strip()
        if not model_name:
            raise ValueError("DIGIT_ASSISTANT_MODEL must be non-empty")

        default_session_id = self.default_session_id.strip()
        if not default_session_id:
            raise ValueError("DIGIT_ASSISTANT_DEFAULT_SESSION must be non-empty")

        if self.request_timeout_seconds < 1:
            raise ValueError(
                f"DIGIT_ASSISTANT_TIMEOUT_SECONDS must be >= 1, got: {self.request_timeout_seconds}"
            )
        if self.max_retries < 0:
            raise ValueError(f"DIGIT_ASSISTANT_MAX_RETRIES must be >= 0, got: {self.max_retries}")

        return RuntimeSettings(
            classifier_backend=classifier_backend,
            model_name=model_name,
            request_timeout_seconds=self.request_timeout_seconds,
            max_retries=self.max_retries,
            default_session_id=default_session_id,
        )


def _get_env_int(name: str, default: int, minimum: int, maximum: int) -> int:
    """Parse an integer from an environment variable with bounds checking.

    Raises:
        ValueError: If the value is not an integer or is outside [minimum, maximum].
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got: {parsed}")
    if parsed > maximum:
        raise ValueError(f"{name} must be <= {maximum}, got: {parsed}")
    return parsed
