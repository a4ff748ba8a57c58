"""OpenAI chat model wiring for the model-backed intent classifier."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from dotenv import load_dotenv
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from .models import IntentClassification, IntentLabel

logger = logging.getLogger(__name__)


class SupportsInvoke(Protocol):
    """Any LangChain-compatible runnable that supports invoke."""

    def invoke(self, input: Any) -> Any:  # noqa: ANN401 - external runnable protocol.
        ...


def _load_dotenv(repo_root: Path | None) -> None:
    env_path = (repo_root if repo_root is not None else Path.cwd()) / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def has_openai_api_key(repo_root: Path | None = None) -> bool:
    _load_dotenv(repo_root)
    return bool(os.getenv("OPENAI_API_KEY", "").strip())


def ensure_openai_api_key(repo_root: Path | None = None) -> str:
    """Return OPENAI_API_KEY from the environment or a ``.env`` file in ``repo_root``.

    Raises:
        RuntimeError: If no key is configured.
    """
    if not has_openai_api_key(repo_root):
        raise RuntimeError("OPENAI_API_KEY is required for model-backed intent classification")
    return os.environ["OPENAI_API_KEY"].strip()


def parse_intent_output(raw_output: Any) -> IntentClassification:
    """Turn whatever the structured runnable returned into an ``IntentClassification``.

    Accepts the ``include_raw=True`` envelope, a parsed instance, or a plain dict
    (stub runnables and older LangChain releases return dicts). A dict label
    outside the closed set is read as ``unknown``.

    Raises:
        RuntimeError: If the output is missing or malformed.
    """
    payload = raw_output
    if isinstance(payload, dict) and "parsing_error" in payload:
        if payload["parsing_error"] is not None:
            raise RuntimeError(f"Intent output could not be parsed: {payload['parsing_error']!r}")
        payload = payload.get("parsed")
        if payload is None:
            raise RuntimeError("Intent output was empty")

    if isinstance(payload, IntentClassification):
        return payload
    if not isinstance(payload, dict):
        raise RuntimeError(f"Unsupported intent output type {type(payload).__name__}")
    if isinstance(payload.get("intent"), str):
        payload = {**payload, "intent": IntentLabel.parse(payload["intent"])}
    try:
        return IntentClassification.model_validate(payload)
    except ValidationError as exc:
        raise RuntimeError(f"Intent output failed validation: {exc}") from exc


@dataclass(slots=True)
class IntentModel:
    """A chat runnable bound to the ``IntentClassification`` schema."""

    runnable: SupportsInvoke

    def classify(self, system_prompt: str, text: str) -> IntentClassification:
        raw_output = self.runnable.invoke([("system", system_prompt), ("human", text)])
        return parse_intent_output(raw_output)


def build_intent_model(
    *,
    model_name: str,
    timeout: int,
    max_retries: int,
    repo_root: Path | None = None,
) -> IntentModel:
    """Construct a deterministic ``ChatOpenAI`` model with strict function-calling output.

    Raises:
        ValueError: If model_name is blank.
        RuntimeError: If OPENAI_API_KEY is not available.
    """
    if not model_name or not model_name.strip():
        raise ValueError("model_name must be a non-empty string")
    ensure_openai_api_key(repo_root)
    chat = ChatOpenAI(model=model_name, temperature=0.0, timeout=timeout, max_retries=max_retries)
    runnable = chat.with_structured_output(
        IntentClassification,
        method="function_calling",
        strict=True,
        include_raw=True,
    )
    logger.debug("Bound %s to the intent schema", model_name)
    return IntentModel(runnable=runnable)
