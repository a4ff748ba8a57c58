from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .errors import ClassifierUnavailable
from .llm import IntentModel, build_intent_model, has_openai_api_key
from .models import IntentLabel
from .settings import RuntimeSettings

logger = logging.getLogger(__name__)

CLASSIFIER_SYSTEM_PROMPT = (
    "You are an intent classifier for a DIGIT platform setup assistant. "
    "Analyze the user's message and return EXACTLY ONE of these intents:\n\n"
    "- bootstrap: Initial setup, getting started, first time setup, 'how do i start'\n"
    "- account.configure: Setting up account details, authentication, account configuration AFTER account creation\n"
    "- idgen: Unique ID generation, auto-incrementing codes, sequence numbers, identifiers\n"
    "- workflow: Business process configuration, state machines, approval flows, transitions\n"
    "- boundary: Geographic hierarchies, administrative boundaries, location setup\n"
    "- notification: Email/SMS alerts, notification templates, communication setup\n"
    "- registry: Data schemas, data models, entity definitions, adding/managing data structures\n"
    "- user: User account creation, user management, adding users (NOT account setup)\n"
    "- role: Role creation, permission groups, access control roles\n"
    "- role.assign: Assigning roles to users, granting permissions\n"
    "- unknown: If the intent is unclear\n\n"
    "Key distinctions:\n"
    "- 'account details' or 'configure account' or 'setup account' -> account.configure\n"
    "- 'create user' or 'add user' -> user (NOT account.configure)\n"
    "- 'data' or 'schema' -> registry (data models)\n"
    "- 'id' or 'code generation' -> idgen (unique identifiers)\n"
    "- 'process' or 'flow' -> workflow (business processes)"
)


class IntentClassifier(Protocol):
    """Maps free text onto one label of the closed intent set."""

    def classify(self, text: str) -> IntentLabel:
        ...


class KeywordIntentClassifier:
    """Deterministic keyword heuristic; also the fallback for the model-backed classifier."""

    def classify(self, text: str) -> IntentLabel:
        msg = text.lower()

        # "setup account" is account configuration, not bootstrap.
        if "account" in msg and any(
            word in msg for word in ("configur", "detail", "auth", "token", "setup", "set up")
        ):
            return IntentLabel.ACCOUNT_CONFIGURE

        if "start" in msg or "setup" in msg:
            return IntentLabel.BOOTSTRAP

        if "assign" in msg:
            return IntentLabel.ROLE_ASSIGN

        if "unique" in msg and any(word in msg for word in ("id", "code", "number")):
            return IntentLabel.IDGEN
        if "idgen" in msg or "id generat" in msg:
            return IntentLabel.IDGEN

        if "workflow" in msg:
            return IntentLabel.WORKFLOW
        if "boundary" in msg or "boundaries" in msg:
            return IntentLabel.BOUNDARY
        if "notification" in msg:
            return IntentLabel.NOTIFICATION
        if "registry" in msg or "schema" in msg:
            return IntentLabel.REGISTRY
        if "user" in msg:
            return IntentLabel.USER
        if "role" in msg:
            return IntentLabel.ROLE

        return IntentLabel.UNKNOWN


class LlmIntentClassifier:
    """Classifies intent with an OpenAI chat model bound to ``IntentClassification``.

    Any failure is raised as ``ClassifierUnavailable``; wrap this classifier in
    ``FallbackIntentClassifier`` before handing it to the orchestrator.
    """

    def __init__(
        self,
        *,
        model_name: str,
        timeout: int = 30,
        max_retries: int = 2,
        model: IntentModel | None = None,
        repo_root: Path | None = None,
    ) -> None:
        self.model_name = model_name
        self.timeout = timeout
        self.max_retries = max_retries
        self.repo_root = repo_root
        self._model = model

    def _get_model(self) -> IntentModel:
        if self._model is None:
            self._model = build_intent_model(
                model_name=self.model_name,
                timeout=self.timeout,
                max_retries=self.max_retries,
                repo_root=self.repo_root,
            )
        return self._model

    def classify(self, text: str) -> IntentLabel:
        try:
            result = self._get_model().classify(CLASSIFIER_SYSTEM_PROMPT, text)
        except Exception as exc:  # noqa: BLE001 - any transport or parsing failure.
            raise ClassifierUnavailable(f"Intent classification via {self.model_name} failed: {exc}") from exc
        logger.debug("model classified %r as %s (%s)", text, result.intent.value, result.rationale)
        return IntentLabel(result.intent)


class FallbackIntentClassifier:
    """Runs ``primary`` and degrades to ``fallback`` on any failure."""

    def __init__(self, primary: IntentClassifier, fallback: IntentClassifier | None = None) -> None:
        self.primary = primary
        self.fallback = fallback if fallback is not None else KeywordIntentClassifier()

    def classify(self, text: str) -> IntentLabel:
        try:
            return self.primary.classify(text)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Intent classifier unavailable, using keyword fallback: %s", exc)
            return self.fallback.classify(text)


def build_intent_classifier(settings: RuntimeSettings, *, repo_root: Path | None = None) -> IntentClassifier:
    """Pick the classifier for ``settings.classifier_backend``.

    ``auto`` uses the model when an OpenAI key is available and the keyword
    heuristic otherwise.
    """
    backend = settings.classifier_backend
    if backend == "keyword" or (backend == "auto" and not has_openai_api_key(repo_root)):
        logger.info("Using keyword intent classifier")
        return KeywordIntentClassifier()

    logger.info("Using model intent classifier %s with keyword fallback", settings.model_name)
    return FallbackIntentClassifier(
        LlmIntentClassifier(
            model_name=settings.model_name,
            timeout=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
            repo_root=repo_root,
        )
    )
