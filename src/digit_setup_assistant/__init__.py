from importlib.metadata import version

from .actions import ActionHandler, ActionRegistry, build_default_registry
from .canonical import render_session, to_canonical_json
from .classifier import (
    FallbackIntentClassifier,
    IntentClassifier,
    KeywordIntentClassifier,
    LlmIntentClassifier,
    build_intent_classifier,
)
from .decision import DecisionEngine
from .errors import (
    ClassifierUnavailable,
    DispatchError,
    IllegalActionError,
    InvalidTransitionError,
    StaleProposalConflict,
    UnknownActionError,
)
from .gating import account_gate_action, resolve_legal_actions
from .models import (
    AccountState,
    ActionName,
    AssistantReply,
    ConfigurationState,
    Decision,
    DecisionType,
    IntentClassification,
    IntentLabel,
    ReplyKind,
)
from .orchestrator import ConversationOrchestrator
from .session import ConversationSession, SessionStore, interpret_reply
from .settings import RuntimeSettings


def get_version() -> str:
    try:
        return version("digit-setup-assistant")
    except Exception:
        return "0.0.0"


def build_orchestrator(settings: RuntimeSettings | None = None) -> ConversationOrchestrator:
    """Wire the default registry and the configured intent classifier into an orchestrator."""
    resolved = settings if settings is not None else RuntimeSettings.from_env()
    return ConversationOrchestrator(build_default_registry(), build_intent_classifier(resolved))


__all__ = [
    "AccountState",
    "ActionHandler",
    "ActionName",
    "ActionRegistry",
    "AssistantReply",
    "ClassifierUnavailable",
    "ConfigurationState",
    "ConversationOrchestrator",
    "ConversationSession",
    "Decision",
    "DecisionEngine",
    "DecisionType",
    "DispatchError",
    "FallbackIntentClassifier",
    "IllegalActionError",
    "IntentClassification",
    "IntentClassifier",
    "IntentLabel",
    "InvalidTransitionError",
    "KeywordIntentClassifier",
    "LlmIntentClassifier",
    "ReplyKind",
    "RuntimeSettings",
    "SessionStore",
    "StaleProposalConflict",
    "UnknownActionError",
    "account_gate_action",
    "build_default_registry",
    "build_intent_classifier",
    "build_orchestrator",
    "get_version",
    "interpret_reply",
    "render_session",
    "resolve_legal_actions",
    "to_canonical_json",
]
