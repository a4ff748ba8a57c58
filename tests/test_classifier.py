from __future__ import annotations

from pathlib import Path

import pytest

from digit_setup_assistant import (
    ClassifierUnavailable,
    FallbackIntentClassifier,
    IntentClassification,
    IntentLabel,
    KeywordIntentClassifier,
    LlmIntentClassifier,
    RuntimeSettings,
    build_intent_classifier,
)
from digit_setup_assistant.llm import IntentModel, parse_intent_output


@pytest.fixture(autouse=True)
def _no_openai_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep classifier selection independent of the developer's environment and .env file."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)


class _StubRunnable:
    def __init__(self, output: object) -> None:
        self.output = output
        self.calls: list[object] = []

    def invoke(self, input):  # noqa: ANN001,ANN201
        self.calls.append(input)
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


class _ExplodingClassifier:
    def classify(self, text: str) -> IntentLabel:
        raise ClassifierUnavailable(f"model offline for {text!r}")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("How do I start?", IntentLabel.BOOTSTRAP),
        ("Let's do the initial setup", IntentLabel.BOOTSTRAP),
        ("I want to configure my account", IntentLabel.ACCOUNT_CONFIGURE),
        ("add the account details", IntentLabel.ACCOUNT_CONFIGURE),
        ("setup account", IntentLabel.ACCOUNT_CONFIGURE),
        ("Please set up my account", IntentLabel.ACCOUNT_CONFIGURE),
        ("how do I start with my account", IntentLabel.BOOTSTRAP),
        ("assign the admin role to Priya", IntentLabel.ROLE_ASSIGN),
        ("I need unique codes for complaints", IntentLabel.IDGEN),
        ("configure idgen", IntentLabel.IDGEN),
        ("Configure a WORKFLOW for approvals", IntentLabel.WORKFLOW),
        ("load the ward boundary data", IntentLabel.BOUNDARY),
        ("set notification templates", IntentLabel.NOTIFICATION),
        ("define a registry schema", IntentLabel.REGISTRY),
        ("add a new user", IntentLabel.USER),
        ("create an inspector role", IntentLabel.ROLE),
        ("yes", IntentLabel.UNKNOWN),
        ("what is the weather", IntentLabel.UNKNOWN),
    ],
)
def test_keyword_classifier(text: str, expected: IntentLabel) -> None:
    assert KeywordIntentClassifier().classify(text) == expected


def test_intent_label_parse_is_lenient() -> None:
    assert IntentLabel.parse("  Role.Assign ") == IntentLabel.ROLE_ASSIGN
    assert IntentLabel.parse("workflow") == IntentLabel.WORKFLOW
    assert IntentLabel.parse("delete everything") == IntentLabel.UNKNOWN
    assert IntentLabel.parse(None) == IntentLabel.UNKNOWN


def test_llm_classifier_returns_structured_intent() -> None:
    runnable = _StubRunnable(IntentClassification(intent=IntentLabel.REGISTRY, rationale="schemas"))
    classifier = LlmIntentClassifier(
        model_name="gpt-4o-mini",
        model=IntentModel(runnable=runnable),
    )
    assert classifier.classify("I need a data model for properties") == IntentLabel.REGISTRY

    messages = runnable.calls[0]
    assert messages[0][0] == "system"
    assert "intent classifier" in messages[0][1]
    assert messages[1] == ("human", "I need a data model for properties")


def test_llm_classifier_accepts_dict_payloads() -> None:
    runnable = _StubRunnable({"intent": "role.assign", "rationale": "grant"})
    classifier = LlmIntentClassifier(
        model_name="gpt-4o-mini",
        model=IntentModel(runnable=runnable),
    )
    assert classifier.classify("grant permissions") == IntentLabel.ROLE_ASSIGN


@pytest.mark.parametrize(
    "output",
    [
        RuntimeError("connection reset"),
        {"rationale": "no label"},
        {"parsed": None, "parsing_error": ValueError("bad json"), "raw": None},
        "bootstrap",
    ],
)
def test_llm_classifier_failures_raise_classifier_unavailable(output: object) -> None:
    classifier = LlmIntentClassifier(
        model_name="gpt-4o-mini",
        model=IntentModel(runnable=_StubRunnable(output)),
    )
    with pytest.raises(ClassifierUnavailable, match="gpt-4o-mini"):
        classifier.classify("set up workflows")


def test_llm_classifier_without_api_key_is_unavailable() -> None:
    classifier = LlmIntentClassifier(model_name="gpt-4o-mini")
    with pytest.raises(ClassifierUnavailable, match="OPENAI_API_KEY"):
        classifier.classify("configure workflow")


def test_fallback_classifier_degrades_to_keywords(caplog: pytest.LogCaptureFixture) -> None:
    classifier = FallbackIntentClassifier(_ExplodingClassifier())
    with caplog.at_level("WARNING"):
        assert classifier.classify("configure the workflow") == IntentLabel.WORKFLOW
    assert "keyword fallback" in caplog.text


def test_fallback_classifier_prefers_primary() -> None:
    runnable = _StubRunnable(IntentClassification(intent=IntentLabel.BOUNDARY, rationale="wards"))
    primary = LlmIntentClassifier(
        model_name="gpt-4o-mini",
        model=IntentModel(runnable=runnable),
    )
    assert FallbackIntentClassifier(primary).classify("set up wards and zones") == IntentLabel.BOUNDARY


def test_parse_intent_output_unwraps_include_raw_envelope() -> None:
    parsed = IntentClassification(intent=IntentLabel.USER, rationale="add user")
    assert parse_intent_output({"parsed": parsed, "parsing_error": None, "raw": object()}) is parsed


def test_parse_intent_output_reads_stray_labels_as_unknown() -> None:
    assert parse_intent_output({"intent": " Workflow ", "rationale": "flows"}).intent == IntentLabel.WORKFLOW
    assert parse_intent_output({"intent": "delete.everything", "rationale": "?"}).intent == IntentLabel.UNKNOWN


def test_parse_intent_output_rejects_empty_envelope() -> None:
    with pytest.raises(RuntimeError, match="empty"):
        parse_intent_output({"parsed": None, "parsing_error": None, "raw": object()})


def test_build_classifier_keyword_backend() -> None:
    classifier = build_intent_classifier(RuntimeSettings(classifier_backend="keyword"))
    assert isinstance(classifier, KeywordIntentClassifier)


def test_build_classifier_auto_without_key_uses_keywords() -> None:
    classifier = build_intent_classifier(RuntimeSettings(classifier_backend="auto"))
    assert isinstance(classifier, KeywordIntentClassifier)


def test_build_classifier_auto_with_key_uses_model_with_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    classifier = build_intent_classifier(RuntimeSettings(classifier_backend="auto", model_name="gpt-4o"))
    assert isinstance(classifier, FallbackIntentClassifier)
    assert isinstance(classifier.primary, LlmIntentClassifier)
    assert classifier.primary.model_name == "gpt-4o"


def test_build_classifier_openai_without_key_still_answers() -> None:
    classifier = build_intent_classifier(RuntimeSettings(classifier_backend="openai"))
    assert classifier.classify("create a role") == IntentLabel.ROLE
