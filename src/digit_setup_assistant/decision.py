from __future__ import annotations

import logging
from collections.abc import Sequence

from .gating import account_gate_action
from .models import CONFIGURE_INTENTS, ActionName, Decision, IntentLabel

logger = logging.getLogger(__name__)

INTENT_ACTIONS: dict[IntentLabel, str] = {
    IntentLabel.IDGEN: ActionName.IDGEN_CONFIGURE.value,
    IntentLabel.WORKFLOW: ActionName.WORKFLOW_CONFIGURE.value,
    IntentLabel.BOUNDARY: ActionName.BOUNDARY_CONFIGURE.value,
    IntentLabel.NOTIFICATION: ActionName.NOTIFICATION_CONFIGURE.value,
    IntentLabel.REGISTRY: ActionName.REGISTRY_CONFIGURE.value,
    IntentLabel.USER: ActionName.USER_CREATE.value,
    IntentLabel.ROLE: ActionName.ROLE_CREATE.value,
    IntentLabel.ROLE_ASSIGN: ActionName.ROLE_ASSIGN.value,
}

INTENT_DESCRIPTIONS: dict[IntentLabel, str] = {
    IntentLabel.IDGEN: "configure unique ID generation",
    IntentLabel.WORKFLOW: "configure workflows",
    IntentLabel.BOUNDARY: "configure boundaries",
    IntentLabel.NOTIFICATION: "configure notifications",
    IntentLabel.REGISTRY: "configure registry schemas",
    IntentLabel.USER: "create a user",
    IntentLabel.ROLE: "create a role",
    IntentLabel.ROLE_ASSIGN: "assign a role to a user",
}

_NEXT_STEPS = "You can now configure workflows, IDs, users, roles, or boundaries."


def _proceed(action: str) -> str:
    return f"Shall I proceed with {action}?"


class DecisionEngine:
    """Turns a classified intent plus the legal action set into a Decision.

    The legal action set produced by the resolver is the only source of
    truth about prerequisites. Every path that lands on a dispatchable action
    proposes it for confirmation instead of executing it.
    """

    def decide(self, intent: IntentLabel, legal_actions: Sequence[str]) -> Decision:
        legal = tuple(legal_actions)
        decision = self._decide(intent, legal)
        logger.debug(
            "intent=%s legal=%s -> proposed=%s",
            intent.value,
            ",".join(legal),
            decision.confirmation_target,
        )
        return decision

    def _decide(self, intent: IntentLabel, legal: tuple[str, ...]) -> Decision:
        gate = account_gate_action(legal)

        if intent == IntentLabel.BOOTSTRAP:
            return self._bootstrap(gate)

        if intent == IntentLabel.ACCOUNT_CONFIGURE:
            if ActionName.ACCOUNT_CONFIGURE.value in legal:
                return Decision.explain(
                    "I understand you want to configure your account details. "
                    + _proceed(ActionName.ACCOUNT_CONFIGURE.value),
                    ActionName.ACCOUNT_CONFIGURE.value,
                )
            if ActionName.ACCOUNT_CREATE.value in legal:
                return Decision.explain(
                    "Before configuring account details, I need to create the account first. "
                    + _proceed(ActionName.ACCOUNT_CREATE.value),
                    ActionName.ACCOUNT_CREATE.value,
                )
            return Decision.explain(f"Account is already configured. {_NEXT_STEPS}")

        if intent in CONFIGURE_INTENTS and gate is not None:
            step = "create your account" if gate == ActionName.ACCOUNT_CREATE.value else "configure your account"
            return Decision.explain(
                f"Before I can configure {intent.value}, I need to {step} first. Shall I proceed with that?",
                gate,
            )

        if intent == IntentLabel.USER and ActionName.USER_CREATE.value not in legal:
            if gate is not None:
                return Decision.explain(
                    "User creation is available after account setup. Shall I proceed with the required steps?",
                    gate,
                )
            return Decision.explain("A user has already been created.")

        if intent == IntentLabel.ROLE and ActionName.ROLE_CREATE.value not in legal:
            if gate is not None:
                return Decision.explain(
                    "Role creation is available after account setup. Shall I proceed with the required steps?",
                    gate,
                )
            return Decision.explain("A role has already been created.")

        if intent == IntentLabel.ROLE_ASSIGN and ActionName.ROLE_ASSIGN.value not in legal:
            return self._role_assign_prerequisite(legal, gate)

        return self._direct(intent, legal)

    @staticmethod
    def _bootstrap(gate: str | None) -> Decision:
        if gate == ActionName.ACCOUNT_CREATE.value:
            return Decision.explain(
                "To get started, I need to create your DIGIT account. " + _proceed(gate),
                gate,
            )
        if gate == ActionName.ACCOUNT_CONFIGURE.value:
            return Decision.explain(
                "To get started, I need to configure your DIGIT account. " + _proceed(gate),
                gate,
            )
        return Decision.explain(f"Initial setup is complete. {_NEXT_STEPS}")

    @staticmethod
    def _role_assign_prerequisite(legal: tuple[str, ...], gate: str | None) -> Decision:
        # A missing user is proposed before a missing role.
        for missing in (ActionName.USER_CREATE.value, ActionName.ROLE_CREATE.value):
            if missing in legal:
                return Decision.explain(
                    "To assign a role, both a user and a role must exist first. "
                    f"Shall I create the missing pieces, starting with {missing}?",
                    missing,
                )
        if gate is not None:
            return Decision.explain(
                "Role assignment is available after account setup. Shall I proceed with the required steps?",
                gate,
            )
        return Decision.explain("The role has already been assigned to the user.")

    @staticmethod
    def _direct(intent: IntentLabel, legal: tuple[str, ...]) -> Decision:
        action = INTENT_ACTIONS.get(intent)
        if action is not None and action in legal:
            return Decision.explain(
                f"I understand you want to {INTENT_DESCRIPTIONS[intent]}. " + _proceed(action),
                action,
            )
        return Decision.explain(
            "I'm not sure what you'd like to do. Available options: " + ", ".join(legal)
        )
