from __future__ import annotations

import copy
import logging
from typing import Any, TypedDict

from langgraph.graph import END, START, StateGraph

from .actions import ActionRegistry
from .classifier import IntentClassifier
from .decision import DecisionEngine
from .errors import DispatchError, IllegalActionError, InvalidTransitionError, StaleProposalConflict
from .gating import resolve_legal_actions
from .models import AssistantReply, ConfigurationState, Decision, IntentLabel, ReplyKind
from .session import ConversationSession, SessionStore, interpret_reply

logger = logging.getLogger(__name__)

DECLINE_MESSAGE = "Okay, let me know what you'd like to do next."


class TurnState(TypedDict, total=False):
    session: ConversationSession
    text: str
    reply_kind: ReplyKind
    intent: IntentLabel
    legal_actions: tuple[str, ...]
    decision: Decision
    reply: AssistantReply


class ConversationOrchestrator:
    """Gated dispatch plus the per-turn confirmation flow.

    A turn runs as a LangGraph graph:
    interpret -> (confirm | decline | classify -> decide -> propose).
    Nothing is dispatched without a prior proposal and an affirmative reply,
    and legality is always re-checked against the state at dispatch time.
    """

    def __init__(
        self,
        registry: ActionRegistry,
        classifier: IntentClassifier,
        *,
        decision_engine: DecisionEngine | None = None,
        session_store: SessionStore | None = None,
    ) -> None:
        self.registry = registry
        self.classifier = classifier
        self.decision_engine = decision_engine if decision_engine is not None else DecisionEngine()
        self.sessions = session_store if session_store is not None else SessionStore()
        self.graph = self._build_graph().compile()

    # ------------------------------------------------------------------
    # Gated dispatch
    # ------------------------------------------------------------------

    def legal_actions(self, state: ConfigurationState) -> tuple[str, ...]:
        return resolve_legal_actions(state)

    def dispatch(self, action: str, state: ConfigurationState) -> ConfigurationState:
        """Execute ``action`` against ``state`` if it is legal right now.

        Raises:
            IllegalActionError: If the action is not legal for the current state.
            UnknownActionError: If the action has no registered handler.
            InvalidTransitionError: If the handler breaks an invariant or reverts a
                completed step; ``state`` is left untouched.
        """
        legal = self.legal_actions(state)
        if action not in legal:
            logger.warning("Rejected %s; legal actions: %s", action, ", ".join(legal) or "none")
            raise IllegalActionError(action, legal)

        handler = self.registry.get(action)
        candidate = copy.deepcopy(state)
        handler.execute(candidate)
        try:
            candidate.check_invariants()
        except ValueError as exc:
            raise InvalidTransitionError(action, str(exc)) from exc
        reverted = state.completed_flags() - candidate.completed_flags()
        if reverted:
            raise InvalidTransitionError(action, "it reverted " + ", ".join(sorted(reverted)))
        state.update_from(candidate)
        logger.info("Executed %s", action)
        return state

    def get_or_create_session(self, key: str) -> ConversationSession:
        return self.sessions.get_or_create(key)

    def decide(self, text: str, state: ConfigurationState) -> Decision:
        intent = self.classifier.classify(text)
        return self.decision_engine.decide(intent, self.legal_actions(state))

    def confirm_pending(self, session: ConversationSession) -> str:
        """Dispatch the session's pending action after re-validating it.

        The pending action is cleared whatever the outcome.

        Raises:
            ValueError: If nothing is pending.
            StaleProposalConflict: If the pending action is no longer legal.
        """
        action = session.clear_pending()
        if action is None:
            raise ValueError(f"session {session.key} has no pending action to confirm")
        legal = self.legal_actions(session.state)
        if action not in legal:
            logger.warning("Pending %s went stale for session %s", action, session.key)
            raise StaleProposalConflict(action, legal)
        self.dispatch(action, session.state)
        return action

    # ------------------------------------------------------------------
    # Conversation turn
    # ------------------------------------------------------------------

    def handle_message(self, session_key: str, text: str) -> AssistantReply:
        session = self.get_or_create_session(session_key)
        with session.lock:
            session.touch()
            result = self.graph.invoke({"session": session, "text": text})
        return result["reply"]

    def _build_graph(self) -> StateGraph:
        graph = StateGraph(TurnState)
        graph.add_node("interpret", self._interpret_node)
        graph.add_node("confirm", self._confirm_node)
        graph.add_node("decline", self._decline_node)
        graph.add_node("classify", self._classify_node)
        graph.add_node("decide", self._decide_node)
        graph.add_node("propose", self._propose_node)

        graph.add_edge(START, "interpret")
        graph.add_conditional_edges(
            "interpret",
            self._interpret_route,
            {
                "confirm": "confirm",
                "decline": "decline",
                "classify": "classify",
            },
        )
        graph.add_edge("classify", "decide")
        graph.add_edge("decide", "propose")
        graph.add_edge("confirm", END)
        graph.add_edge("decline", END)
        graph.add_edge("propose", END)
        return graph

    def _interpret_node(self, state: TurnState) -> dict[str, Any]:
        return {"reply_kind": interpret_reply(state["text"])}

    def _interpret_route(self, state: TurnState) -> str:
        # A bare yes/no with nothing pending is an ordinary message.
        if not state["session"].awaiting_confirmation:
            return "classify"
        if state["reply_kind"] == ReplyKind.AFFIRMATIVE:
            return "confirm"
        if state["reply_kind"] == ReplyKind.NEGATIVE:
            return "decline"
        return "classify"

    def _confirm_node(self, state: TurnState) -> dict[str, Any]:
        session = state["session"]
        try:
            action = self.confirm_pending(session)
        except DispatchError as exc:
            logger.warning("Confirmation failed for session %s: %s", session.key, exc)
            reply = AssistantReply(
                executed=False,
                message=str(exc),
                legal_actions=self.legal_actions(session.state),
                error=type(exc).__name__,
            )
            return {"reply": reply}
        reply = AssistantReply(
            executed=True,
            message=f"Executed: {action}",
            legal_actions=self.legal_actions(session.state),
        )
        return {"reply": reply}

    def _decline_node(self, state: TurnState) -> dict[str, Any]:
        session = state["session"]
        declined = session.clear_pending()
        logger.info("Session %s declined %s", session.key, declined)
        reply = AssistantReply(
            executed=False,
            message=DECLINE_MESSAGE,
            legal_actions=self.legal_actions(session.state),
        )
        return {"reply": reply}

    def _classify_node(self, state: TurnState) -> dict[str, Any]:
        intent = self.classifier.classify(state["text"])
        return {"intent": intent, "legal_actions": self.legal_actions(state["session"].state)}

    def _decide_node(self, state: TurnState) -> dict[str, Any]:
        return {"decision": self.decision_engine.decide(state["intent"], state["legal_actions"])}

    def _propose_node(self, state: TurnState) -> dict[str, Any]:
        session = state["session"]
        decision = state["decision"]
        target = decision.confirmation_target
        if target is not None:
            session.propose(target)
        message = decision.message or f"Shall I proceed with {target}?"
        reply = AssistantReply(
            executed=False,
            message=message,
            proposed_action=target,
            legal_actions=state["legal_actions"],
        )
        return {"reply": reply}
