from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum

from pydantic import BaseModel, Field


class ActionName(str, Enum):
    ACCOUNT_CREATE = "account.create"
    ACCOUNT_CONFIGURE = "account.configure"
    IDGEN_CONFIGURE = "idgen.configure"
    WORKFLOW_CONFIGURE = "workflow.configure"
    BOUNDARY_CONFIGURE = "boundary.configure"
    NOTIFICATION_CONFIGURE = "notification.configure"
    REGISTRY_CONFIGURE = "registry.configure"
    USER_CREATE = "user.create"
    ROLE_CREATE = "role.create"
    ROLE_ASSIGN = "role.assign"


ACCOUNT_GATE_ACTIONS: tuple[str, ...] = (
    ActionName.ACCOUNT_CREATE.value,
    ActionName.ACCOUNT_CONFIGURE.value,
)

# Declared order of the independent configuration domains.
CONFIGURE_DOMAIN_ACTIONS: tuple[str, ...] = (
    ActionName.IDGEN_CONFIGURE.value,
    ActionName.WORKFLOW_CONFIGURE.value,
    ActionName.NOTIFICATION_CONFIGURE.value,
    ActionName.BOUNDARY_CONFIGURE.value,
    ActionName.REGISTRY_CONFIGURE.value,
)


class IntentLabel(str, Enum):
    BOOTSTRAP = "bootstrap"
    ACCOUNT_CONFIGURE = "account.configure"
    IDGEN = "idgen"
    WORKFLOW = "workflow"
    BOUNDARY = "boundary"
    NOTIFICATION = "notification"
    REGISTRY = "registry"
    USER = "user"
    ROLE = "role"
    ROLE_ASSIGN = "role.assign"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "IntentLabel":
        """Map free text onto the closed label set, defaulting to UNKNOWN."""
        normalized = (value or "").strip().lower()
        for label in cls:
            if label.value == normalized:
                return label
        return cls.UNKNOWN


CONFIGURE_INTENTS: frozenset[IntentLabel] = frozenset(
    {
        IntentLabel.IDGEN,
        IntentLabel.WORKFLOW,
        IntentLabel.BOUNDARY,
        IntentLabel.NOTIFICATION,
        IntentLabel.REGISTRY,
    }
)


@dataclass
class AccountState:
    created: bool = False
    configured: bool = False
    access_token: str | None = None


@dataclass
class UserState:
    created: bool = False


@dataclass
class RoleState:
    created: bool = False


@dataclass
class ConfigurationState:
    """Provisioning ledger for one conversation.

    Flags only ever move from False to True; there is no unconfigure path.
    """

    account: AccountState = field(default_factory=AccountState)
    idgen_configured: bool = False
    workflow_configured: bool = False
    notification_configured: bool = False
    boundary_configured: bool = False
    registry_schema_configured: bool = False
    user: UserState = field(default_factory=UserState)
    role: RoleState = field(default_factory=RoleState)
    role_assignment_done: bool = False

    @property
    def account_ready(self) -> bool:
        return self.account.created and self.account.configured

    def check_invariants(self) -> None:
        """Raise ValueError if the ledger describes an impossible provisioning order."""
        if self.account.configured and not self.account.created:
            raise ValueError("account.configured requires account.created")
        if self.account.access_token is not None and not self.account.configured:
            raise ValueError("account access token is only issued once the account is configured")
        if self.role_assignment_done and not (self.user.created and self.role.created):
            raise ValueError("role_assignment_done requires both user.created and role.created")

    def completed_flags(self) -> frozenset[str]:
        flags = {
            "account.created": self.account.created,
            "account.configured": self.account.configured,
            "idgen_configured": self.idgen_configured,
            "workflow_configured": self.workflow_configured,
            "notification_configured": self.notification_configured,
            "boundary_configured": self.boundary_configured,
            "registry_schema_configured": self.registry_schema_configured,
            "user.created": self.user.created,
            "role.created": self.role.created,
            "role_assignment_done": self.role_assignment_done,
        }
        return frozenset(name for name, done in flags.items() if done)

    def snapshot(self) -> dict[str, object]:
        return asdict(self)

    def update_from(self, other: "ConfigurationState") -> None:
        """Commit every field of ``other`` onto this ledger in place."""
        for item in fields(self):
            setattr(self, item.name, getattr(other, item.name))


class DecisionType(str, Enum):
    EXECUTE = "execute"
    EXPLAIN = "explain"


@dataclass(frozen=True)
class Decision:
    """Outcome of intent resolution.

    ``EXECUTE`` is kept for callers that construct decisions directly; the
    decision engine itself only emits ``EXPLAIN`` so every mutation is
    confirmed first.
    """

    type: DecisionType
    message: str | None = None
    action: str | None = None
    proposed_action: str | None = None

    @classmethod
    def execute(cls, action: str) -> "Decision":
        return cls(type=DecisionType.EXECUTE, action=action)

    @classmethod
    def explain(cls, message: str, proposed_action: str | None = None) -> "Decision":
        return cls(type=DecisionType.EXPLAIN, message=message, proposed_action=proposed_action)

    @property
    def confirmation_target(self) -> str | None:
        """Action that must be confirmed before anything is dispatched."""
        if self.type == DecisionType.EXECUTE:
            return self.action
        return self.proposed_action


class ReplyKind(str, Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    OTHER = "other"


@dataclass(frozen=True)
class AssistantReply:
    executed: bool
    message: str
    proposed_action: str | None = None
    legal_actions: tuple[str, ...] = ()
    error: str | None = None


class IntentClassification(BaseModel):
    """Structured output schema for the model-backed intent classifier."""

    intent: IntentLabel = Field(description="Exactly one intent label from the allowed set")
    rationale: str = Field(description="One short sentence explaining the choice")
