from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .errors import UnknownActionError
from .models import ActionName, ConfigurationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionHandler:
    """One executable provisioning step.

    ``apply`` mutates only the fields owned by the action and only ever sets
    them to True. The handlers stand in for calls to the platform's
    provisioning API.
    """

    name: str
    description: str
    apply: Callable[[ConfigurationState], None]

    def execute(self, state: ConfigurationState) -> ConfigurationState:
        self.apply(state)
        return state


def _create_account(state: ConfigurationState) -> None:
    state.account.created = True


def _configure_account(state: ConfigurationState) -> None:
    state.account.configured = True
    state.account.access_token = f"token-{uuid.uuid4().hex}"


def _configure_idgen(state: ConfigurationState) -> None:
    state.idgen_configured = True


def _configure_workflow(state: ConfigurationState) -> None:
    state.workflow_configured = True


def _configure_boundary(state: ConfigurationState) -> None:
    state.boundary_configured = True


def _configure_notification(state: ConfigurationState) -> None:
    state.notification_configured = True


def _configure_registry(state: ConfigurationState) -> None:
    state.registry_schema_configured = True


def _create_user(state: ConfigurationState) -> None:
    state.user.created = True


def _create_role(state: ConfigurationState) -> None:
    state.role.created = True


def _assign_role(state: ConfigurationState) -> None:
    state.role_assignment_done = True


DEFAULT_HANDLERS: tuple[ActionHandler, ...] = (
    ActionHandler(ActionName.ACCOUNT_CREATE.value, "create your DIGIT account", _create_account),
    ActionHandler(ActionName.ACCOUNT_CONFIGURE.value, "configure your account details", _configure_account),
    ActionHandler(ActionName.IDGEN_CONFIGURE.value, "configure unique ID generation", _configure_idgen),
    ActionHandler(ActionName.WORKFLOW_CONFIGURE.value, "configure workflows", _configure_workflow),
    ActionHandler(ActionName.BOUNDARY_CONFIGURE.value, "configure boundaries", _configure_boundary),
    ActionHandler(ActionName.NOTIFICATION_CONFIGURE.value, "configure notifications", _configure_notification),
    ActionHandler(ActionName.REGISTRY_CONFIGURE.value, "configure registry schemas", _configure_registry),
    ActionHandler(ActionName.USER_CREATE.value, "create a user", _create_user),
    ActionHandler(ActionName.ROLE_CREATE.value, "create a role", _create_role),
    ActionHandler(ActionName.ROLE_ASSIGN.value, "assign a role to a user", _assign_role),
)


class ActionRegistry:
    """Immutable name -> handler table, built once and shared across sessions."""

    def __init__(self, handlers: Iterable[ActionHandler]) -> None:
        table: dict[str, ActionHandler] = {}
        for handler in handlers:
            if not handler.name or not handler.name.strip():
                raise ValueError("action handler name must be non-empty")
            if handler.name in table:
                raise ValueError(f"Duplicate action handler: {handler.name}")
            table[handler.name] = handler
        self._handlers: Mapping[str, ActionHandler] = MappingProxyType(table)

    def get(self, name: str) -> ActionHandler:
        try:
            return self._handlers[name]
        except KeyError:
            raise UnknownActionError(name) from None

    def describe(self, name: str) -> str:
        return self.get(name).description

    def names(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def build_default_registry() -> ActionRegistry:
    registry = ActionRegistry(DEFAULT_HANDLERS)
    logger.debug("Built action registry with %d handlers", len(registry))
    return registry
