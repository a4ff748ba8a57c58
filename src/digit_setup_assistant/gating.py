from __future__ import annotations

from collections.abc import Iterable

from .models import ACCOUNT_GATE_ACTIONS, CONFIGURE_DOMAIN_ACTIONS, ActionName, ConfigurationState


def resolve_legal_actions(state: ConfigurationState) -> tuple[str, ...]:
    """Return the actions that may be invoked right now, in a stable order.

    Account creation and account configuration are total gates: while either
    is outstanding it is the only legal action. Past the gates the domain
    configure actions, user/role creation and role assignment are offered
    independently.
    """
    if not state.account.created:
        return (ActionName.ACCOUNT_CREATE.value,)

    if not state.account.configured:
        return (ActionName.ACCOUNT_CONFIGURE.value,)

    domain_flags = {
        ActionName.IDGEN_CONFIGURE.value: state.idgen_configured,
        ActionName.WORKFLOW_CONFIGURE.value: state.workflow_configured,
        ActionName.NOTIFICATION_CONFIGURE.value: state.notification_configured,
        ActionName.BOUNDARY_CONFIGURE.value: state.boundary_configured,
        ActionName.REGISTRY_CONFIGURE.value: state.registry_schema_configured,
    }
    actions = [name for name in CONFIGURE_DOMAIN_ACTIONS if not domain_flags[name]]

    if not state.user.created:
        actions.append(ActionName.USER_CREATE.value)
    if not state.role.created:
        actions.append(ActionName.ROLE_CREATE.value)

    # Derived capability: needs both a user and a role.
    if state.user.created and state.role.created and not state.role_assignment_done:
        actions.append(ActionName.ROLE_ASSIGN.value)

    return tuple(actions)


def account_gate_action(legal_actions: Iterable[str]) -> str | None:
    """Return the outstanding account gate action, or None once the account is ready."""
    legal = set(legal_actions)
    for gate in ACCOUNT_GATE_ACTIONS:
        if gate in legal:
            return gate
    return None
