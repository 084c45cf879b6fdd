"""
Protocol definitions for dependency injection.

This module defines the interfaces the export pipeline depends on, enabling:
- Easy faking in tests (see tests/graph_mocks.py)
- Clear contracts between the pipeline core and the Azure SDK

Usage:
    from contracts.interfaces import GraphSession

    # In production, use services.resource_graph.AzureGraphSession
    # In tests, use tests.graph_mocks.FakeGraphSession
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

Row = dict[str, Any]


@dataclass(frozen=True)
class SessionContext:
    """Identity of the authenticated session a run executes under."""

    tenant_id: str = ""
    subscription_id: str = ""
    subscription_name: str = ""


# -----------------------------------------------------------------------------
# Session Protocol (what the pipeline needs)
# -----------------------------------------------------------------------------

@runtime_checkable
class GraphSession(Protocol):
    """Authenticated resource graph session."""

    def validate_environment(self) -> SessionContext:
        """Check client prerequisites and authentication; return the current context.

        Raises PrerequisiteError or AuthenticationError.
        """
        ...

    def bind_subscription(self, selector: str) -> SessionContext:
        """Bind the session to a subscription id or display name.

        Raises SubscriptionBindingError.
        """
        ...

    def context(self) -> SessionContext:
        """Return the current session context."""
        ...

    def query(self, query_text: str, *, first: int) -> list[Row]:
        """Run *query_text* and return at most *first* rows.

        Raises QueryError.
        """
        ...


# -----------------------------------------------------------------------------
# Azure SDK Protocols (what the session needs)
# -----------------------------------------------------------------------------

@runtime_checkable
class CredentialProtocol(Protocol):
    """Protocol for azure-identity credentials."""

    def get_token(self, *scopes: str, **kwargs: Any) -> Any:
        """Acquire an access token."""
        ...


@runtime_checkable
class ResourceGraphClientProtocol(Protocol):
    """Protocol for azure.mgmt.resourcegraph.ResourceGraphClient."""

    def resources(self, query: Any, **kwargs: Any) -> Any:
        """Execute a resource graph query request."""
        ...


@runtime_checkable
class SubscriptionsOperationsProtocol(Protocol):
    """Protocol for SubscriptionClient.subscriptions."""

    def list(self, **kwargs: Any) -> Iterable[Any]:
        """List subscriptions visible to the credential."""
        ...


__all__ = [
    "CredentialProtocol",
    "GraphSession",
    "ResourceGraphClientProtocol",
    "Row",
    "SessionContext",
    "SubscriptionsOperationsProtocol",
]
