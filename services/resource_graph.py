"""
services/resource_graph.py

Azure Resource Graph session (implements contracts.interfaces.GraphSession).

Goals:
- The pipeline never touches the Azure SDK directly; it only sees SessionContext
  and rows (plain dicts).
- Azure SDK exceptions are translated to the pipeline error taxonomy here.
- SDK clients are injectable so tests run without network or credentials.

Authentication uses DefaultAzureCredential, which tries in order:
  1. EnvironmentCredential (service principal via env vars)
  2. WorkloadIdentityCredential / ManagedIdentityCredential
  3. AzureCliCredential (local development with `az login`)
  4. AzurePowerShellCredential / AzureDeveloperCliCredential
"""

from __future__ import annotations

import importlib.util
import logging
from typing import Any, List, Sequence

from azure.core.exceptions import AzureError, ClientAuthenticationError, HttpResponseError

from contracts.errors import (
    AuthenticationError,
    PrerequisiteError,
    QueryError,
    SubscriptionBindingError,
)
from contracts.interfaces import (
    CredentialProtocol,
    ResourceGraphClientProtocol,
    Row,
    SessionContext,
)
from infra.config import AzureSettings

logger = logging.getLogger(__name__)

REQUIRED_MODULES: tuple[str, ...] = (
    "azure.identity",
    "azure.mgmt.resourcegraph",
    "azure.mgmt.resource",
)


def _module_exists(mod_name: str) -> bool:
    try:
        return importlib.util.find_spec(mod_name) is not None
    except ModuleNotFoundError:
        return False


def missing_prerequisites(modules: Sequence[str] = REQUIRED_MODULES) -> List[str]:
    """Return the SDK modules that cannot be imported."""
    return [m for m in modules if not _module_exists(m)]


def _sub_field(sub: Any, name: str) -> str:
    value = getattr(sub, name, None)
    if value is None and isinstance(sub, dict):
        value = sub.get(name)
    return str(value or "").strip()


def _sub_state(sub: Any) -> str:
    state = getattr(sub, "state", None)
    if state is None and isinstance(sub, dict):
        state = sub.get("state")
    # SubscriptionState is a str enum; compare on its value.
    return str(getattr(state, "value", state) or "").strip().lower()


class AzureGraphSession:
    """
    Authenticated resource graph session.

    Usage:
      session = AzureGraphSession.from_settings(get_settings().azure)
      ctx = session.validate_environment()
      ctx = session.bind_subscription("Production")   # optional
      rows = session.query(text, first=1000)

    Until a subscription is bound, queries span every subscription visible to
    the credential and the context reports the first enabled one.
    """

    def __init__(
        self,
        *,
        credential: CredentialProtocol | None = None,
        graph_client: ResourceGraphClientProtocol | None = None,
        subscription_client: Any | None = None,
        tenant_id: str | None = None,
        management_scope: str = "https://management.azure.com/.default",
    ) -> None:
        self._credential = credential
        self._graph_client = graph_client
        self._subscription_client = subscription_client
        self._tenant_id = (tenant_id or "").strip() or None
        self._scope = management_scope
        self._subscriptions: List[Any] = []
        self._bound_ids: List[str] | None = None
        self._context: SessionContext | None = None

    @classmethod
    def from_settings(cls, settings: AzureSettings) -> AzureGraphSession:
        return cls(tenant_id=settings.tenant_id, management_scope=settings.management_scope)

    # -------------------------
    # GraphSession
    # -------------------------

    def validate_environment(self) -> SessionContext:
        if self._credential is None or self._graph_client is None or self._subscription_client is None:
            missing = missing_prerequisites()
            if missing:
                raise PrerequisiteError(
                    "Missing Azure SDK packages: "
                    + ", ".join(missing)
                    + ". Install azure-identity, azure-mgmt-resourcegraph and azure-mgmt-resource."
                )
            self._build_default_clients()

        try:
            self._credential.get_token(self._scope)  # type: ignore[union-attr]
        except ClientAuthenticationError as exc:
            raise AuthenticationError(
                f"No valid Azure session: {exc.message or exc}. Sign in with 'az login' "
                "or configure a service principal."
            ) from exc
        except AzureError as exc:
            raise AuthenticationError(f"Cannot reach Azure to acquire a token: {exc}") from exc

        try:
            subs = list(self._subscription_client.subscriptions.list())  # type: ignore[union-attr]
        except ClientAuthenticationError as exc:
            raise AuthenticationError(f"Azure session rejected while listing subscriptions: {exc}") from exc
        except AzureError as exc:
            raise AuthenticationError(f"Cannot list subscriptions: {exc}") from exc

        if self._tenant_id:
            subs = [s for s in subs if _sub_field(s, "tenant_id").lower() in ("", self._tenant_id.lower())]
        if not subs:
            raise AuthenticationError("Authenticated, but no subscriptions are visible to this identity")

        self._subscriptions = subs
        enabled = [s for s in subs if _sub_state(s) in ("", "enabled")]
        self._context = self._context_for((enabled or subs)[0])
        logger.debug("Resource graph session ready: %d subscription(s) visible", len(subs))
        return self._context

    def bind_subscription(self, selector: str) -> SessionContext:
        wanted = str(selector or "").strip().lower()
        if not wanted:
            raise SubscriptionBindingError("Subscription selector is empty")
        if not self._subscriptions:
            raise SubscriptionBindingError("Session has not been validated; no subscriptions loaded")

        for sub in self._subscriptions:
            if wanted in (_sub_field(sub, "subscription_id").lower(), _sub_field(sub, "display_name").lower()):
                if _sub_state(sub) not in ("", "enabled", "warned", "pastdue"):
                    raise SubscriptionBindingError(
                        f"Subscription {selector!r} is not usable (state={_sub_state(sub)})"
                    )
                self._bound_ids = [_sub_field(sub, "subscription_id")]
                self._context = self._context_for(sub)
                return self._context

        raise SubscriptionBindingError(f"Subscription {selector!r} not found for this identity")

    def context(self) -> SessionContext:
        return self._context or SessionContext(tenant_id=self._tenant_id or "")

    def query(self, query_text: str, *, first: int) -> list[Row]:
        if self._graph_client is None or not self._subscriptions:
            raise QueryError("Session has not been validated; call validate_environment() first")

        from azure.mgmt.resourcegraph.models import QueryRequest, QueryRequestOptions

        request = QueryRequest(
            subscriptions=self._scope_ids(),
            query=query_text,
            options=QueryRequestOptions(top=int(first), result_format="objectArray"),
        )
        try:
            response = self._graph_client.resources(request)
        except HttpResponseError as exc:
            raise QueryError(f"Resource graph query failed ({exc.status_code}): {exc.message or exc}") from exc
        except AzureError as exc:
            raise QueryError(f"Resource graph query failed: {exc}") from exc

        data = getattr(response, "data", None)
        if data is None:
            return []
        if not isinstance(data, list):
            raise QueryError(f"Unexpected resource graph payload: expected a list, got {type(data).__name__}")

        rows: list[Row] = []
        for item in data:
            if not isinstance(item, dict):
                raise QueryError(f"Unexpected resource graph row: {type(item).__name__}")
            rows.append(dict(item))
        return rows

    # -------------------------
    # Internals
    # -------------------------

    def _scope_ids(self) -> List[str]:
        if self._bound_ids is not None:
            return list(self._bound_ids)
        return [_sub_field(s, "subscription_id") for s in self._subscriptions if _sub_field(s, "subscription_id")]

    def _context_for(self, sub: Any) -> SessionContext:
        return SessionContext(
            tenant_id=_sub_field(sub, "tenant_id") or (self._tenant_id or ""),
            subscription_id=_sub_field(sub, "subscription_id"),
            subscription_name=_sub_field(sub, "display_name"),
        )

    def _build_default_clients(self) -> None:
        from azure.identity import DefaultAzureCredential
        from azure.mgmt.resource import SubscriptionClient
        from azure.mgmt.resourcegraph import ResourceGraphClient

        if self._credential is None:
            self._credential = DefaultAzureCredential()
        if self._graph_client is None:
            self._graph_client = ResourceGraphClient(self._credential)
        if self._subscription_client is None:
            self._subscription_client = SubscriptionClient(self._credential)
