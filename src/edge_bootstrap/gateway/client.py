"""Synchronous HTTP client for the gateway admin API and proxy path.

Every call is single-attempt: failures are raised to the caller (the step
pipeline decides whether they are recoverable) instead of being retried here.

Create semantics:
  201 -> server-assigned ``id`` (UNKNOWN_ID if the body carries none)
  409 -> resource already exists, UNKNOWN_ID
  anything else -> GatewayRequestError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from ..errors import GatewayRequestError, GatewayUnavailableError
from ..pipeline.steps import UNKNOWN_ID
from .resources import GatewayResource, Plugin, Route, Service

logger = logging.getLogger(__name__)

RATE_LIMIT_REMAINING_HEADER = 'X-RateLimit-Remaining-Minute'
DEFAULT_EXCERPT_BYTES = 100

_CREATED = 201
_CONFLICT = 409


@dataclass(frozen=True, slots=True)
class GatewayStatus:
    """Subset of ``GET /status`` shown to operators."""

    database: Any
    server: Any
    raw: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class ProxyResponse:
    """Response observed through the gateway's traffic path."""

    status_code: int
    excerpt: str
    rate_limit_remaining: str | None = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class GatewayClient:
    """Client for the gateway control plane (admin URL) and data plane (proxy URL).

    Args:
        admin_url: Base URL of the admin API.
        proxy_url: Base URL of the proxy listener.
        http_client: Optional httpx.Client (for test injection). A client
            created here is closed by ``close``; an injected one is not.
        timeout_seconds: Per-request timeout.
    """

    def __init__(
        self,
        admin_url: str,
        proxy_url: str,
        *,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._admin_url = admin_url.rstrip('/')
        self._proxy_url = proxy_url.rstrip('/')
        self._timeout = float(timeout_seconds)
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=self._timeout)

    # ------ lifecycle ------

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> GatewayClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------ helpers ------

    def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        json: Any | None = None,
    ) -> httpx.Response:
        try:
            return self._http.request(method, url, json=json, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise GatewayUnavailableError(f'{operation}: {type(exc).__name__}: {exc}') from exc

    def _create(self, path: str, resource: GatewayResource, *, operation: str) -> str:
        resp = self._request(
            'POST', f'{self._admin_url}{path}', operation=operation, json=resource.to_payload(),
        )

        if resp.status_code == _CONFLICT:
            logger.info(
                '%s: resource already exists',
                operation,
                extra={'resource_kind': resource.kind, 'resource_name': resource.name},
            )
            return UNKNOWN_ID

        if resp.status_code != _CREATED:
            raise GatewayRequestError(resp.status_code, resp.text, operation=operation)

        identifier = _extract_id(resp)
        logger.info(
            '%s: created',
            operation,
            extra={
                'resource_kind': resource.kind,
                'resource_name': resource.name,
                'resource_id': identifier,
            },
        )
        return identifier

    # ------ control plane ------

    def get_status(self) -> GatewayStatus:
        """Read the gateway's status document. Expects 200."""
        resp = self._request('GET', f'{self._admin_url}/status', operation='get status')
        if resp.status_code != 200:
            raise GatewayRequestError(resp.status_code, resp.text, operation='get status')
        try:
            body = resp.json()
        except ValueError as exc:
            raise GatewayRequestError(resp.status_code, resp.text, operation='get status') from exc
        if not isinstance(body, dict):
            body = {}
        return GatewayStatus(database=body.get('database'), server=body.get('server'), raw=body)

    def create_service(self, service: Service) -> str:
        return self._create('/services', service, operation='create service')

    def create_route(self, service_ref: str, route: Route) -> str:
        """Attach a route to a service, referenced by id or name."""
        return self._create(
            f'/services/{service_ref}/routes',
            route,
            operation='create route',
        )

    def create_plugin(self, service_ref: str, plugin: Plugin) -> str:
        """Enable a plugin on a service, referenced by id or name."""
        return self._create(
            f'/services/{service_ref}/plugins',
            plugin,
            operation='add plugin',
        )

    def list_services(self) -> list[dict[str, Any]]:
        resp = self._request('GET', f'{self._admin_url}/services', operation='list services')
        if resp.status_code != 200:
            raise GatewayRequestError(resp.status_code, resp.text, operation='list services')
        try:
            body = resp.json()
        except ValueError as exc:
            raise GatewayRequestError(resp.status_code, resp.text, operation='list services') from exc
        data = body.get('data') if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise GatewayRequestError(
                resp.status_code,
                f'expected a data list, got {type(data).__name__}',
                operation='list services',
            )
        return data

    # ------ data plane ------

    def proxy_request(self, path: str, *, max_body_bytes: int = DEFAULT_EXCERPT_BYTES) -> ProxyResponse:
        """GET ``path`` through the proxy, reading at most ``max_body_bytes``."""
        url = f'{self._proxy_url}{path}'
        try:
            with self._http.stream('GET', url, timeout=self._timeout) as resp:
                excerpt = _read_bounded(resp, max_body_bytes)
                return ProxyResponse(
                    status_code=resp.status_code,
                    excerpt=excerpt,
                    rate_limit_remaining=resp.headers.get(RATE_LIMIT_REMAINING_HEADER),
                )
        except httpx.HTTPError as exc:
            raise GatewayUnavailableError(f'proxy request {path}: {type(exc).__name__}: {exc}') from exc


def _extract_id(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return UNKNOWN_ID
    if isinstance(body, dict) and isinstance(body.get('id'), str) and body['id']:
        return body['id']
    return UNKNOWN_ID


def _read_bounded(resp: httpx.Response, limit: int) -> str:
    buffer = bytearray()
    for chunk in resp.iter_bytes():
        buffer.extend(chunk)
        if len(buffer) >= limit:
            break
    return bytes(buffer[:limit]).decode('utf-8', errors='replace')
