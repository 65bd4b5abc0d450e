"""Pytest configuration for edge_bootstrap tests."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import httpx
import pytest
import structlog

from edge_bootstrap.convergence.commands import RecordingCommandRunner
from edge_bootstrap.gateway.client import GatewayClient
from edge_bootstrap.observability import logging as edge_logging
from edge_bootstrap.settings import GatewayWorkload, RunConfiguration

ADMIN_URL = 'http://admin.test'
PROXY_URL = 'http://proxy.test'


@dataclass
class FakeGateway:
    """In-memory stand-in for the gateway admin API and proxy listener.

    Services are addressable by id or name. Once a rate-limiting plugin is
    enabled, proxied requests beyond ``minute`` get 429.
    """

    services: dict[str, dict[str, Any]] = field(default_factory=dict)
    routes: list[dict[str, Any]] = field(default_factory=list)
    plugins: list[dict[str, Any]] = field(default_factory=list)
    requests: list[tuple[str, str]] = field(default_factory=list)
    fail: dict[tuple[str, str], int] = field(default_factory=dict)
    status_code: int = 200
    proxied_since_limit: int = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, str(request.url)))
        forced = self.fail.get((request.method, path))
        if forced is not None:
            return httpx.Response(forced, text=f'forced {forced}')
        if request.url.host == 'proxy.test':
            return self._proxy(path)
        return self._admin(request, path)

    def _lookup(self, ref: str) -> dict[str, Any] | None:
        for svc in self.services.values():
            if ref in (svc['id'], svc['name']):
                return svc
        return None

    def _admin(self, request: httpx.Request, path: str) -> httpx.Response:
        parts = [p for p in path.split('/') if p]
        body = json.loads(request.content) if request.content else {}

        if request.method == 'GET' and parts == ['status']:
            return httpx.Response(
                self.status_code,
                json={'database': {'reachable': True}, 'server': {'connections_active': 1}},
            )
        if request.method == 'GET' and parts == ['services']:
            data = [{'name': s['name'], 'host': s['host']} for s in self.services.values()]
            return httpx.Response(200, json={'data': data, 'next': None})
        if request.method == 'POST' and parts == ['services']:
            if body['name'] in self.services:
                return httpx.Response(409, json={'message': 'UNIQUE violation detected'})
            svc = {
                'id': f'svc-{len(self.services) + 1}',
                'name': body['name'],
                'host': httpx.URL(body['url']).host,
            }
            self.services[body['name']] = svc
            return httpx.Response(201, json=svc)
        if request.method == 'POST' and len(parts) == 3 and parts[0] == 'services':
            svc = self._lookup(parts[1])
            if svc is None:
                return httpx.Response(404, json={'message': 'Not found'})
            collection = self.routes if parts[2] == 'routes' else self.plugins
            if any(item['name'] == body['name'] for item in collection):
                return httpx.Response(409, json={'message': 'already exists'})
            item = {**body, 'id': f'{parts[2][:-1]}-{len(collection) + 1}', 'service': svc['id']}
            collection.append(item)
            return httpx.Response(201, json=item)
        return httpx.Response(404, json={'message': 'Not found'})

    def _proxy(self, path: str) -> httpx.Response:
        if not any(path.startswith(p) for r in self.routes for p in r['paths']):
            return httpx.Response(404, json={'message': 'no Route matched with those values'})
        limit = next(
            (p['config']['minute'] for p in self.plugins if p['name'] == 'rate-limiting'),
            None,
        )
        headers: dict[str, str] = {}
        if limit is not None:
            self.proxied_since_limit += 1
            remaining = max(limit - self.proxied_since_limit, 0)
            headers['X-RateLimit-Remaining-Minute'] = str(remaining)
            if self.proxied_since_limit > limit:
                return httpx.Response(
                    429, headers=headers, json={'message': 'API rate limit exceeded'},
                )
        return httpx.Response(200, headers=headers, content=b'{"args": {}, "headers": {}}' * 20)


@pytest.fixture(autouse=True)
def _isolate_logging():
    """Undo configure_logging() so each test starts from a clean root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    edge_logging._configured = False


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def gateway_client(fake_gateway: FakeGateway) -> GatewayClient:
    http = httpx.Client(transport=httpx.MockTransport(fake_gateway.handler))
    return GatewayClient(ADMIN_URL, PROXY_URL, http_client=http)


class DockerDouble(RecordingCommandRunner):
    """Recording runner whose ``docker network create`` makes inspect succeed."""

    def run(self, argv, *, cwd=None) -> None:
        super().run(argv, cwd=cwd)
        if tuple(argv[:3]) == ('docker', 'network', 'create'):
            self.succeeding.add(('docker', 'network', 'inspect', argv[3]))


@pytest.fixture
def commands() -> DockerDouble:
    return DockerDouble(succeeding={('docker', 'compose', 'version')})


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Create a temporary working directory for generated stack files."""
    root = tmp_path / 'stack'
    root.mkdir()
    return root


@pytest.fixture
def config(workdir: Path) -> RunConfiguration:
    return RunConfiguration(
        workdir=workdir,
        admin_url=ADMIN_URL,
        proxy_url=PROXY_URL,
        workload=GatewayWorkload(
            settle_seconds=0.0, route_settle_seconds=0.0, probe_interval_seconds=0.0,
        ),
    )


@pytest.fixture
def no_sleep() -> list[float]:
    """Collects requested delays instead of sleeping; pass ``.append``."""
    return []
