"""Run configuration for edge bootstrap.

RunConfiguration is the single configuration object every component receives.
It is a plain frozen dataclass (not env-coupled) so tests can build one
without touching os.environ. ``from_env`` is the only place the process
environment is read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

ACME_EMAIL_PLACEHOLDER = 'your-email@example.com'


@dataclass(frozen=True, slots=True)
class GatewayWorkload:
    """What the gateway pipeline provisions and how it is probed."""

    service_name: str = 'example-service'
    upstream_url: str = 'http://httpbin.org'
    route_name: str = 'example-route'
    route_paths: tuple[str, ...] = ('/httpbin',)
    route_methods: tuple[str, ...] = ('GET', 'POST')
    probe_path: str = '/httpbin/get'

    rate_limit_per_minute: int = 5
    probe_count: int = 6
    probe_interval_seconds: float = 0.5
    """Pause between verification probes so the limit window is observable."""

    settle_seconds: float = 1.0
    """One-off pause after provisioning so the gateway can apply new routes."""

    route_settle_seconds: float = 1.0
    """Pause before the proxy check so the gateway can pick up the new route."""


@dataclass(frozen=True, slots=True)
class RunConfiguration:
    """Immutable configuration for one bootstrap run.

    All fields have defaults suitable for a developer workstation.
    """

    # ── Stack ──────────────────────────────────────────────────────
    network_name: str = 'traefik-network'
    traefik_version: str = 'v3.0'
    dashboard_port: str = '8080'
    acme_email: str = ACME_EMAIL_PLACEHOLDER
    """Operator contact injected in place of the template placeholder."""

    workdir: Path = field(default_factory=Path.cwd)
    """Directory holding traefik.yml, docker-compose.yml and acme.json."""

    # ── Gateway ────────────────────────────────────────────────────
    admin_url: str = 'http://localhost:8001'
    proxy_url: str = 'http://localhost:8000'
    request_timeout_seconds: float = 10.0
    workload: GatewayWorkload = field(default_factory=GatewayWorkload)

    # ── Logging ────────────────────────────────────────────────────
    log_level: str = 'INFO'
    log_format: str = 'console'
    """One of: console, json."""

    @property
    def dashboard_url(self) -> str:
        return f'http://localhost:{self.dashboard_port}'

    @property
    def probe_url(self) -> str:
        return f'{self.proxy_url.rstrip("/")}{self.workload.probe_path}'

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []

        try:
            port = int(self.dashboard_port)
        except ValueError:
            errors.append(f'dashboard_port must be an integer, got {self.dashboard_port!r}')
        else:
            if not 1 <= port <= 65535:
                errors.append(f'dashboard_port out of range: {port}')

        for name in ('admin_url', 'proxy_url'):
            value = getattr(self, name)
            parsed = urlparse(value)
            if not parsed.scheme or not parsed.netloc:
                errors.append(f'{name} must include scheme and host, got {value!r}')

        if self.log_format not in ('console', 'json'):
            errors.append(f'log_format must be console or json, got {self.log_format!r}')

        if self.workload.probe_count < 1:
            errors.append('probe_count must be at least 1')

        return errors

    def with_overrides(self, **overrides: Any) -> RunConfiguration:
        """Return a copy with non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RunConfiguration:
        """Build configuration from environment variables.

        Blank or whitespace-only values count as unset. Tests should
        construct RunConfiguration directly.
        """
        if env is None:
            env = dict(os.environ)

        def _get(key: str, default: str) -> str:
            value = env.get(key, '').strip()
            return value or default

        defaults = cls()
        workdir_raw = env.get('BOOTSTRAP_WORKDIR', '').strip()

        return cls(
            network_name=_get('TRAEFIK_NETWORK', defaults.network_name),
            traefik_version=_get('TRAEFIK_VERSION', defaults.traefik_version),
            dashboard_port=_get('TRAEFIK_DASHBOARD_PORT', defaults.dashboard_port),
            acme_email=_get('TRAEFIK_ACME_EMAIL', defaults.acme_email),
            workdir=Path(workdir_raw) if workdir_raw else defaults.workdir,
            admin_url=_get('KONG_ADMIN_URL', defaults.admin_url).rstrip('/'),
            proxy_url=_get('KONG_PROXY_URL', defaults.proxy_url).rstrip('/'),
            log_level=_get('LOG_LEVEL', defaults.log_level).upper(),
            log_format=_get('LOG_FORMAT', defaults.log_format).lower(),
        )
