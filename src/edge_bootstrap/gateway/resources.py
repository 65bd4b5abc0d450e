"""Typed descriptors for gateway admin resources.

Each kind carries its required fields explicitly. Provider-specific options
that have no dedicated field go in ``extra`` and are merged into the JSON
payload (explicit fields win on key clashes).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Mapping


def _frozen(mapping: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


def _payload(extra: Mapping[str, Any], fields: Mapping[str, Any]) -> dict[str, Any]:
    payload = dict(extra)
    payload.update({k: v for k, v in fields.items() if v not in (None, (), '')})
    return payload


@dataclass(frozen=True, slots=True)
class Service:
    """Upstream service registered on the gateway."""

    kind: ClassVar[str] = 'service'

    name: str
    url: str
    protocol: str | None = None
    host: str | None = None
    port: int | None = None
    path: str | None = None
    extra: Mapping[str, Any] = field(default_factory=_frozen)

    def to_payload(self) -> dict[str, Any]:
        return _payload(self.extra, {
            'name': self.name,
            'url': self.url,
            'protocol': self.protocol,
            'host': self.host,
            'port': self.port,
            'path': self.path,
        })


@dataclass(frozen=True, slots=True)
class Route:
    """Request-matching rule attached to a service."""

    kind: ClassVar[str] = 'route'

    name: str
    paths: tuple[str, ...]
    methods: tuple[str, ...] = ()
    protocols: tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=_frozen)

    def to_payload(self) -> dict[str, Any]:
        return _payload(self.extra, {
            'name': self.name,
            'paths': list(self.paths),
            'methods': list(self.methods) or None,
            'protocols': list(self.protocols) or None,
        })


@dataclass(frozen=True, slots=True)
class Plugin:
    """Plugin enabled on a service."""

    kind: ClassVar[str] = 'plugin'

    name: str
    config: Mapping[str, Any] = field(default_factory=_frozen)
    enabled: bool = True
    extra: Mapping[str, Any] = field(default_factory=_frozen)

    def to_payload(self) -> dict[str, Any]:
        payload = _payload(self.extra, {
            'name': self.name,
            'config': dict(self.config) or None,
        })
        payload['enabled'] = self.enabled
        return payload


def rate_limiting_plugin(per_minute: int, *, policy: str = 'local') -> Plugin:
    """Rate-limiting plugin allowing ``per_minute`` requests per client."""
    return Plugin(name='rate-limiting', config=_frozen({'minute': per_minute, 'policy': policy}))


GatewayResource = Service | Route | Plugin
