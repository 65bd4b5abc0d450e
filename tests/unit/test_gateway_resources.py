"""Payload shaping for typed gateway resources."""

from __future__ import annotations

from edge_bootstrap.gateway.resources import Plugin, Route, Service, rate_limiting_plugin


def test_service_payload_drops_unset_fields():
    assert Service(name='svc', url='http://upstream').to_payload() == {
        'name': 'svc',
        'url': 'http://upstream',
    }


def test_service_extra_is_merged_and_explicit_fields_win():
    service = Service(
        name='svc',
        url='http://upstream',
        port=8080,
        extra={'retries': 3, 'name': 'ignored'},
    )
    assert service.to_payload() == {
        'retries': 3,
        'name': 'svc',
        'url': 'http://upstream',
        'port': 8080,
    }


def test_route_payload():
    route = Route(name='r', paths=('/a', '/b'), methods=('GET',))
    assert route.to_payload() == {'name': 'r', 'paths': ['/a', '/b'], 'methods': ['GET']}


def test_route_without_methods_omits_key():
    assert 'methods' not in Route(name='r', paths=('/a',)).to_payload()


def test_plugin_payload_always_carries_enabled():
    assert Plugin(name='cors', enabled=False).to_payload() == {'name': 'cors', 'enabled': False}


def test_rate_limiting_plugin():
    plugin = rate_limiting_plugin(5)
    assert plugin.kind == 'plugin'
    assert plugin.to_payload() == {
        'name': 'rate-limiting',
        'config': {'minute': 5, 'policy': 'local'},
        'enabled': True,
    }


def test_kinds():
    assert Service.kind == 'service'
    assert Route.kind == 'route'
