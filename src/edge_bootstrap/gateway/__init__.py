"""Gateway admin API client and the provisioning workflow built on it."""

from .client import GatewayClient, GatewayStatus, ProxyResponse
from .resources import GatewayResource, Plugin, Route, Service, rate_limiting_plugin
from .workflow import build_gateway_steps, build_rate_limit_probe

__all__ = [
    'GatewayClient',
    'GatewayResource',
    'GatewayStatus',
    'Plugin',
    'ProxyResponse',
    'Route',
    'Service',
    'build_gateway_steps',
    'build_rate_limit_probe',
    'rate_limiting_plugin',
]
