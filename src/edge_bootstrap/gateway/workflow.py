"""Gateway provisioning workflow declared as pipeline steps.

Order:
  create-service -> create-route -> proxy-check -> rate-limit-plugin
  -> list-services

Route and plugin creation address the service by the id returned from
create-service. When that id is unavailable (the service already existed,
or its creation failed) they fall back to the service name, which the admin
API accepts in the same position.
"""

from __future__ import annotations

import time
from typing import Callable

from ..pipeline.steps import PipelineContext, Step, StepResult
from ..pipeline.verification import VerificationReport, run_rate_limit_probe
from ..settings import GatewayWorkload
from .client import GatewayClient
from .resources import Route, Service, rate_limiting_plugin

CREATE_SERVICE = 'create-service'
CREATE_ROUTE = 'create-route'
PROXY_CHECK = 'proxy-check'
RATE_LIMIT_PLUGIN = 'rate-limit-plugin'
LIST_SERVICES = 'list-services'


def _service_ref(context: PipelineContext, workload: GatewayWorkload) -> str:
    return context.identifier_for(CREATE_SERVICE) or workload.service_name


def build_gateway_steps(
    client: GatewayClient,
    workload: GatewayWorkload,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> list[Step]:
    """Declare the provisioning steps for ``workload``.

    ``sleep`` provides the route settle pause before the proxy check.
    """
    service = Service(name=workload.service_name, url=workload.upstream_url)
    route = Route(
        name=workload.route_name,
        paths=workload.route_paths,
        methods=workload.route_methods,
    )
    plugin = rate_limiting_plugin(workload.rate_limit_per_minute)

    def create_service(context: PipelineContext) -> StepResult:
        return StepResult.success(CREATE_SERVICE, client.create_service(service))

    def create_route(context: PipelineContext) -> StepResult:
        ref = _service_ref(context, workload)
        return StepResult.success(CREATE_ROUTE, client.create_route(ref, route), service_ref=ref)

    def proxy_check(context: PipelineContext) -> StepResult:
        if workload.route_settle_seconds > 0:
            sleep(workload.route_settle_seconds)
        response = client.proxy_request(workload.probe_path)
        if response.status_code != 200:
            return StepResult.soft_failure(
                PROXY_CHECK,
                f'proxy request failed with status: {response.status_code}',
                status_code=response.status_code,
            )
        return StepResult.success(
            PROXY_CHECK,
            status_code=response.status_code,
            excerpt=response.excerpt,
        )

    def add_rate_limit(context: PipelineContext) -> StepResult:
        ref = _service_ref(context, workload)
        return StepResult.success(
            RATE_LIMIT_PLUGIN,
            client.create_plugin(ref, plugin),
            service_ref=ref,
        )

    def list_services(context: PipelineContext) -> StepResult:
        services = client.list_services()
        return StepResult.success(
            LIST_SERVICES,
            services=tuple(
                {'name': s.get('name'), 'host': s.get('host')} for s in services
            ),
        )

    return [
        Step(CREATE_SERVICE, create_service, description='Creating a service'),
        Step(
            CREATE_ROUTE,
            create_route,
            depends_on=frozenset({CREATE_SERVICE}),
            description='Creating a route for the service',
        ),
        Step(
            PROXY_CHECK,
            proxy_check,
            depends_on=frozenset({CREATE_ROUTE}),
            description='Testing the route through the gateway',
        ),
        Step(
            RATE_LIMIT_PLUGIN,
            add_rate_limit,
            depends_on=frozenset({CREATE_SERVICE}),
            description='Adding rate limiting plugin',
        ),
        Step(LIST_SERVICES, list_services, description='Listing all services'),
    ]


def build_rate_limit_probe(
    client: GatewayClient,
    workload: GatewayWorkload,
    *,
    sleep: Callable[[float], None],
) -> Callable[[PipelineContext], VerificationReport]:
    """Verification callable probing the rate limit through the proxy."""

    def verify(context: PipelineContext) -> VerificationReport:
        return run_rate_limit_probe(
            client,
            workload.probe_path,
            attempts=workload.probe_count,
            limit=workload.rate_limit_per_minute,
            interval_seconds=workload.probe_interval_seconds,
            sleep=sleep,
        )

    return verify
