"""Top-level bootstrap runner.

Drives one run through its phases:
  stack:   preflight tooling -> ensure resources -> inject contact -> compose up
  gateway: preflight status -> provisioning pipeline -> rate-limit probe

Hard failures raised by any preflight or stack step propagate to the caller
(the CLI turns them into exit code 1). Nothing here reads the environment;
everything comes from the RunConfiguration passed in.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .convergence.commands import CommandRunner
from .convergence.filesystem import LocalFilesystem
from .convergence.resources import ConvergenceOutcome, ResourceConvergence, inject_placeholder
from .convergence.stack import Tooling, compose_up, resolve_tooling, stack_resources
from .convergence.templates import GATEWAY_CONFIG_FILE
from .errors import GatewayUnreachableError, StepError
from .gateway.client import GatewayClient, GatewayStatus
from .gateway.workflow import build_gateway_steps, build_rate_limit_probe
from .pipeline.steps import PipelineReport, StepPipeline
from .reporting import ConsoleReporter
from .settings import ACME_EMAIL_PLACEHOLDER, RunConfiguration

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[RunConfiguration], GatewayClient]


class RunMode(str, Enum):
    """Which phases a run executes."""

    STACK = 'stack'
    GATEWAY = 'gateway'
    ALL = 'all'

    @property
    def includes_stack(self) -> bool:
        return self in (RunMode.STACK, RunMode.ALL)

    @property
    def includes_gateway(self) -> bool:
        return self in (RunMode.GATEWAY, RunMode.ALL)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Outcome of a completed (non-aborted) run."""

    resources: tuple[ConvergenceOutcome, ...] = ()
    pipeline: PipelineReport | None = None

    @property
    def exit_code(self) -> int:
        if self.pipeline is not None and not self.pipeline.ok:
            return 1
        return 0


def default_gateway_factory(config: RunConfiguration) -> GatewayClient:
    return GatewayClient(
        config.admin_url,
        config.proxy_url,
        timeout_seconds=config.request_timeout_seconds,
    )


class ConvergenceRunner:
    """Compose resource convergence and the gateway pipeline for one run.

    Args:
        config: Run configuration.
        commands: External command runner.
        filesystem: Filesystem rooted at the working directory. Defaults to
            ``config.workdir``.
        gateway_factory: Builds the gateway client (test injection point).
        reporter: Progress output sink.
        sleep: Delay function for the settle and probe pauses.
    """

    def __init__(
        self,
        config: RunConfiguration,
        *,
        commands: CommandRunner,
        filesystem: LocalFilesystem | None = None,
        gateway_factory: GatewayFactory = default_gateway_factory,
        reporter: ConsoleReporter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._commands = commands
        self._fs = filesystem or LocalFilesystem(config.workdir)
        self._gateway_factory = gateway_factory
        self._reporter = reporter or ConsoleReporter()
        self._sleep = sleep
        self._convergence = ResourceConvergence(filesystem=self._fs, commands=commands)

    # ── Stack ──────────────────────────────────────────────────────

    def preflight_stack(self) -> Tooling:
        """Resolve docker and compose before anything is touched."""
        return resolve_tooling(self._commands)

    def converge_stack(self, tooling: Tooling) -> tuple[ConvergenceOutcome, ...]:
        """Ensure stack resources, apply the operator contact, start the stack."""
        outcomes = self._convergence.ensure_all(
            stack_resources(self._config, filesystem=self._fs, commands=self._commands),
            on_outcome=self._reporter.resource_ensured,
        )

        injected = inject_placeholder(
            self._fs,
            GATEWAY_CONFIG_FILE,
            ACME_EMAIL_PLACEHOLDER,
            self._config.acme_email,
        )
        self._reporter.placeholder_injected(GATEWAY_CONFIG_FILE, injected)

        compose_up(self._commands, tooling, self._fs.root)
        self._reporter.stack_started(' '.join(tooling.compose))
        logger.info(
            'Stack converged',
            extra={
                'resources_created': sum(1 for o in outcomes if o.created),
                'resources_checked': len(outcomes),
            },
        )
        return tuple(outcomes)

    # ── Gateway ────────────────────────────────────────────────────

    def preflight_gateway(self, client: GatewayClient) -> GatewayStatus:
        """The admin API must answer before any provisioning step runs."""
        try:
            status = client.get_status()
        except StepError as exc:
            raise GatewayUnreachableError(
                f'gateway is not running at {self._config.admin_url}', str(exc),
            ) from exc
        self._reporter.gateway_status(status)
        return status

    def provision_gateway(self, client: GatewayClient) -> PipelineReport:
        workload = self._config.workload
        pipeline = StepPipeline(reporter=self._reporter, sleep=self._sleep)
        return pipeline.run(
            build_gateway_steps(client, workload, sleep=self._sleep),
            verify=build_rate_limit_probe(client, workload, sleep=self._sleep),
            settle_seconds=workload.settle_seconds,
        )

    # ── Run ────────────────────────────────────────────────────────

    def run(self, mode: RunMode = RunMode.ALL) -> RunSummary:
        """Execute the phases selected by ``mode``.

        Raises:
            HardFailure: A preflight or stack step failed; the run aborted.
        """
        resources: tuple[ConvergenceOutcome, ...] = ()
        pipeline: PipelineReport | None = None

        if mode.includes_stack:
            tooling = self.preflight_stack()
            resources = self.converge_stack(tooling)

        if mode.includes_gateway:
            with self._gateway_factory(self._config) as client:
                self.preflight_gateway(client)
                pipeline = self.provision_gateway(client)

        summary = RunSummary(resources=resources, pipeline=pipeline)
        self._reporter.summary(summary, self._config)
        return summary
