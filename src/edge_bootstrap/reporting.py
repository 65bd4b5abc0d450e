"""Human-readable progress output.

Lines go to stdout (or an injected stream); structured logs go to stderr via
the logging configuration.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from .convergence.resources import ConvergenceOutcome
from .errors import HardFailure
from .gateway.client import GatewayStatus
from .pipeline.steps import UNKNOWN_ID, Step, StepOutcome, StepResult
from .pipeline.verification import VerificationReport
from .settings import RunConfiguration

if TYPE_CHECKING:
    from .runner import RunSummary

OK = '✔'
WARN = '⚠'
FAIL = '✘'


class ConsoleReporter:
    """Print one status line per resource, step and probe."""

    def __init__(self, stream: TextIO | None = None, *, err_stream: TextIO | None = None) -> None:
        self._out = stream or sys.stdout
        self._err = err_stream or sys.stderr
        self._step_number = 0

    def _print(self, line: str = '') -> None:
        print(line, file=self._out)

    # ── Stack phase ────────────────────────────────────────────────

    def resource_ensured(self, outcome: ConvergenceOutcome) -> None:
        state = 'created' if outcome.created else 'already present'
        self._print(f'{OK} {outcome.kind.value} {outcome.name}: {state}')

    def placeholder_injected(self, path: str, injected: bool) -> None:
        if injected:
            self._print(f'{OK} {path}: operator contact applied')

    def stack_started(self, command: str) -> None:
        self._print(f'{OK} stack started ({command})')

    # ── Gateway phase ──────────────────────────────────────────────

    def gateway_status(self, status: GatewayStatus) -> None:
        self._print(f'{OK} Gateway is running')
        self._print(f'   Database: {status.database}')
        self._print(f'   Server: {status.server}')

    def step_started(self, step: Step) -> None:
        self._step_number += 1
        label = step.description or step.name
        self._print(f'\nStep {self._step_number}: {label}...')

    def step_finished(self, result: StepResult) -> None:
        if result.outcome == StepOutcome.SUCCESS:
            line = f'{OK} {result.step_name}'
            if result.identifier == UNKNOWN_ID:
                line += ' (already exists, id unknown)'
            elif result.identifier:
                line += f' (id: {result.identifier})'
            self._print(line)
            for service in result.detail.get('services', ()):
                self._print(f'   - Name: {service["name"]}, Host: {service["host"]}')
            if 'excerpt' in result.detail:
                self._print(f'   Response preview: {result.detail["excerpt"]}...')
        elif result.outcome == StepOutcome.SOFT_FAILURE:
            self._print(f'{WARN}  Warning: {result.step_name}: {result.reason}')
        else:
            self._print(f'{FAIL} {result.step_name}: {result.reason}')

    def verification_finished(self, report: VerificationReport) -> None:
        self._print(f'\nVerification: {len(report.probes)} probes (limit {report.limit}/minute)')
        if report.error:
            self._print(f'{WARN}  Warning: verification did not run: {report.error}')
        for probe in report.probes:
            if probe.error:
                self._print(f'   Request {probe.attempt} failed: {probe.error}')
                continue
            line = f'   Request {probe.attempt}: Status {probe.status_code}'
            if probe.rate_limit_remaining is not None:
                line += f' | Remaining: {probe.rate_limit_remaining}'
            line += f' {FAIL} Rate limit exceeded!' if probe.rate_limited else f' {OK}'
            self._print(line)

    # ── Summary ────────────────────────────────────────────────────

    def summary(self, summary: RunSummary, config: RunConfiguration) -> None:
        self._print(f'\n{"=" * 60}')
        created = sum(1 for r in summary.resources if r.created)
        if summary.resources:
            self._print(f'Resources: {len(summary.resources)} checked, {created} created')
        if summary.pipeline is not None:
            report = summary.pipeline
            passed = sum(1 for r in report.results if r.ok)
            self._print(
                f'Steps: {len(report.results)} | Success: {passed} | '
                f'Warnings: {len(report.soft_failures)}'
            )
        icon = OK if summary.exit_code == 0 else FAIL
        self._print(f'{icon} Bootstrap finished')
        self._print('\nNext steps:')
        if summary.resources:
            self._print(f'   - Dashboard: {config.dashboard_url}')
        if summary.pipeline is not None:
            self._print(f'   - Admin API: {config.admin_url}')
            self._print(f'   - Proxied requests: {config.probe_url}')

    def hard_failure(self, error: HardFailure) -> None:
        print(f'error: {error}', file=self._err)
