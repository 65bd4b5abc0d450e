"""ConsoleReporter line formats."""

from __future__ import annotations

import io

from edge_bootstrap.convergence.resources import ConvergenceOutcome, ResourceKind
from edge_bootstrap.errors import CommandFailedError
from edge_bootstrap.pipeline.steps import UNKNOWN_ID, PipelineReport, Step, StepResult
from edge_bootstrap.pipeline.verification import ProbeResult, VerificationReport
from edge_bootstrap.reporting import ConsoleReporter
from edge_bootstrap.runner import RunSummary
from edge_bootstrap.settings import RunConfiguration


def _make_reporter() -> tuple[ConsoleReporter, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    return ConsoleReporter(out, err_stream=err), out, err


def test_resource_lines():
    reporter, out, _ = _make_reporter()
    reporter.resource_ensured(ConvergenceOutcome('net1', ResourceKind.NETWORK, True))
    reporter.resource_ensured(ConvergenceOutcome('acme.json', ResourceKind.SECRET_FILE, False))
    assert out.getvalue().splitlines() == [
        '✔ network net1: created',
        '✔ secret_file acme.json: already present',
    ]


def test_steps_are_numbered():
    reporter, out, _ = _make_reporter()
    reporter.step_started(Step('a', lambda ctx: None, description='Creating a service'))
    reporter.step_started(Step('b', lambda ctx: None))
    assert 'Step 1: Creating a service...' in out.getvalue()
    assert 'Step 2: b...' in out.getvalue()


def test_step_outcomes():
    reporter, out, _ = _make_reporter()
    reporter.step_finished(StepResult.success('create-service', 'svc-1'))
    reporter.step_finished(StepResult.success('create-route', UNKNOWN_ID))
    reporter.step_finished(StepResult.soft_failure('proxy-check', 'status: 404'))
    reporter.step_finished(StepResult.success(
        'list-services', services=({'name': 'example-service', 'host': 'httpbin.org'},),
    ))
    assert out.getvalue().splitlines() == [
        '✔ create-service (id: svc-1)',
        '✔ create-route (already exists, id unknown)',
        '⚠  Warning: proxy-check: status: 404',
        '✔ list-services',
        '   - Name: example-service, Host: httpbin.org',
    ]


def test_verification_lines():
    reporter, out, _ = _make_reporter()
    reporter.verification_finished(VerificationReport(
        probes=(ProbeResult(1, 200, '4'), ProbeResult(2, 429, '0'), ProbeResult(3, None, error='refused')),
        limit=5,
    ))
    lines = out.getvalue().splitlines()
    assert 'Verification: 3 probes (limit 5/minute)' in lines
    assert '   Request 1: Status 200 | Remaining: 4 ✔' in lines
    assert '   Request 2: Status 429 | Remaining: 0 ✘ Rate limit exceeded!' in lines
    assert '   Request 3 failed: refused' in lines


def test_summary_with_next_steps():
    reporter, out, _ = _make_reporter()
    summary = RunSummary(
        resources=(ConvergenceOutcome('net1', ResourceKind.NETWORK, True),),
        pipeline=PipelineReport(results=(StepResult.success('a'), StepResult.soft_failure('b', 'x'))),
    )
    reporter.summary(summary, RunConfiguration())
    text = out.getvalue()
    assert 'Resources: 1 checked, 1 created' in text
    assert 'Steps: 2 | Success: 1 | Warnings: 1' in text
    assert '✔ Bootstrap finished' in text
    assert 'Dashboard: http://localhost:8080' in text
    assert 'Proxied requests: http://localhost:8000/httpbin/get' in text


def test_hard_failure_goes_to_stderr():
    reporter, out, err = _make_reporter()
    reporter.hard_failure(CommandFailedError(['docker', 'compose', 'up', '-d'], 1))
    assert out.getvalue() == ''
    assert err.getvalue() == 'error: command failed: docker compose up -d: exit status 1\n'
