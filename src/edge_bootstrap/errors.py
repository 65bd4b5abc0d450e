"""Error hierarchy for edge bootstrap runs.

Two families matter to callers:

``HardFailure``
    A precondition or setup failure. Aborts the whole run with exit code 1.
    Raised from preflight and stack convergence. Inside the pipeline only a
    step that returns a hard-failure result produces one.

``StepError``
    A recoverable failure inside one pipeline step. The pipeline converts it
    into a soft-failure StepResult and keeps going.

These stay dependency-free so they can be raised without leaking
httpx.Response objects.
"""

from __future__ import annotations

from typing import Sequence


class BootstrapError(Exception):
    """Base class for every error raised by edge_bootstrap."""


# ── Hard failures ────────────────────────────────────────────────────


class HardFailure(BootstrapError):
    """Abort the run.

    Attributes:
        operation: What was being attempted (a command line, a file path).
        cause: Underlying reason, human-readable.
    """

    def __init__(self, operation: str, cause: str = '') -> None:
        self.operation = operation
        self.cause = cause
        message = f'{operation}: {cause}' if cause else operation
        super().__init__(message)


class MissingToolError(HardFailure):
    """A required external binary is not installed."""


class ConfigurationError(HardFailure):
    """RunConfiguration failed validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__('invalid configuration', '; '.join(self.errors))


class ProvisioningError(HardFailure):
    """Creating a resource was attempted and failed."""


class CommandFailedError(ProvisioningError):
    """An external command exited non-zero."""

    def __init__(self, argv: Sequence[str], return_code: int) -> None:
        self.argv = tuple(argv)
        self.return_code = return_code
        super().__init__(
            f'command failed: {" ".join(self.argv)}',
            f'exit status {return_code}',
        )


class GatewayUnreachableError(HardFailure):
    """The gateway admin API did not answer its status probe."""


# ── Step failures ────────────────────────────────────────────────────


class StepError(BootstrapError):
    """Recoverable failure of a single pipeline step."""


class GatewayRequestError(StepError):
    """Gateway answered with an unexpected status code.

    Attributes:
        status_code: HTTP status code returned by the gateway.
        body: Raw response body (may be long; str() truncates it).
    """

    def __init__(self, status_code: int, body: str = '', *, operation: str = '') -> None:
        self.status_code = status_code
        self.body = body
        self.operation = operation
        detail = body[:200] if body else f'HTTP {status_code}'
        prefix = f'{operation} failed' if operation else 'gateway request failed'
        super().__init__(f'{prefix} (status: {status_code}): {detail}')


class GatewayUnavailableError(StepError):
    """Transport-level failure talking to the gateway (refused, timeout)."""
