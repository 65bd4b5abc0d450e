"""Post-provisioning verification: repeated probes through the proxy path.

The probe sends a fixed number of requests with a small pause between them
and records each status code plus the remaining-quota header, so an operator
can see whether a throttling policy took effect.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from ..errors import StepError

logger = logging.getLogger(__name__)

RATE_LIMITED_STATUS = 429


class ProbeResponse(Protocol):
    status_code: int
    rate_limit_remaining: str | None


class ProbeTarget(Protocol):
    """Anything that can send a request through the traffic path."""

    def proxy_request(self, path: str) -> ProbeResponse: ...


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """One verification request."""

    attempt: int
    status_code: int | None
    rate_limit_remaining: str | None = None
    error: str | None = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED_STATUS


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Outcome of the verification phase.

    ``limit`` is the configured requests-per-window the probe was checking,
    or None when the phase did not run.
    """

    probes: tuple[ProbeResult, ...]
    limit: int | None
    error: str | None = None

    @property
    def exceeded_count(self) -> int:
        return sum(1 for p in self.probes if p.rate_limited)

    @property
    def rate_limited(self) -> bool:
        """True when at least one probe was throttled."""
        return self.exceeded_count > 0

    def summary(self) -> dict[str, Any]:
        return {
            'probes': len(self.probes),
            'limit': self.limit,
            'rate_limited': self.rate_limited,
            'exceeded': self.exceeded_count,
            'error': self.error,
        }


def run_rate_limit_probe(
    target: ProbeTarget,
    path: str,
    *,
    attempts: int,
    limit: int | None = None,
    interval_seconds: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> VerificationReport:
    """Send ``attempts`` sequential requests to ``path``.

    Transport failures are recorded on the individual probe; the remaining
    probes still run.
    """
    probes: list[ProbeResult] = []
    for attempt in range(1, attempts + 1):
        if attempt > 1 and interval_seconds > 0:
            sleep(interval_seconds)
        try:
            response = target.proxy_request(path)
        except StepError as exc:
            logger.warning('Probe %d failed: %s', attempt, exc, extra={'attempt': attempt})
            probes.append(ProbeResult(attempt=attempt, status_code=None, error=str(exc)))
            continue
        probes.append(
            ProbeResult(
                attempt=attempt,
                status_code=response.status_code,
                rate_limit_remaining=response.rate_limit_remaining,
            )
        )

    report = VerificationReport(probes=tuple(probes), limit=limit)
    logger.info('Verification finished', extra=report.summary())
    return report
