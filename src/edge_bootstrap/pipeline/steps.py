"""Ordered step pipeline with soft-failure isolation.

Steps run in the order they are declared; there is no dependency-graph
scheduling. ``depends_on`` is checked up front only to catch declarations
where a step names a dependency that does not run before it.

At each step boundary the pipeline:
  1. Notifies the reporter that the step started.
  2. Runs the action against the shared PipelineContext.
  3. Converts any non-hard exception into a soft-failure StepResult.
  4. Records the result and notifies the reporter.

HardFailure exceptions are not caught, and a step returning a hard-failure
result is turned into one; either aborts the run.

After the last step an optional verification callable runs once, after a
settle delay. Its errors are recorded on the report and never change ``ok``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence

from ..errors import HardFailure
from .verification import VerificationReport

logger = logging.getLogger(__name__)

UNKNOWN_ID = '<unknown-id>'
"""Identifier marker for resources that exist but whose id was not returned."""


class StepOutcome(str, Enum):
    """Outcome of a single pipeline step."""

    SUCCESS = 'success'
    SOFT_FAILURE = 'soft_failure'
    HARD_FAILURE = 'hard_failure'


@dataclass(frozen=True, slots=True)
class StepResult:
    """Result produced by exactly one step."""

    step_name: str
    outcome: StepOutcome
    identifier: str | None = None
    reason: str | None = None
    detail: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def ok(self) -> bool:
        return self.outcome == StepOutcome.SUCCESS

    @classmethod
    def success(
        cls,
        step_name: str,
        identifier: str | None = None,
        **detail: Any,
    ) -> StepResult:
        return cls(step_name, StepOutcome.SUCCESS, identifier, None, MappingProxyType(detail))

    @classmethod
    def soft_failure(cls, step_name: str, reason: str, **detail: Any) -> StepResult:
        return cls(step_name, StepOutcome.SOFT_FAILURE, None, reason, MappingProxyType(detail))

    @classmethod
    def hard_failure(cls, step_name: str, reason: str) -> StepResult:
        return cls(step_name, StepOutcome.HARD_FAILURE, None, reason)


class PipelineContext:
    """Append-only record of step results, keyed by step name."""

    def __init__(self) -> None:
        self._results: dict[str, StepResult] = {}

    def record(self, result: StepResult) -> None:
        if result.step_name in self._results:
            raise ValueError(f'step {result.step_name!r} already recorded')
        self._results[result.step_name] = result

    def get(self, step_name: str) -> StepResult | None:
        return self._results.get(step_name)

    def identifier_for(self, step_name: str) -> str | None:
        """Return a usable identifier from a successful step, else None."""
        result = self._results.get(step_name)
        if result is None or not result.ok:
            return None
        if result.identifier in (None, UNKNOWN_ID):
            return None
        return result.identifier

    def results(self) -> tuple[StepResult, ...]:
        return tuple(self._results.values())

    def __contains__(self, step_name: object) -> bool:
        return step_name in self._results

    def __iter__(self) -> Iterator[StepResult]:
        return iter(self._results.values())

    def __len__(self) -> int:
        return len(self._results)


StepAction = Callable[[PipelineContext], StepResult]


@dataclass(frozen=True, slots=True)
class Step:
    """One declared pipeline step."""

    name: str
    action: StepAction
    depends_on: frozenset[str] = frozenset()
    description: str = ''


@dataclass(frozen=True, slots=True)
class PipelineReport:
    """Aggregate result of a pipeline run."""

    results: tuple[StepResult, ...]
    verification: VerificationReport | None = None

    @property
    def ok(self) -> bool:
        """True unless a step hard-failed. Soft failures do not count."""
        return all(r.outcome != StepOutcome.HARD_FAILURE for r in self.results)

    @property
    def soft_failures(self) -> tuple[StepResult, ...]:
        return tuple(r for r in self.results if r.outcome == StepOutcome.SOFT_FAILURE)

    def result_for(self, step_name: str) -> StepResult | None:
        return next((r for r in self.results if r.step_name == step_name), None)

    def summary(self) -> dict[str, Any]:
        """Return a JSON-serializable summary."""
        return {
            'ok': self.ok,
            'steps': [
                {
                    'step': r.step_name,
                    'outcome': r.outcome.value,
                    'identifier': r.identifier,
                    'reason': r.reason,
                }
                for r in self.results
            ],
            'verification': self.verification.summary() if self.verification else None,
        }


class PipelineReporter(Protocol):
    """Receives progress notifications in declared step order."""

    def step_started(self, step: Step) -> None: ...

    def step_finished(self, result: StepResult) -> None: ...

    def verification_finished(self, report: VerificationReport) -> None: ...


class StepPipeline:
    """Run steps sequentially, isolating recoverable failures.

    Args:
        reporter: Optional progress sink.
        sleep: Delay function (injectable for tests).
    """

    def __init__(
        self,
        *,
        reporter: PipelineReporter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._reporter = reporter
        self._sleep = sleep

    def run(
        self,
        steps: Sequence[Step],
        *,
        verify: Callable[[PipelineContext], VerificationReport] | None = None,
        settle_seconds: float = 0.0,
    ) -> PipelineReport:
        """Execute ``steps`` in order, then the optional verification phase.

        Raises:
            ValueError: A step depends on a step not declared before it.
            HardFailure: Propagated unchanged from any action, or raised for
                a step that returns a hard-failure result. Later steps and
                verification do not run.
        """
        validate_step_order(steps)
        context = PipelineContext()

        for step in steps:
            if self._reporter is not None:
                self._reporter.step_started(step)
            result = self._run_step(step, context)
            context.record(result)
            if self._reporter is not None:
                self._reporter.step_finished(result)
            if result.outcome == StepOutcome.HARD_FAILURE:
                raise HardFailure(step.name, result.reason or 'step reported a hard failure')

        verification = None
        if verify is not None:
            if settle_seconds > 0:
                self._sleep(settle_seconds)
            verification = _run_verification(verify, context)
            if self._reporter is not None:
                self._reporter.verification_finished(verification)

        return PipelineReport(results=context.results(), verification=verification)

    def _run_step(self, step: Step, context: PipelineContext) -> StepResult:
        try:
            result = step.action(context)
        except HardFailure:
            raise
        except Exception as exc:
            logger.warning(
                'Step %s failed: %s',
                step.name,
                exc,
                extra={'step': step.name, 'error_type': type(exc).__name__},
            )
            return StepResult.soft_failure(step.name, str(exc) or type(exc).__name__)

        if result.step_name != step.name:
            raise ValueError(
                f'step {step.name!r} returned a result for {result.step_name!r}'
            )
        if result.outcome == StepOutcome.SOFT_FAILURE:
            logger.warning(
                'Step %s reported a soft failure: %s',
                step.name,
                result.reason,
                extra={'step': step.name},
            )
        else:
            logger.info(
                'Step %s finished',
                step.name,
                extra={'step': step.name, 'outcome': result.outcome.value},
            )
        return result


def validate_step_order(steps: Sequence[Step]) -> None:
    """Check names are unique and dependencies are declared earlier."""
    seen: set[str] = set()
    for step in steps:
        if step.name in seen:
            raise ValueError(f'duplicate step name: {step.name!r}')
        missing = sorted(step.depends_on - seen)
        if missing:
            raise ValueError(
                f'step {step.name!r} depends on {", ".join(missing)} '
                f'which is not declared before it'
            )
        seen.add(step.name)


def _run_verification(
    verify: Callable[[PipelineContext], VerificationReport],
    context: PipelineContext,
) -> VerificationReport:
    try:
        return verify(context)
    except Exception as exc:
        logger.warning('Verification phase failed: %s', exc, extra={'error_type': type(exc).__name__})
        return VerificationReport(probes=(), limit=None, error=str(exc) or type(exc).__name__)
