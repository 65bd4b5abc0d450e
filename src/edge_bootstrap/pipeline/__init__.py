"""Ordered provisioning pipeline and its verification phase."""

from .steps import (
    UNKNOWN_ID,
    PipelineContext,
    PipelineReport,
    PipelineReporter,
    Step,
    StepOutcome,
    StepPipeline,
    StepResult,
    validate_step_order,
)
from .verification import ProbeResult, VerificationReport, run_rate_limit_probe

__all__ = [
    'PipelineContext',
    'PipelineReport',
    'PipelineReporter',
    'ProbeResult',
    'Step',
    'StepOutcome',
    'StepPipeline',
    'StepResult',
    'UNKNOWN_ID',
    'VerificationReport',
    'run_rate_limit_probe',
    'validate_step_order',
]
