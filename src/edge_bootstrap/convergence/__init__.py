"""Check-before-create convergence of local files and container resources."""

from .commands import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .filesystem import LocalFilesystem
from .resources import (
    ConvergenceOutcome,
    ResourceConvergence,
    ResourceKind,
    ResourceSpec,
    file_resource,
    inject_placeholder,
    network_resource,
)
from .stack import Tooling, compose_up, resolve_tooling, stack_resources

__all__ = [
    'CommandRunner',
    'ConvergenceOutcome',
    'LocalFilesystem',
    'RecordingCommandRunner',
    'ResourceConvergence',
    'ResourceKind',
    'ResourceSpec',
    'SubprocessCommandRunner',
    'Tooling',
    'compose_up',
    'file_resource',
    'inject_placeholder',
    'network_resource',
    'resolve_tooling',
    'stack_resources',
]
