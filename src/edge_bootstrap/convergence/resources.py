"""Check-before-create convergence of local and container resources.

Every resource is described by a ResourceSpec carrying its own existence
predicate. ``ensure`` evaluates that predicate on every call and creates the
resource only when it is absent. Existing resources are never diffed or
regenerated, so operator edits to generated files survive re-runs.

Check-then-create is not atomic against the external system. Callers that
ensure resources concurrently must hold a per-resource lock around ``ensure``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from ..errors import ProvisioningError
from .commands import CommandRunner
from .filesystem import LocalFilesystem

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Kinds of resource the convergence layer knows how to create."""

    NETWORK = 'network'
    CONFIG_FILE = 'config_file'
    SECRET_FILE = 'secret_file'
    STACK_FILE = 'stack_file'

    @property
    def is_file(self) -> bool:
        return self is not ResourceKind.NETWORK


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    """Declared resource.

    Attributes:
        kind: Resource kind; selects the create mechanism.
        name: Network name, or file path relative to the working directory.
        exists: Fresh existence check, evaluated on every ``ensure``.
        content: Produces file content on creation. Unused for networks.
    """

    kind: ResourceKind
    name: str
    exists: Callable[[], bool]
    content: Callable[[], str] | None = None


@dataclass(frozen=True, slots=True)
class ConvergenceOutcome:
    """What ``ensure`` did for one resource."""

    name: str
    kind: ResourceKind
    created: bool


# ── Resource factories ───────────────────────────────────────────────


def network_resource(name: str, commands: CommandRunner) -> ResourceSpec:
    """Docker network, present when ``docker network inspect`` succeeds."""
    return ResourceSpec(
        kind=ResourceKind.NETWORK,
        name=name,
        exists=lambda: commands.succeeds(['docker', 'network', 'inspect', name]),
    )


def file_resource(
    kind: ResourceKind,
    path: str,
    filesystem: LocalFilesystem,
    content: Callable[[], str],
) -> ResourceSpec:
    """File-backed resource, present when the path is a regular file."""
    if not kind.is_file:
        raise ValueError(f'{kind.value} is not a file resource')
    return ResourceSpec(
        kind=kind,
        name=path,
        exists=lambda: filesystem.is_file(path),
        content=content,
    )


# ── Convergence ──────────────────────────────────────────────────────


class ResourceConvergence:
    """Ensure declared resources exist, creating only the missing ones."""

    def __init__(self, *, filesystem: LocalFilesystem, commands: CommandRunner) -> None:
        self._fs = filesystem
        self._commands = commands

    def ensure(self, spec: ResourceSpec) -> bool:
        """Create ``spec`` if absent.

        Returns True when the resource was created by this call.

        Raises:
            ProvisioningError: Creation was attempted and failed.
        """
        if spec.exists():
            logger.debug(
                'Resource already present: %s',
                spec.name,
                extra={'resource': spec.name, 'kind': spec.kind.value},
            )
            return False

        if spec.kind is ResourceKind.NETWORK:
            self._commands.run(['docker', 'network', 'create', spec.name])
        else:
            if spec.content is None:
                raise ProvisioningError(f'no content producer for {spec.name}')
            content = spec.content()
            if spec.kind is ResourceKind.SECRET_FILE:
                self._fs.create_private(spec.name, content)
            else:
                self._fs.write_text(spec.name, content)

        logger.info(
            'Resource created: %s',
            spec.name,
            extra={'resource': spec.name, 'kind': spec.kind.value},
        )
        return True

    def ensure_all(
        self,
        specs: Iterable[ResourceSpec],
        *,
        on_outcome: Callable[[ConvergenceOutcome], None] | None = None,
    ) -> list[ConvergenceOutcome]:
        """Ensure each spec in declared order.

        ``on_outcome`` is called after each resource, before the next one is
        checked.
        """
        outcomes: list[ConvergenceOutcome] = []
        for spec in specs:
            outcome = ConvergenceOutcome(name=spec.name, kind=spec.kind, created=self.ensure(spec))
            if on_outcome is not None:
                on_outcome(outcome)
            outcomes.append(outcome)
        return outcomes


def inject_placeholder(
    filesystem: LocalFilesystem,
    path: str,
    placeholder: str,
    value: str,
) -> bool:
    """Replace ``placeholder`` with ``value`` inside a generated file.

    Silent no-op (returns False) when the file is missing, the placeholder
    has been edited away, or the value is the placeholder itself.
    """
    if value == placeholder:
        return False
    content = filesystem.read_text(path)
    if content is None or placeholder not in content:
        logger.debug('No placeholder to inject in %s', path, extra={'path': path})
        return False
    filesystem.write_text(path, content.replace(placeholder, value))
    logger.info('Injected operator value into %s', path, extra={'path': path})
    return True
