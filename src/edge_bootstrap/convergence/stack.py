"""Edge stack declarations: tooling, resources, and ``compose up``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..errors import MissingToolError
from ..settings import RunConfiguration
from .commands import CommandRunner
from .filesystem import LocalFilesystem
from .resources import ResourceKind, ResourceSpec, file_resource, network_resource
from .templates import (
    ACME_STORAGE_FILE,
    COMPOSE_FILE,
    GATEWAY_CONFIG_FILE,
    render_compose,
    render_gateway_config,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Tooling:
    """Resolved external binaries."""

    docker: str
    compose: tuple[str, ...]
    """argv prefix for compose, e.g. ``('docker', 'compose')``."""


def resolve_tooling(commands: CommandRunner) -> Tooling:
    """Locate docker and a compose implementation.

    Prefers the ``docker compose`` plugin, falls back to a standalone
    ``docker-compose`` binary.

    Raises:
        MissingToolError: docker or compose is not installed.
    """
    docker = commands.which('docker')
    if docker is None:
        raise MissingToolError('Docker is required but not installed', 'docker not found on PATH')

    if commands.succeeds(['docker', 'compose', 'version']):
        compose: tuple[str, ...] = ('docker', 'compose')
    elif commands.which('docker-compose') is not None:
        compose = ('docker-compose',)
    else:
        raise MissingToolError(
            'Docker Compose is required but not installed',
            'neither `docker compose` nor docker-compose is available',
        )

    logger.debug('Resolved tooling', extra={'docker': docker, 'compose': ' '.join(compose)})
    return Tooling(docker=docker, compose=compose)


def stack_resources(
    config: RunConfiguration,
    *,
    filesystem: LocalFilesystem,
    commands: CommandRunner,
) -> list[ResourceSpec]:
    """Resources the edge stack needs, in creation order."""
    return [
        network_resource(config.network_name, commands),
        file_resource(
            ResourceKind.CONFIG_FILE,
            GATEWAY_CONFIG_FILE,
            filesystem,
            lambda: render_gateway_config(config),
        ),
        file_resource(
            ResourceKind.STACK_FILE,
            COMPOSE_FILE,
            filesystem,
            lambda: render_compose(config),
        ),
        file_resource(
            ResourceKind.SECRET_FILE,
            ACME_STORAGE_FILE,
            filesystem,
            lambda: '',
        ),
    ]


def compose_up(commands: CommandRunner, tooling: Tooling, workdir: Path) -> None:
    """Start (or reconcile) the stack; compose itself is idempotent."""
    commands.run([*tooling.compose, 'up', '-d'], cwd=workdir)
