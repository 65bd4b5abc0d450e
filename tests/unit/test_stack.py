"""Tests for tooling resolution, stack declarations, and generated files."""

from __future__ import annotations

from pathlib import Path

import pytest

from edge_bootstrap.convergence.commands import RecordingCommandRunner
from edge_bootstrap.convergence.filesystem import LocalFilesystem
from edge_bootstrap.convergence.resources import ResourceKind
from edge_bootstrap.convergence.stack import (
    Tooling,
    compose_up,
    resolve_tooling,
    stack_resources,
)
from edge_bootstrap.convergence.templates import render_compose, render_gateway_config
from edge_bootstrap.errors import MissingToolError
from edge_bootstrap.settings import ACME_EMAIL_PLACEHOLDER, RunConfiguration


class TestResolveTooling:

    def test_prefers_compose_plugin(self):
        runner = RecordingCommandRunner(
            available={'docker', 'docker-compose'},
            succeeding={('docker', 'compose', 'version')},
        )
        tooling = resolve_tooling(runner)
        assert tooling == Tooling(docker='/usr/bin/docker', compose=('docker', 'compose'))
        assert ('which', ('docker-compose',)) not in runner.calls

    def test_falls_back_to_standalone_binary(self):
        runner = RecordingCommandRunner(available={'docker', 'docker-compose'})
        assert resolve_tooling(runner).compose == ('docker-compose',)

    def test_missing_docker(self):
        runner = RecordingCommandRunner(available=set())
        with pytest.raises(MissingToolError, match='Docker is required'):
            resolve_tooling(runner)
        assert runner.calls == [('which', ('docker',))]

    def test_missing_compose(self):
        runner = RecordingCommandRunner(available={'docker'})
        with pytest.raises(MissingToolError, match='Docker Compose is required'):
            resolve_tooling(runner)

    def test_resolution_never_mutates(self):
        runner = RecordingCommandRunner(available={'docker', 'docker-compose'})
        resolve_tooling(runner)
        assert runner.runs() == []


class TestStackResources:

    def test_declared_order(self, config: RunConfiguration, commands):
        specs = stack_resources(
            config, filesystem=LocalFilesystem(config.workdir), commands=commands,
        )
        assert [(s.kind, s.name) for s in specs] == [
            (ResourceKind.NETWORK, 'traefik-network'),
            (ResourceKind.CONFIG_FILE, 'traefik.yml'),
            (ResourceKind.STACK_FILE, 'docker-compose.yml'),
            (ResourceKind.SECRET_FILE, 'acme.json'),
        ]

    def test_acme_storage_starts_empty(self, config: RunConfiguration, commands):
        specs = stack_resources(
            config, filesystem=LocalFilesystem(config.workdir), commands=commands,
        )
        assert specs[-1].content() == ''


def test_compose_up_runs_in_workdir(workdir: Path):
    runner = RecordingCommandRunner()
    compose_up(runner, Tooling(docker='/usr/bin/docker', compose=('docker', 'compose')), workdir)
    assert runner.runs() == [('docker', 'compose', 'up', '-d')]


class TestTemplates:

    def test_gateway_config_has_placeholder_email(self):
        rendered = render_gateway_config(RunConfiguration(acme_email='ops@example.org'))
        assert f'email: {ACME_EMAIL_PLACEHOLDER}' in rendered
        assert 'ops@example.org' not in rendered
        assert 'storage: /acme.json' in rendered
        assert 'network: traefik-network' in rendered

    def test_compose_uses_configuration(self):
        rendered = render_compose(RunConfiguration(
            network_name='edge', traefik_version='v3.1', dashboard_port='9090',
        ))
        assert 'image: traefik:v3.1' in rendered
        assert '"9090:8080"' in rendered
        assert '  edge:\n    external: true' in rendered
        assert './acme.json:/acme.json' in rendered
