"""Command-line entry point.

Usage::

    # Stack resources, compose up, then gateway provisioning and probe:
    edge-bootstrap

    # Only the compose stack, in a specific directory:
    edge-bootstrap stack --workdir ./Traefik

    # Only the gateway workflow, against a remote admin API:
    edge-bootstrap gateway --admin-url http://kong:8001 --proxy-url http://kong:8000

Environment variables (TRAEFIK_NETWORK, TRAEFIK_VERSION, TRAEFIK_DASHBOARD_PORT,
TRAEFIK_ACME_EMAIL, KONG_ADMIN_URL, KONG_PROXY_URL, BOOTSTRAP_WORKDIR,
LOG_LEVEL, LOG_FORMAT) provide defaults; flags override them.

Exit codes:
  0 = run completed (warnings allowed)
  1 = hard failure (missing tooling, unwritable file, failed command,
      unreachable gateway, invalid configuration)
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Mapping, Sequence

from .convergence.commands import CommandRunner, SubprocessCommandRunner
from .errors import ConfigurationError, HardFailure
from .observability.logging import configure_logging, get_logger
from .reporting import ConsoleReporter
from .runner import ConvergenceRunner, RunMode
from .settings import RunConfiguration


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='edge-bootstrap',
        description='Converge the edge stack and provision the gateway.',
    )
    parser.add_argument(
        'mode',
        nargs='?',
        choices=[m.value for m in RunMode],
        default=RunMode.ALL.value,
        help='Phases to run (default: all)',
    )
    parser.add_argument('--workdir', type=Path, help='Directory for generated stack files')
    parser.add_argument('--network', dest='network_name', help='Docker network name')
    parser.add_argument('--traefik-version', help='Traefik image tag')
    parser.add_argument('--dashboard-port', help='Published dashboard port')
    parser.add_argument('--acme-email', help='Operator contact for certificate registration')
    parser.add_argument('--admin-url', help='Gateway admin API base URL')
    parser.add_argument('--proxy-url', help='Gateway proxy base URL')
    parser.add_argument('--probes', type=int, help='Number of verification probes')
    parser.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    parser.add_argument(
        '--json',
        action='store_true',
        dest='json_output',
        help='Print the pipeline summary as JSON after the run',
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, env: Mapping[str, str] | None = None) -> RunConfiguration:
    """Environment defaults with command-line overrides applied."""
    config = RunConfiguration.from_env(env).with_overrides(
        workdir=args.workdir,
        network_name=args.network_name,
        traefik_version=args.traefik_version,
        dashboard_port=args.dashboard_port,
        acme_email=args.acme_email,
        admin_url=args.admin_url.rstrip('/') if args.admin_url else None,
        proxy_url=args.proxy_url.rstrip('/') if args.proxy_url else None,
        log_level=args.log_level.upper() if args.log_level else None,
    )
    if args.probes is not None:
        config = replace(config, workload=replace(config.workload, probe_count=args.probes))
    return config


def main(
    argv: Sequence[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    commands: CommandRunner | None = None,
    reporter: ConsoleReporter | None = None,
    **runner_kwargs,
) -> int:
    args = parse_args(argv)
    reporter = reporter or ConsoleReporter()
    config = build_config(args, env)

    configure_logging(level=config.log_level, json_output=config.log_format == 'json')
    log = get_logger(__name__)

    try:
        errors = config.validate()
        if errors:
            raise ConfigurationError(errors)
        runner = ConvergenceRunner(
            config,
            commands=commands or SubprocessCommandRunner(),
            reporter=reporter,
            **runner_kwargs,
        )
        summary = runner.run(RunMode(args.mode))
    except HardFailure as exc:
        log.error('run_aborted', operation=exc.operation, cause=exc.cause)
        reporter.hard_failure(exc)
        return 1

    log.info('run_finished', mode=args.mode, exit_code=summary.exit_code)
    if args.json_output and summary.pipeline is not None:
        print(json.dumps(summary.pipeline.summary(), indent=2))
    return summary.exit_code


if __name__ == '__main__':
    sys.exit(main())
