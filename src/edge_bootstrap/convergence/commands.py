"""External command execution.

Wraps ``subprocess`` behind a small runner so convergence code can be tested
without Docker installed. Three capabilities are exposed:

- ``which``: is a binary on PATH
- ``succeeds``: run quietly, report exit status (for inspect-style probes)
- ``run``: run with stdout/stderr streamed to the terminal, raise on failure
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Sequence

from ..errors import CommandFailedError, MissingToolError, ProvisioningError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Execute external binaries."""

    def which(self, name: str) -> str | None:
        """Return the resolved path of a binary, or None if absent."""
        ...

    def succeeds(self, argv: Sequence[str], *, cwd: Path | None = None) -> bool:
        """Run quietly and return True when the command exits 0."""
        ...

    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> None:
        """Run with output streamed; raise CommandFailedError on non-zero exit."""
        ...


class SubprocessCommandRunner:
    """CommandRunner backed by ``subprocess``."""

    def __init__(self, *, timeout_seconds: float | None = None) -> None:
        self._timeout = timeout_seconds

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def succeeds(self, argv: Sequence[str], *, cwd: Path | None = None) -> bool:
        try:
            result = subprocess.run(
                list(argv),
                cwd=cwd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self._timeout,
                check=False,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
            logger.debug('Probe command did not run: %s', exc, extra={'argv': list(argv)})
            return False
        return result.returncode == 0

    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> None:
        logger.info('Running %s', ' '.join(argv), extra={'cwd': str(cwd) if cwd else None})
        # subprocess reports a missing cwd as FileNotFoundError too.
        if cwd is not None and not Path(cwd).is_dir():
            raise ProvisioningError(
                f'working directory not found: {cwd}',
                f'cannot run {" ".join(argv)}',
            )
        try:
            # stdout/stderr are inherited so the tool's own output streams live.
            result = subprocess.run(list(argv), cwd=cwd, timeout=self._timeout, check=False)
        except FileNotFoundError as exc:
            raise MissingToolError(f'command not found: {argv[0]}', str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandFailedError(argv, -1) from exc
        if result.returncode != 0:
            raise CommandFailedError(argv, result.returncode)


# ── In-memory implementation (testing) ──────────────────────────────


@dataclass
class RecordingCommandRunner:
    """Test runner that records calls and answers from canned state.

    Attributes:
        available: Binary names reported as installed by ``which``.
        succeeding: Command prefixes (tuples) for which ``succeeds`` is True.
        failing: Command prefixes for which ``run`` raises CommandFailedError.
        calls: ``(kind, argv)`` tuples in call order.
    """

    available: set[str] = field(default_factory=lambda: {'docker'})
    succeeding: set[tuple[str, ...]] = field(default_factory=set)
    failing: set[tuple[str, ...]] = field(default_factory=set)
    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)

    def which(self, name: str) -> str | None:
        self.calls.append(('which', (name,)))
        return f'/usr/bin/{name}' if name in self.available else None

    def succeeds(self, argv: Sequence[str], *, cwd: Path | None = None) -> bool:
        command = tuple(argv)
        self.calls.append(('succeeds', command))
        if argv and argv[0] not in self.available:
            return False
        return _matches(command, self.succeeding)

    def run(self, argv: Sequence[str], *, cwd: Path | None = None) -> None:
        command = tuple(argv)
        self.calls.append(('run', command))
        if argv and argv[0] not in self.available:
            raise MissingToolError(f'command not found: {argv[0]}')
        if _matches(command, self.failing):
            raise CommandFailedError(command, 1)

    def runs(self) -> list[tuple[str, ...]]:
        """Return argv of every mutating ``run`` call."""
        return [argv for kind, argv in self.calls if kind == 'run']


def _matches(command: tuple[str, ...], prefixes: set[tuple[str, ...]]) -> bool:
    return any(command[: len(prefix)] == prefix for prefix in prefixes)
