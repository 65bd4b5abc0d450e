"""Local filesystem access rooted at the bootstrap working directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import ProvisioningError

logger = logging.getLogger(__name__)

PUBLIC_FILE_MODE = 0o644
PRIVATE_FILE_MODE = 0o600

# Windows ignores every mode bit except read-only.
POSIX_PERMISSIONS = os.name == 'posix'


class LocalFilesystem:
    """Read and write artifacts relative to ``root``.

    Write failures surface as ProvisioningError (a hard failure).
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path(self, name: str | Path) -> Path:
        return self.root / name

    def is_file(self, name: str | Path) -> bool:
        return self.path(name).is_file()

    def read_text(self, name: str | Path) -> str | None:
        """Return file content, or None if the file is missing or not UTF-8 text.

        Raises:
            ProvisioningError: The file exists but could not be read.
        """
        target = self.path(name)
        try:
            return target.read_text(encoding='utf-8')
        except (FileNotFoundError, IsADirectoryError):
            return None
        except UnicodeDecodeError as exc:
            logger.debug('%s is not UTF-8 text: %s', target, exc, extra={'path': str(target)})
            return None
        except OSError as exc:
            raise ProvisioningError(f'failed to read file: {target}', str(exc)) from exc

    def write_text(self, name: str | Path, content: str) -> None:
        """Write a file; a newly created one is made world-readable.

        An existing file keeps its mode.
        """
        target = self.path(name)
        try:
            created = not target.exists()
            target.write_text(content, encoding='utf-8')
            if created:
                target.chmod(PUBLIC_FILE_MODE)
        except OSError as exc:
            raise ProvisioningError(f'failed to write file: {target}', str(exc)) from exc

    def create_private(self, name: str | Path, content: str = '') -> None:
        """Create a new owner-only file, then populate it.

        The mode is applied by the same ``open`` call that creates the inode,
        so there is no window where the file exists with wider permissions.
        Fails if the file already exists.
        """
        target = self.path(name)
        if not POSIX_PERMISSIONS:
            logger.warning(
                'Platform has no POSIX permission bits; %s relies on the '
                'directory ACL for owner-only access',
                target,
                extra={'path': str(target)},
            )
        flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL
        try:
            fd = os.open(target, flags, PRIVATE_FILE_MODE)
        except OSError as exc:
            raise ProvisioningError(f'failed to create secret file: {target}', str(exc)) from exc
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                handle.write(content)
        except OSError as exc:
            raise ProvisioningError(f'failed to write secret file: {target}', str(exc)) from exc
