# filesystem.py
#
# Thin wrapper around the filesystem calls the session makes. The workspace
# and preflight stages take one of these as a parameter so tests can swap in
# an in-memory implementation.

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class LocalFilesystem:
    """
    Filesystem operations backed by the real OS.

    Handles:
    - Existence and type checks
    - Directory creation
    - Swapping an entry for a symlink in one rename
    - Recursive file listing and free-space queries
    """

    def exists(self, path: Path) -> bool:
        """True if path exists (following symlinks)."""
        return Path(path).exists()

    def lexists(self, path: Path) -> bool:
        """True if an entry exists at path, even a dangling symlink."""
        return os.path.lexists(path)

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_symlink(self, path: Path) -> bool:
        return Path(path).is_symlink()

    def realpath(self, path: Path) -> Path:
        """Canonical absolute path with every symlink resolved."""
        return Path(os.path.realpath(path))

    def make_dir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def replace_with_symlink(self, link: Path, target: Path) -> None:
        """
        Point link at target, removing whatever was at link before.

        A temporary symlink is created next to link and renamed over it, so an
        interrupted call leaves either the old entry or the new symlink. A real
        directory cannot be renamed over, so it is moved aside first and only
        deleted once the new symlink is in place.

        Args:
            link: Location that becomes the symlink
            target: Path the symlink points to
        """
        link = Path(link)
        tag = uuid.uuid4().hex[:8]
        tmp_link = link.with_name(f".{link.name}.{tag}.tmp")
        os.symlink(str(target), str(tmp_link))

        trash = None
        if self.is_dir(link) and not self.is_symlink(link):
            trash = link.with_name(f".{link.name}.{tag}.old")
            os.rename(str(link), str(trash))

        os.replace(str(tmp_link), str(link))

        if trash is not None:
            shutil.rmtree(trash)
            logger.debug(f"Removed previous directory at {link}")

    def iter_files(self, path: Path) -> Iterator[Path]:
        """Yield every regular file below path, recursively."""
        for root, _dirs, files in os.walk(str(path), followlinks=True):
            for name in files:
                candidate = Path(root) / name
                if candidate.is_file():
                    yield candidate

    def disk_usage(self, path: Path):
        """Return (total, used, free) in bytes for the filesystem holding path."""
        return shutil.disk_usage(str(path))
