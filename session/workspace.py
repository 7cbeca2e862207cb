# workspace.py
#
# Lays out the per-fuzzer workspace:
#
#   <base>/<fuzzer>/              work root
#   <base>/<fuzzer>/artifacts/    crashes, timeouts, engine log
#   <base>/<fuzzer>/corpus/       seed inputs
#   <base>/<fuzzer>/corpus_new/   inputs found this session
#   <base>/last_session -> work root of the latest run
#
# Any of the four can be redirected to an existing directory, in which case
# the canonical location becomes a symlink to it. Tooling that reads the
# workspace only ever needs the canonical paths.

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from session.errors import WorkspaceError
from shared.filesystem import LocalFilesystem

logger = logging.getLogger(__name__)

LAST_SESSION = "last_session"

# Work root first: the other three live inside it.
ROLES = ("work_root", "artifacts", "corpus", "corpus_new")
SUBDIRS = {
    "artifacts": "artifacts",
    "corpus": "corpus",
    "corpus_new": "corpus_new",
}


@dataclass(frozen=True)
class WorkspaceEntry:
    """One workspace directory: where it lives and what it may point to."""
    role: str
    path: Path
    override: Optional[Path] = None

    @property
    def is_link(self) -> bool:
        return self.override is not None


@dataclass(frozen=True)
class WorkspaceLayout:
    """Intended shape of a session workspace."""
    base_dir: Path
    work_root: WorkspaceEntry
    artifacts: WorkspaceEntry
    corpus: WorkspaceEntry
    corpus_new: WorkspaceEntry

    def entries(self) -> List[WorkspaceEntry]:
        return [getattr(self, role) for role in ROLES]

    @property
    def last_session(self) -> Path:
        return self.base_dir / LAST_SESSION


def plan_layout(base_dir,
                fuzzer_name: str,
                overrides: Optional[Dict[str, Optional[str]]] = None,
                fs: Optional[LocalFilesystem] = None) -> WorkspaceLayout:
    """
    Work out the workspace for a fuzzer and validate the overrides.

    Nothing is created or modified here, so a bad override stops the session
    before the filesystem is touched.

    Args:
        base_dir: Root under which every fuzzer gets a work root
        fuzzer_name: Canonical fuzzer name
        overrides: Optional existing directories keyed by role
        fs: Filesystem to query

    Returns:
        WorkspaceLayout describing all four directories

    Raises:
        WorkspaceError: if an override is not an existing directory
    """
    fs = fs or LocalFilesystem()
    overrides = overrides or {}
    base_dir = Path(os.path.abspath(base_dir))
    work_root = base_dir / fuzzer_name

    # Where the subdirectories will really live once the work root is applied.
    root_location = work_root

    entries = {}
    for role in ROLES:
        if role == "work_root":
            path = location = work_root
        else:
            path = work_root / SUBDIRS[role]
            location = root_location / SUBDIRS[role]

        override = overrides.get(role)
        if override:
            override = Path(os.path.abspath(override))
            if not fs.is_dir(override):
                raise WorkspaceError(f"{override}: directory does not exist (given for {role})")
            if fs.realpath(override) == fs.realpath(location):
                logger.info(f"{override} is already the {role} location, keeping it")
                override = None

        if role == "work_root" and override is not None:
            root_location = override

        entries[role] = WorkspaceEntry(role=role, path=path, override=override)

    return WorkspaceLayout(base_dir=base_dir, **entries)


def ensure_entry(entry: WorkspaceEntry, fs: LocalFilesystem) -> None:
    """Bring one directory in line with its entry."""
    if entry.is_link:
        fs.make_dir(entry.path.parent)
        fs.replace_with_symlink(entry.path, entry.override)
        logger.info(f"{entry.path} -> {entry.override}")
        return

    if fs.is_dir(entry.path):
        return

    if fs.lexists(entry.path):
        raise WorkspaceError(f"{entry.path}: exists and is not a directory")

    fs.make_dir(entry.path)
    logger.info(f"Created {entry.path}")


def ensure_layout(layout: WorkspaceLayout, fs: Optional[LocalFilesystem] = None) -> WorkspaceLayout:
    """
    Apply a planned layout to the filesystem.

    Safe to run repeatedly: existing directories are left alone and symlinks
    are replaced with identical ones.

    Args:
        layout: Layout from plan_layout
        fs: Filesystem to modify

    Returns:
        The same layout, for chaining
    """
    fs = fs or LocalFilesystem()
    for entry in layout.entries():
        ensure_entry(entry, fs)
    return layout


def update_last_session(layout: WorkspaceLayout, fs: Optional[LocalFilesystem] = None) -> Path:
    """Point <base>/last_session at this session's work root."""
    fs = fs or LocalFilesystem()
    fs.replace_with_symlink(layout.last_session, layout.work_root.path)
    logger.info(f"{layout.last_session} -> {layout.work_root.path}")
    return layout.last_session
