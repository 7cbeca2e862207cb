# preflight.py
#
# Checks run before the engine starts: the device build has ASAN and coverage
# instrumentation, there is something in the corpus, and there is room on
# disk for new inputs and artifacts.

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from session.errors import PreflightError
from shared.filesystem import LocalFilesystem

logger = logging.getLogger(__name__)

MIN_FREE_BYTES = 10 * 1024 * 1024


def format_size(num_bytes: float) -> str:
    """Human readable size, df -h style."""
    if num_bytes < 1024:
        return f"{int(num_bytes)}B"
    for unit in ("K", "M", "G"):
        num_bytes /= 1024
        if num_bytes < 1024:
            return f"{num_bytes:.1f}{unit}"
    return f"{num_bytes / 1024:.1f}T"


def check_sanitizers(probe: str = "sanitizer-status",
                     features: Sequence[str] = ("asan", "cov")) -> None:
    """
    Ask the sanitizer probe whether the requested features are active.

    The probe is first run quietly with the feature names. If it fails, it is
    run again with no arguments and its full report goes to the terminal.

    Raises:
        PreflightError: if the probe reports a missing feature or is not installed
    """
    cmd = [probe] + list(features)
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError:
        raise PreflightError(f"sanitizer probe '{probe}' not found")

    if result.returncode == 0:
        logger.info(f"✓ Sanitizer check passed ({', '.join(features)})")
        return

    logger.error(f"✗ Sanitizer check failed: {' '.join(cmd)} exited with code {result.returncode}")
    subprocess.run([probe])
    raise PreflightError(f"{probe}: required instrumentation not active ({', '.join(features)})")


def check_corpus(corpus_dir: Path, fs: Optional[LocalFilesystem] = None) -> int:
    """
    Make sure the corpus holds at least one file.

    Returns:
        Number of regular files found (recursively)

    Raises:
        PreflightError: if there are none
    """
    fs = fs or LocalFilesystem()
    count = sum(1 for _ in fs.iter_files(corpus_dir))
    if count == 0:
        raise PreflightError(f"{corpus_dir}: corpus is empty, add at least one seed input")
    logger.info(f"✓ Corpus has {count} file(s)")
    return count


def check_free_space(path: Path,
                     min_free_bytes: int = MIN_FREE_BYTES,
                     fs: Optional[LocalFilesystem] = None) -> int:
    """
    Make sure the filesystem holding path has room to write.

    Returns:
        Free bytes available

    Raises:
        PreflightError: if fewer than min_free_bytes are free
    """
    fs = fs or LocalFilesystem()
    usage = fs.disk_usage(path)
    total, used, free = usage[0], usage[1], usage[2]

    if free < min_free_bytes:
        percent = (used * 100 // total) if total else 100
        summary = (f"size {format_size(total)}, used {format_size(used)}, "
                   f"avail {format_size(free)}, use {percent}%")
        raise PreflightError(
            f"{path}: not enough free space, need {format_size(min_free_bytes)} ({summary})"
        )

    logger.info(f"✓ {path}: {format_size(free)} free")
    return free


def run_checks(corpus_dir: Path,
               corpus_new_dir: Path,
               artifacts_dir: Path,
               probe: str = "sanitizer-status",
               probe_features: Sequence[str] = ("asan", "cov"),
               min_free_bytes: int = MIN_FREE_BYTES,
               fs: Optional[LocalFilesystem] = None) -> None:
    """Run every preflight check; the first failure raises PreflightError."""
    logger.info("Running preflight checks...")
    check_sanitizers(probe, probe_features)
    check_corpus(corpus_dir, fs=fs)
    for path in (corpus_new_dir, artifacts_dir):
        check_free_space(path, min_free_bytes, fs=fs)
