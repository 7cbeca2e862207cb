# resolver.py
#
# Turns the fuzzer argument into a binary path. Either the argument is already
# a path, or it is a short name looked up in the device's native test dirs.

import logging
import os
from pathlib import Path
from typing import Optional, Sequence, Tuple

from session.engines import Engine
from session.errors import ResolutionError
from shared.filesystem import LocalFilesystem

logger = logging.getLogger(__name__)

FUZZER_SUFFIX = "_fuzzer"


def short_name(token: str) -> str:
    """Strip a trailing _fuzzer suffix: IOMX_fuzzer -> IOMX."""
    if token.endswith(FUZZER_SUFFIX) and token != FUZZER_SUFFIX:
        return token[:-len(FUZZER_SUFFIX)]
    return token


def candidate_paths(name: str, engine: Engine, fuzzer_dirs: Sequence[str]):
    """Paths probed for a short name, in priority order."""
    binary = f"{name}{FUZZER_SUFFIX}"
    return [Path(base) / engine.value / binary / binary for base in fuzzer_dirs]


def resolve_fuzzer(token: str,
                   engine: Engine,
                   fuzzer_dirs: Sequence[str],
                   fs: Optional[LocalFilesystem] = None) -> Tuple[str, Path]:
    """
    Locate the fuzzer binary.

    Args:
        token: Fuzzer name or path from the command line
        engine: Selected engine; part of the install path
        fuzzer_dirs: Base directories to search, highest priority first
        fs: Filesystem to query

    Returns:
        Tuple of (fuzzer name, binary path)

    Raises:
        ResolutionError: if the binary does not exist
    """
    fs = fs or LocalFilesystem()

    as_path = Path(token)
    if fs.exists(as_path):
        binary = Path(os.path.abspath(as_path))
        logger.info(f"Using fuzzer binary {binary}")
        return binary.name, binary

    name = short_name(token)
    candidates = candidate_paths(name, engine, fuzzer_dirs)
    for candidate in candidates:
        if fs.exists(candidate):
            logger.info(f"Resolved {token} to {candidate}")
            return candidate.name, Path(os.path.abspath(candidate))

    searched = "\n  ".join(str(c) for c in candidates) or "(no fuzzer directories configured)"
    raise ResolutionError(f"{token}: binary not found, searched:\n  {searched}")
