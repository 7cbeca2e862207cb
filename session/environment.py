# environment.py
#
# Sanitizer runtime options for the engine process. Session settings are
# appended to whatever ASAN_OPTIONS the device already exports (typically an
# include= of the system baseline), never replacing it.

import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

ASAN_OPTIONS = "ASAN_OPTIONS"
SEPARATOR = ":"


@dataclass(frozen=True)
class SanitizerOptions:
    """Inherited option string plus the settings layered on top of it."""
    base: str
    settings: Tuple[str, ...]

    def render(self) -> str:
        parts = [self.base] if self.base else []
        parts.extend(self.settings)
        return SEPARATOR.join(parts)


def sanitizer_options(settings: Sequence[str],
                      environ: Optional[Mapping[str, str]] = None) -> SanitizerOptions:
    """Read the inherited ASAN_OPTIONS once and pair it with the session settings."""
    environ = os.environ if environ is None else environ
    return SanitizerOptions(base=environ.get(ASAN_OPTIONS, ""), settings=tuple(settings))


def build_environment(settings: Sequence[str],
                      environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Environment for the engine subprocess.

    Args:
        settings: key=value sanitizer settings, in order
        environ: Environment to inherit (default: os.environ)

    Returns:
        Copy of environ with ASAN_OPTIONS extended
    """
    environ = os.environ if environ is None else environ
    options = sanitizer_options(settings, environ)

    env = dict(environ)
    env[ASAN_OPTIONS] = options.render()
    logger.info(f"{ASAN_OPTIONS}={env[ASAN_OPTIONS]}")
    return env
