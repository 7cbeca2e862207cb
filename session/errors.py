# errors.py
#
# Exception hierarchy for a fuzzing session. Every failure is fatal: the stage
# that detects it raises, and the entry point turns it into an exit code.


class SessionError(Exception):
    """Base class for all session failures."""
    exit_code = 1


class UsageError(SessionError):
    """Bad or missing command line arguments."""


class ResolutionError(SessionError):
    """The fuzzer binary could not be located."""


class WorkspaceError(SessionError):
    """An explicit directory override is missing or unusable."""


class PreflightError(SessionError):
    """A preflight check (probe, corpus, disk space) failed."""


class EngineError(SessionError):
    """Unknown fuzzing engine."""


class ConfigError(SessionError):
    """The configuration file is unreadable or malformed."""
