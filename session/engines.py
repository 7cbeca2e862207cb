# engines.py
#
# Maps an engine selection to the concrete command line that runs it.
# libFuzzer runs the fuzzer binary directly; honggfuzz wraps it in its driver.

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from session.errors import EngineError

logger = logging.getLogger(__name__)


class Engine(Enum):
    """Supported fuzzing engines, valued by the name used on the command line."""
    LIBFUZZER = "libFuzzer"
    HONGGFUZZ = "honggfuzz"

    @classmethod
    def parse(cls, name: str) -> "Engine":
        """Look up an engine by its command line name."""
        for engine in cls:
            if engine.value == name:
                return engine
        known = ", ".join(e.value for e in cls)
        raise EngineError(f"unknown engine '{name}' (expected one of: {known})")


@dataclass(frozen=True)
class EngineCommand:
    """Argument vector for the engine subprocess."""
    argv: Tuple[str, ...]

    def __str__(self) -> str:
        return " ".join(self.argv)


def build_libfuzzer(config, honggfuzz: str = "honggfuzz") -> EngineCommand:
    """Run the fuzzer binary directly, new corpus first so discoveries land there."""
    cmd = [str(config.fuzzer_binary_path)]

    cmd.append(f"-artifact_prefix={config.artifacts_path}/")
    cmd.append("-print_coverage=1")
    cmd.append("-detect_leaks=0")
    cmd.append("-jobs=-1")              # run forever

    cmd.append(str(config.corpus_new_path))
    cmd.append(str(config.corpus_path))

    cmd.extend(config.extra_args)
    return EngineCommand(tuple(cmd))


def build_honggfuzz(config, honggfuzz: str = "honggfuzz") -> EngineCommand:
    """Run the binary under the honggfuzz driver in persistent mode."""
    cmd = [honggfuzz]

    cmd.append("--persistent")
    cmd.append("--sanitizers")
    cmd.append("--tmout_sigvtalrm")

    cmd.extend(["--workspace", str(config.artifacts_path)])
    cmd.extend(["--input", str(config.corpus_new_path)])
    cmd.extend(["--covdir_new", str(config.corpus_new_path)])

    # Target binary
    cmd.append("--")
    cmd.append(str(config.fuzzer_binary_path))
    cmd.extend(config.extra_args)
    return EngineCommand(tuple(cmd))


BUILDERS: Dict[Engine, Callable[..., EngineCommand]] = {
    Engine.LIBFUZZER: build_libfuzzer,
    Engine.HONGGFUZZ: build_honggfuzz,
}


def build_command(config, honggfuzz: str = "honggfuzz") -> EngineCommand:
    """
    Build the engine invocation for a resolved session.

    Args:
        config: SessionConfig for this run
        honggfuzz: honggfuzz driver executable

    Returns:
        EngineCommand ready to hand to the session runner

    Raises:
        EngineError: if config.engine is not a supported engine
    """
    builder = BUILDERS.get(config.engine)
    if builder is None:
        raise EngineError(f"unknown engine '{config.engine}'")

    command = builder(config, honggfuzz=honggfuzz)
    logger.debug(f"Built {config.engine.value} command: {command}")
    return command
