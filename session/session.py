# session.py
#
# Runs one fuzzing session end to end: resolve the fuzzer, lay out the
# workspace, run preflight checks, build the engine command and hand off.

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from session.engines import Engine, build_command
from session.environment import build_environment
from session.options import SessionOptions
from session.preflight import run_checks
from session.resolver import resolve_fuzzer
from session.runner import SessionRunner
from session.workspace import ensure_layout, plan_layout, update_last_session
from shared.config import Config
from shared.filesystem import LocalFilesystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """Everything needed to launch the engine for one session."""
    fuzzer_name: str
    fuzzer_binary_path: Path
    engine: Engine
    artifacts_path: Path
    corpus_path: Path
    corpus_new_path: Path
    work_root: Path
    log_name: str = "fuzz.log"
    extra_args: List[str] = field(default_factory=list)


def resolve_session(options: SessionOptions,
                    config: Config,
                    fs: Optional[LocalFilesystem] = None):
    """
    Resolve the fuzzer and plan its workspace without touching the disk.

    Returns:
        Tuple of (SessionConfig, WorkspaceLayout)
    """
    fs = fs or LocalFilesystem()

    fuzzer_name, binary = resolve_fuzzer(options.fuzzer, options.engine, config.fuzzer_dirs, fs=fs)
    layout = plan_layout(config.base_dir, fuzzer_name, options.overrides(), fs=fs)

    session_config = SessionConfig(
        fuzzer_name=fuzzer_name,
        fuzzer_binary_path=binary,
        engine=options.engine,
        artifacts_path=layout.artifacts.path,
        corpus_path=layout.corpus.path,
        corpus_new_path=layout.corpus_new.path,
        work_root=layout.work_root.path,
        log_name=options.log_name,
        extra_args=list(options.extra_args),
    )
    return session_config, layout


def prepare(options: SessionOptions,
            config: Config,
            fs: Optional[LocalFilesystem] = None,
            environ: Optional[Mapping[str, str]] = None):
    """
    Run every stage up to, but not including, the engine launch.

    Returns:
        Tuple of (SessionConfig, WorkspaceLayout, EngineCommand, environment)
    """
    fs = fs or LocalFilesystem()

    session_config, layout = resolve_session(options, config, fs=fs)

    logger.info(f"Setting up workspace in {layout.work_root.path}")
    ensure_layout(layout, fs=fs)

    run_checks(
        corpus_dir=session_config.corpus_path,
        corpus_new_dir=session_config.corpus_new_path,
        artifacts_dir=session_config.artifacts_path,
        probe=config.probe,
        probe_features=config.probe_features,
        min_free_bytes=config.min_free_bytes,
        fs=fs,
    )

    env = build_environment(config.sanitizer_options, environ)
    command = build_command(session_config, honggfuzz=config.honggfuzz)
    return session_config, layout, command, env


def run(options: SessionOptions,
        config: Optional[Config] = None,
        fs: Optional[LocalFilesystem] = None,
        environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Main session entry point.

    This function:
    1. Resolves the fuzzer binary
    2. Creates or links the workspace directories
    3. Runs the preflight checks
    4. Builds the sanitizer environment and engine command
    5. Points last_session at this run and launches the engine

    Args:
        options: Parsed command line
        config: Device configuration (default: built-in defaults)
        fs: Filesystem implementation
        environ: Environment to inherit (default: os.environ)

    Returns:
        Exit code of the engine process
    """
    config = config or Config()
    fs = fs or LocalFilesystem()

    session_config, layout, command, env = prepare(options, config, fs=fs, environ=environ)

    update_last_session(layout, fs=fs)

    runner = SessionRunner(
        command=command,
        artifacts_dir=session_config.artifacts_path,
        log_name=session_config.log_name,
        env=env,
    )
    return runner.run()
