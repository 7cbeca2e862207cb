# runner.py
#
# Launches the engine from the artifacts directory and copies everything it
# prints to both the terminal and the session log file.

import logging
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional, TextIO

from session.engines import EngineCommand
from session.errors import EngineError

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 10


class SessionRunner:
    """
    Runs one engine process to completion.

    Handles:
    - Working directory (relative engine output lands in artifacts)
    - Teeing combined stdout/stderr to the terminal and a log file
    - Stopping the engine on Ctrl-C
    """

    def __init__(self,
                 command: EngineCommand,
                 artifacts_dir: Path,
                 log_name: str = "fuzz.log",
                 env: Optional[Dict[str, str]] = None,
                 stream: Optional[TextIO] = None,
                 stop_timeout: float = STOP_TIMEOUT):
        """
        Initialize the runner.

        Args:
            command: Engine invocation
            artifacts_dir: Working directory for the engine
            log_name: Log file name, created inside artifacts_dir
            env: Environment for the engine process
            stream: Where to echo output (default: sys.stdout)
            stop_timeout: Seconds to wait after SIGTERM before SIGKILL
        """
        self.command = command
        self.artifacts_dir = Path(artifacts_dir)
        self.log_path = self.artifacts_dir / log_name
        self.env = env
        self.stream = stream
        self.stop_timeout = stop_timeout

    def run(self) -> int:
        """
        Run the engine until it exits or is interrupted.

        Returns:
            Engine exit code

        Raises:
            EngineError: if the engine executable cannot be started
        """
        stream = self.stream or sys.stdout
        logger.info(f"Running: {self.command}")

        try:
            process = subprocess.Popen(
                list(self.command.argv),
                cwd=str(self.artifacts_dir),
                env=self.env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise EngineError(f"{self.command.argv[0]}: cannot start engine: {e.strerror or e}")

        logger.info(f"Logging engine output to {self.log_path}")
        interrupted = False
        with open(self.log_path, "w") as log_file:
            try:
                for line in process.stdout:
                    stream.write(line)
                    stream.flush()
                    log_file.write(line)
                    log_file.flush()
            except KeyboardInterrupt:
                interrupted = True
                logger.info("Interrupted, stopping engine")
                process.terminate()
            finally:
                process.stdout.close()

        returncode = self._wait(process, interrupted)
        logger.info(f"Engine exited with code {returncode}")
        return returncode

    def _wait(self, process: subprocess.Popen, interrupted: bool) -> int:
        """Reap the engine; kill it if it ignores SIGTERM or Ctrl-C is pressed again."""
        try:
            return process.wait(timeout=self.stop_timeout if interrupted else None)
        except (subprocess.TimeoutExpired, KeyboardInterrupt):
            logger.warning("Engine did not stop, killing it")
            process.kill()
            return process.wait()
