# fuzz_session.py
#
# Main entry point for fuzz-session.
# Prepares the workspace for one fuzzer, checks the device and launches the engine.

import session.session as session
from session.errors import SessionError
from session.options import parse_args
from shared.config import load_config

import logging
import sys
from typing import Optional, Sequence

# ----------------- Logging setup -----------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(output_file: Optional[str] = None) -> Optional[logging.Handler]:
    """Mirror log records to output_file, alongside the console."""
    if not output_file:
        return None

    file_handler = logging.FileHandler(output_file)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))

    root_logger = logging.getLogger()
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.INFO)

    logger.info(f"Logging to {output_file}")
    return file_handler


# ----------------- Main -----------------
def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run a fuzzing session from the command line.

    Returns:
        0 once the engine has been handed off, 1 on any setup failure
    """
    try:
        options = parse_args(argv)

        # Load device configuration from config.yaml
        config = load_config()
        setup_logging(config.output)

        logger.info("=" * 60)
        logger.info(f"Fuzzing {options.fuzzer} with {options.engine.value}")
        logger.info("=" * 60)

        returncode = session.run(options, config)
    except SessionError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code

    logger.info(f"Session finished (engine exit code {returncode})")
    return 0


# ----------------- Script entry point -----------------
if __name__ == "__main__":
    sys.exit(main())
