# config.py
#
# Device-level settings for fuzz-session, loaded from an optional YAML file.
# Anything not present in the file falls back to the stock device layout.

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FUZZ_SESSION_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_BASE_DIR = "/data/fuzz"
DEFAULT_FUZZER_DIRS = [
    "/data/nativetest64/fuzzers",   # 64-bit first
    "/data/nativetest/fuzzers",
]
DEFAULT_PROBE = "sanitizer-status"
DEFAULT_PROBE_FEATURES = ["asan", "cov"]
DEFAULT_MIN_FREE_BYTES = 10 * 1024 * 1024
DEFAULT_SANITIZER_OPTIONS = [
    "coverage=1",
    "atexit=1",
    "print_cmdline=1",
    "print_stats=1",
    "print_legend=1",
    "print_scariness=1",
    "log_to_syslog=0",
]
DEFAULT_HONGGFUZZ = "honggfuzz"


@dataclass
class Config:
    """Configuration settings for a fuzzing session."""
    base_dir: str = DEFAULT_BASE_DIR
    fuzzer_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_FUZZER_DIRS))
    probe: str = DEFAULT_PROBE
    probe_features: List[str] = field(default_factory=lambda: list(DEFAULT_PROBE_FEATURES))
    min_free_bytes: int = DEFAULT_MIN_FREE_BYTES
    sanitizer_options: List[str] = field(default_factory=lambda: list(DEFAULT_SANITIZER_OPTIONS))
    honggfuzz: str = DEFAULT_HONGGFUZZ
    output: Optional[str] = None


def default_config_path() -> str:
    """Config file location, honouring the FUZZ_SESSION_CONFIG override."""
    return os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the config file (default: $FUZZ_SESSION_CONFIG
                     or config.yaml)

    Returns:
        Config object with settings

    Raises:
        ConfigError: if the file is not valid YAML or holds bad values
    """
    # Deferred: session imports this module while it is loading.
    from session.errors import ConfigError

    path = Path(config_path or default_config_path())

    if not path.exists():
        # Return defaults if no config file
        return Config()

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of settings, got {type(data).__name__}")

    logger.debug(f"Loaded config from {path}")

    try:
        return Config(
            base_dir=data.get('base_dir', DEFAULT_BASE_DIR),
            fuzzer_dirs=list(data.get('fuzzer_dirs', DEFAULT_FUZZER_DIRS)),
            probe=data.get('probe', DEFAULT_PROBE),
            probe_features=list(data.get('probe_features', DEFAULT_PROBE_FEATURES)),
            min_free_bytes=int(data.get('min_free_bytes', DEFAULT_MIN_FREE_BYTES)),
            sanitizer_options=list(data.get('sanitizer_options', DEFAULT_SANITIZER_OPTIONS)),
            honggfuzz=data.get('honggfuzz', DEFAULT_HONGGFUZZ),
            output=data.get('output'),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{path}: bad setting value: {e}")
