# session module
#
# Fuzzing session orchestration for on-device libFuzzer and honggfuzz runs.
# Resolves the fuzzer, prepares its workspace, checks the device and launches.

from session.session import run, prepare, SessionConfig
from session.options import parse_args, SessionOptions
from session.engines import Engine, EngineCommand

__all__ = ["run", "prepare", "SessionConfig", "parse_args", "SessionOptions", "Engine", "EngineCommand"]
