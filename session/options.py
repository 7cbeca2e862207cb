# options.py
#
# Command line parsing for fuzz-session. Flags come first, then the fuzzer
# name, then an optional "--" and arguments handed straight to the engine.

import argparse
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from session.engines import Engine
from session.errors import UsageError

DEFAULT_ENGINE = Engine.LIBFUZZER.value
DEFAULT_LOG_NAME = "fuzz.log"

PASSTHROUGH_SEPARATOR = "--"

DESCRIPTION = "Prepare a fuzzing workspace and launch a fuzzer on the device."

EPILOG = """\
The workspace lives under <base>/<fuzzer>/ with artifacts/, corpus/ and
corpus_new/ subdirectories. Each of -w, -a, -c and -n makes the matching
location a symlink to an existing directory instead of a plain directory.
<base>/last_session always points at the most recently started session.

Arguments after -- are passed to the engine unchanged, e.g.
  fuzz-session -c /sdcard/seeds IOMX -- -max_len=4096
"""


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that reports errors as UsageError instead of exiting."""

    def error(self, message):
        self.print_help(sys.stderr)
        raise UsageError(message)


@dataclass(frozen=True)
class SessionOptions:
    """Parsed command line, before the fuzzer has been resolved."""
    fuzzer: str
    engine: Engine = Engine.LIBFUZZER
    log_name: str = DEFAULT_LOG_NAME
    work_root: Optional[str] = None
    artifacts: Optional[str] = None
    corpus: Optional[str] = None
    corpus_new: Optional[str] = None
    extra_args: List[str] = field(default_factory=list)

    def overrides(self) -> Dict[str, Optional[str]]:
        """Directory overrides keyed by workspace role."""
        return {
            "work_root": self.work_root,
            "artifacts": self.artifacts,
            "corpus": self.corpus,
            "corpus_new": self.corpus_new,
        }


def build_parser(prog: str = "fuzz-session") -> argparse.ArgumentParser:
    parser = _Parser(
        prog=prog,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        usage=("%(prog)s [-a artifacts_path] [-c corpus] [-e engine] [-l logname] "
               "[-n new_corpus] [-w workdir] fuzzer [-- fuzzer_option...]"),
    )
    parser.add_argument("-a", dest="artifacts", metavar="artifacts_path",
                        help="Use an existing directory for crash artifacts")
    parser.add_argument("-c", dest="corpus", metavar="corpus",
                        help="Use an existing directory as the input corpus")
    parser.add_argument("-e", dest="engine", metavar="engine", default=DEFAULT_ENGINE,
                        help=f"Fuzzing engine: libFuzzer or honggfuzz (default: {DEFAULT_ENGINE})")
    parser.add_argument("-l", dest="log_name", metavar="logname", default=DEFAULT_LOG_NAME,
                        help=f"Log file name inside the artifacts directory (default: {DEFAULT_LOG_NAME})")
    parser.add_argument("-n", dest="corpus_new", metavar="new_corpus",
                        help="Use an existing directory for newly discovered inputs")
    parser.add_argument("-w", dest="work_root", metavar="workdir",
                        help="Use an existing directory as the session work root")
    parser.add_argument("fuzzer",
                        help="Fuzzer name (e.g. IOMX or IOMX_fuzzer) or path to a fuzzer binary")
    return parser


def split_passthrough(argv: Sequence[str]):
    """Split argv at the first "--" into (own arguments, engine arguments)."""
    argv = list(argv)
    if PASSTHROUGH_SEPARATOR in argv:
        index = argv.index(PASSTHROUGH_SEPARATOR)
        return argv[:index], argv[index + 1:]
    return argv, []


def parse_args(argv: Optional[Sequence[str]] = None) -> SessionOptions:
    """
    Parse the fuzz-session command line.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        SessionOptions with defaults filled in

    Raises:
        UsageError: on unknown flags or a missing fuzzer argument
        EngineError: if -e names an unsupported engine
    """
    if argv is None:
        argv = sys.argv[1:]

    own_args, extra_args = split_passthrough(argv)
    args = build_parser().parse_args(own_args)

    return SessionOptions(
        fuzzer=args.fuzzer,
        engine=Engine.parse(args.engine),
        log_name=args.log_name,
        work_root=args.work_root,
        artifacts=args.artifacts,
        corpus=args.corpus,
        corpus_new=args.corpus_new,
        extra_args=extra_args,
    )
