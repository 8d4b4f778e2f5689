from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import List, Optional

from .interpreter import Interpreter
from .lexer import LexError
from .parser import ParseError
from .types import BrashRuntimeError
from .utils import debug_py_trace_enabled

USAGE = "usage: brash [--repl] [--capture] [--no-env] [SOURCE|PATH|-]"

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.is_file():
        return candidate.read_text(encoding="utf-8")

    return arg

def report_error(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), file=sys.stderr, end="")

def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    want_repl = False
    capture = False
    no_env = False
    arg = None

    for token in args:
        if token == "--repl":
            want_repl = True
            continue

        if token == "--capture":
            capture = True
            continue

        if token == "--no-env":
            no_env = True
            continue

        if token in ("-h", "--help"):
            print(USAGE)
            return 0

        if token.startswith("--"):
            raise SystemExit(f"Unknown option: {token}\n{USAGE}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    environ = {} if no_env else None

    if want_repl or (arg is None and sys.stdin.isatty()):
        from .repl import repl  # prompt_toolkit is only needed interactively

        repl(environ=environ)
        return 0

    interp = Interpreter(environ=environ)
    if capture:
        interp.collect()

    try:
        interp.run(_load_source(arg))
    except (LexError, ParseError, BrashRuntimeError) as exc:
        if capture:
            sys.stdout.write(interp.output)
        report_error(exc)
        return 1

    if capture:
        sys.stdout.write(interp.output)

    return 0

if __name__ == "__main__":
    sys.exit(main())
