"""The Interpreter: environment stack, capture buffer and process launcher."""

from __future__ import annotations

import os
from typing import List, Mapping, Optional

from lark import Tree

from .env import Stack
from .evaluator import eval_node, exec_stmt
from .launcher import Launcher
from .parser import parse_source
from .runtime import Builtins, init_stdlib
from .tree import node_line, tree_children, tree_label
from .types import BrNil, BrValue, EscapeError

class Interpreter:
    """
    Runs brash programs statement by statement.

    `environ` seeds the outermost frame (defaults to `os.environ`); pass a
    mapping to run with a controlled environment. `launcher` runs resolved
    command trees and can be swapped out for testing.
    """

    def __init__(self, launcher: Optional[Launcher] = None, environ: Optional[Mapping[str, str]] = None):
        self.launcher = launcher if launcher is not None else Launcher()
        self.environ = os.environ if environ is None else environ
        self.collector: Optional[List[str]] = None
        self.status = 0
        self.reset()

    def reset(self) -> None:
        """Drop every binding and start over from natives and the environment."""
        init_stdlib()
        self.stack = Stack()

        for name, native in Builtins.stdlib_functions.items():
            self.stack.define(name, native)

        self.stack.import_env(self.environ)

    # ---------------- Output ----------------

    def collect(self) -> None:
        """Switch to capture mode: command and print output goes to a buffer."""
        if self.collector is None:
            self.collector = []

    @property
    def output(self) -> str:
        return "".join(self.collector or [])

    def write_line(self, text: str) -> None:
        if self.collector is not None:
            self.collector.append(text + "\n")
        else:
            print(text, flush=True)

    # ---------------- Execution ----------------

    def run(self, program: str | Tree) -> BrValue:
        """
        Execute a program (source text or a parsed `program` tree).

        Returns the value of the final statement when it is an expression
        statement, else nil.
        """
        tree = parse_source(program) if isinstance(program, str) else program
        result: BrValue = BrNil()

        for stmt in tree_children(tree):
            result = BrNil()

            if tree_label(stmt) == 'exprstmt':
                result = eval_node(stmt.children[0], self)
                continue

            signal = exec_stmt(stmt, self)
            if signal is not None:
                err = EscapeError(f"'{type(signal).__name__.lower()}' outside of a loop or function")
                err.line = node_line(stmt)
                raise err

        return result
