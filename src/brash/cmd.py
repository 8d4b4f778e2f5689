"""Command trees: shell words and their composition operators.

`Atom`/`Op` come out of the command parser and still hold unevaluated
interpolation fragments. The evaluator resolves them into `Argv`/`Op` trees,
which is what the process launcher consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Union
from typing_extensions import TypeAlias

from lark import Token, Tree

class CmdOp(Enum):
    AND = "&&"
    OR = "||"

    OUT_PIPE = "|"
    ERR_PIPE = "*|"
    ALL_PIPE = "&|"

    OUT_WRITE = ">"
    ERR_WRITE = "*>"
    ALL_WRITE = "&>"

    OUT_READ = "<"
    ERR_READ = "*<"
    ALL_READ = "&<"

    @property
    def is_logical(self) -> bool:
        return self in (CmdOp.AND, CmdOp.OR)

    @property
    def is_pipe(self) -> bool:
        return self in (CmdOp.OUT_PIPE, CmdOp.ERR_PIPE, CmdOp.ALL_PIPE)

    @property
    def is_write(self) -> bool:
        return self in (CmdOp.OUT_WRITE, CmdOp.ERR_WRITE, CmdOp.ALL_WRITE)

    @property
    def is_read(self) -> bool:
        return self in (CmdOp.OUT_READ, CmdOp.ERR_READ, CmdOp.ALL_READ)

    @property
    def takes_stdout(self) -> bool:
        return self in (CmdOp.OUT_PIPE, CmdOp.ALL_PIPE, CmdOp.OUT_WRITE, CmdOp.ALL_WRITE)

    @property
    def takes_stderr(self) -> bool:
        return self in (CmdOp.ERR_PIPE, CmdOp.ALL_PIPE, CmdOp.ERR_WRITE, CmdOp.ALL_WRITE)

# A fragment is literal text or an expression node to interpolate.
Fragment: TypeAlias = Union[str, Tree, Token]

def is_literal(fragment: Fragment) -> bool:
    # lark tokens subclass str, so check them first
    return isinstance(fragment, str) and not isinstance(fragment, Token)

@dataclass
class Atom:
    segments: List[List[Fragment]]

@dataclass
class Argv:
    words: List[str]

    def render(self) -> str:
        return " ".join(self.words)

@dataclass
class Op:
    lhs: 'Cmd'
    op: CmdOp
    rhs: 'Cmd'

    def render(self) -> str:
        return f"{render(self.lhs)} {self.op.value} {render(self.rhs)}"

Cmd: TypeAlias = Union[Atom, Argv, Op]

def render(cmd: Cmd) -> str:
    """Human-readable form of a resolved tree, for diagnostics."""
    if isinstance(cmd, Atom):
        return " ".join("".join(f if is_literal(f) else "{...}" for f in seg) for seg in cmd.segments)

    return cmd.render()
