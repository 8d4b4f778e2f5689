from __future__ import annotations

from typing import TYPE_CHECKING, List

from lark import Tree

from ..cmd import Argv, Atom, Cmd, Op, is_literal
from ..types import BrString, BrashRuntimeError
from .common import EvalFunc

if TYPE_CHECKING:
    from ..interpreter import Interpreter

def resolve_cmd(cmd: Cmd, interp: 'Interpreter', eval_func: EvalFunc) -> Cmd:
    """Evaluate every interpolation, left to right, into plain argv words."""
    match cmd:
        case Atom(segments=segments):
            words: List[str] = []

            for segment in segments:
                words.append("".join(
                    frag if is_literal(frag) else str(eval_func(frag, interp))
                    for frag in segment
                ))

            return Argv(words)
        case Op(lhs=lhs, op=op, rhs=rhs):
            return Op(resolve_cmd(lhs, interp, eval_func), op, resolve_cmd(rhs, interp, eval_func))
        case Argv():
            return cmd

    raise BrashRuntimeError(f"Malformed command node {cmd!r}")

def exec_cmd_stmt(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> None:
    cmd = resolve_cmd(node.children[0], interp, eval_func)
    env = interp.stack.os_env()

    if interp.collector is not None:
        interp.collector.append(interp.launcher.run_capture(cmd, env) + "\n")
        return

    interp.status = interp.launcher.run(cmd, env)

def eval_cmd_expr(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrString:
    cmd = resolve_cmd(node.children[0], interp, eval_func)
    return BrString(interp.launcher.run_capture(cmd, interp.stack.os_env()))
