from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from lark import Tree

from ..tree import tree_children
from ..types import BrNil, Escape
from .common import EvalFunc, ExecFunc, expect_ident_token, token_kind

if TYPE_CHECKING:
    from ..interpreter import Interpreter

def exec_block(node: Tree, interp: 'Interpreter', exec_func: ExecFunc) -> Optional[Escape]:
    """Run statements in a fresh frame; the first escape stops the block."""
    interp.stack.push()

    try:
        for stmt in tree_children(node):
            signal = exec_func(stmt, interp)
            if signal is not None:
                return signal
    finally:
        interp.stack.pop()

    return None

def exec_let(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> None:
    kw, name_tok, *init = node.children
    name = expect_ident_token(name_tok, "Binding name")
    value = eval_func(init[0], interp) if init else BrNil()

    interp.stack.define(name, value, exported=token_kind(kw) == 'EXPORT')
