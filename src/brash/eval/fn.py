from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from lark import Tree

from ..tree import tree_children, tree_label
from ..types import BrashRuntimeError, UserFn
from .common import expect_ident_token

if TYPE_CHECKING:
    from ..interpreter import Interpreter

def extract_param_names(params_node: Any, context: str = "parameter list") -> List[str]:
    if params_node is None:
        return []

    if tree_label(params_node) != 'params':
        raise BrashRuntimeError(f"Malformed {context}")

    return [expect_ident_token(p, "Parameter") for p in tree_children(params_node)]

def eval_fn_def(node: Tree, interp: 'Interpreter') -> None:
    name_tok, params_node, body = node.children
    name = expect_ident_token(name_tok, "Function name")
    params = extract_param_names(params_node, context="function definition")

    # the captured chain shares the defining frame, so the function sees itself
    fn_value = UserFn(name=name, params=params, body=body, captured=interp.stack.capture())
    interp.stack.define(name, fn_value)

def eval_lambda(node: Tree, interp: 'Interpreter') -> UserFn:
    params_node, body = node.children
    params = extract_param_names(params_node, context="anonymous function")

    return UserFn(name=None, params=params, body=body, captured=interp.stack.capture())
