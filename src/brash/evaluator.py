from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from lark import Token, Tree

from .tree import Node, is_token, node_line, tree_label
from .types import (
    BrBool,
    BrNil,
    BrValue,
    BrashRuntimeError,
    Break,
    Continue,
    Escape,
    Return,
)

from .eval.blocks import exec_block, exec_let
from .eval.chains import eval_call, eval_getfield, eval_method, eval_setfield
from .eval.commands import eval_cmd_expr, exec_cmd_stmt
from .eval.common import token_number, token_string
from .eval.expr import eval_binary, eval_unary
from .eval.fn import eval_fn_def, eval_lambda
from .eval.literals import eval_dict, eval_range, eval_string_interp, eval_vec
from .eval.loops import exec_for, exec_if, exec_while

if TYPE_CHECKING:
    from .interpreter import Interpreter

def _maybe_attach_location(exc: BrashRuntimeError, node: Node) -> None:
    if exc.line is not None:
        return

    line = node_line(node)
    if line is not None:
        exc.line = line

# ---------------- Statements ----------------

def exec_stmt(n: Node, interp: 'Interpreter') -> Optional[Escape]:
    """Execute one statement; the result is None or an escape signal."""
    try:
        handler = _STMT_DISPATCH.get(tree_label(n))
        if handler is None:
            raise BrashRuntimeError(f"Unknown statement: {tree_label(n) or n!r}")

        return handler(n, interp)
    except BrashRuntimeError as e:
        _maybe_attach_location(e, n)
        raise

def _exec_expr_stmt(n: Tree, interp: 'Interpreter') -> None:
    eval_node(n.children[0], interp)

def _exec_return_stmt(n: Tree, interp: 'Interpreter') -> Return:
    value = eval_node(n.children[0], interp) if n.children else BrNil()
    return Return(value)

def _completed(run: Callable[[Tree, 'Interpreter'], object]) -> Callable[[Tree, 'Interpreter'], None]:
    def wrapper(n: Tree, interp: 'Interpreter') -> None:
        run(n, interp)

    return wrapper

_STMT_DISPATCH: dict[Optional[str], Callable[[Tree, 'Interpreter'], Optional[Escape]]] = {
    'block': lambda n, interp: exec_block(n, interp, exec_stmt),
    'letstmt': _completed(lambda n, interp: exec_let(n, interp, eval_node)),
    'fndef': _completed(eval_fn_def),
    'ifstmt': lambda n, interp: exec_if(n, interp, eval_node, exec_stmt),
    'whilestmt': lambda n, interp: exec_while(n, interp, eval_node, exec_stmt),
    'forstmt': lambda n, interp: exec_for(n, interp, eval_node, exec_stmt),
    'breakstmt': lambda _, __: Break(),
    'continuestmt': lambda _, __: Continue(),
    'returnstmt': _exec_return_stmt,
    'cmdstmt': _completed(lambda n, interp: exec_cmd_stmt(n, interp, eval_node)),
    'exprstmt': _exec_expr_stmt,
}

# ---------------- Expressions ----------------

def eval_node(n: Node, interp: 'Interpreter') -> BrValue:
    try:
        return _eval_node_inner(n, interp)
    except BrashRuntimeError as e:
        _maybe_attach_location(e, n)
        raise

def _eval_node_inner(n: Node, interp: 'Interpreter') -> BrValue:
    if is_token(n):
        return _eval_token(n, interp)

    handler = _NODE_DISPATCH.get(n.data)
    if handler is None:
        raise BrashRuntimeError(f"Unknown node: {n.data}")

    return handler(n, interp)

def _eval_token(t: Token, interp: 'Interpreter') -> BrValue:
    handler = _TOKEN_DISPATCH.get(t.type)
    if handler:
        return handler(t, interp)

    if t.type == 'IDENT':
        return interp.stack.get(t.value)

    raise BrashRuntimeError(f"Unhandled token {t.type}:{t.value}")

def _eval_assign(n: Tree, interp: 'Interpreter') -> BrValue:
    name_tok, value_node = n.children
    value = eval_node(value_node, interp)
    interp.stack.set(str(name_tok.value), value)
    return value

_NODE_DISPATCH: dict[str, Callable[[Tree, 'Interpreter'], BrValue]] = {
    'binary': lambda n, interp: eval_binary(n.children, interp, eval_node),
    'unary': lambda n, interp: eval_unary(n.children[0], n.children[1], interp, eval_node),
    'assign': _eval_assign,
    'getfield': lambda n, interp: eval_getfield(n, interp, eval_node),
    'setfield': lambda n, interp: eval_setfield(n, interp, eval_node),
    'method': lambda n, interp: eval_method(n, interp, eval_node),
    'call': lambda n, interp: eval_call(n, interp, eval_node, exec_stmt),
    'string_interp': lambda n, interp: eval_string_interp(n, interp, eval_node),
    'vec': lambda n, interp: eval_vec(n, interp, eval_node),
    'dict': lambda n, interp: eval_dict(n, interp, eval_node),
    'range': lambda n, interp: eval_range(n, interp, eval_node),
    'lambda': eval_lambda,
    'cmdexpr': lambda n, interp: eval_cmd_expr(n, interp, eval_node),
}

_TOKEN_DISPATCH: dict[str, Callable[[Token, 'Interpreter'], BrValue]] = {
    'NUMBER': token_number,
    'STRING': token_string,
    'TRUE': lambda _, __: BrBool(True),
    'FALSE': lambda _, __: BrBool(False),
    'NIL': lambda _, __: BrNil(),
}
