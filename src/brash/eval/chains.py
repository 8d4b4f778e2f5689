from __future__ import annotations

from typing import TYPE_CHECKING, List

from lark import Tree

from ..env import Frame
from ..runtime import call_native, resolve_method
from ..tree import tree_children
from ..types import (
    BadAssignTargetError,
    BadIndexError,
    BrDict,
    BrNil,
    BrString,
    BrValue,
    BrVec,
    CallArityError,
    EscapeError,
    IndexOutOfBoundsError,
    MissingKeyError,
    NativeFn,
    NotCallableError,
    Return,
    UserFn,
    Var,
    type_name,
)
from .common import EvalFunc, ExecFunc, expect_ident_token, integer_value

if TYPE_CHECKING:
    from ..interpreter import Interpreter

# ---------------- Indexing ----------------

def eval_getfield(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrValue:
    base_node, index_node = node.children
    base = eval_func(base_node, interp)
    index = eval_func(index_node, interp)
    return get_index(base, index)

def eval_setfield(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrValue:
    base_node, index_node, value_node = node.children
    base = eval_func(base_node, interp)
    index = eval_func(index_node, interp)
    value = eval_func(value_node, interp)

    if not isinstance(base, (BrVec, BrDict)):
        raise BadAssignTargetError(f"Cannot assign into a {type_name(base)}; only vec and dict are assignable")

    set_index(base, index, value)
    return value

def get_index(base: BrValue, index: BrValue) -> BrValue:
    match base:
        case BrVec(items=items):
            return items[_vec_position(items, index)]
        case BrDict(slots=slots):
            key = _dict_key(index)
            if key not in slots:
                raise MissingKeyError(key)
            return slots[key]

    raise BadIndexError(f"Cannot index a {type_name(base)}")

def set_index(base: BrVec | BrDict, index: BrValue, value: BrValue) -> None:
    if isinstance(base, BrVec):
        base.items[_vec_position(base.items, index)] = value
        return

    base.slots[_dict_key(index)] = value

def _vec_position(items: List[BrValue], index: BrValue) -> int:
    pos = integer_value(index)

    if pos is None:
        shown = str(index) if type_name(index) == 'num' else type_name(index)
        raise BadIndexError(f"Vec index must be an integer num; got {shown}")

    if pos < 0 or pos >= len(items):
        raise IndexOutOfBoundsError(pos, len(items))

    return pos

def _dict_key(index: BrValue) -> str:
    if not isinstance(index, BrString):
        raise BadIndexError(f"Dict key must be a string; got {type_name(index)}")

    return index.value

# ---------------- Methods and calls ----------------

def eval_method(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> NativeFn:
    base_node, name_tok = node.children
    recv = eval_func(base_node, interp)
    return resolve_method(recv, expect_ident_token(name_tok, "Method name"))

def eval_call(node: Tree, interp: 'Interpreter', eval_func: EvalFunc, exec_func: ExecFunc) -> BrValue:
    callee_node, args_node = node.children
    callee = eval_func(callee_node, interp)
    args = [eval_func(arg, interp) for arg in tree_children(args_node)]
    return call_value(callee, args, interp, exec_func)

def call_value(callee: BrValue, args: List[BrValue], interp: 'Interpreter', exec_func: ExecFunc) -> BrValue:
    match callee:
        case NativeFn():
            return call_native(callee, args, interp)
        case UserFn():
            return call_user_fn(callee, args, interp, exec_func)
        case _:
            raise NotCallableError(callee)

def call_user_fn(fn: UserFn, args: List[BrValue], interp: 'Interpreter', exec_func: ExecFunc) -> BrValue:
    """
    Run a user function body on top of its captured frame chain.

    Parameters live in a fresh frame above the captured frames, so writes
    to captured names are visible to the defining scope and vice versa.
    """
    if len(args) != len(fn.params):
        raise CallArityError(fn, len(fn.params), len(args))

    params: Frame = {name: Var(arg) for name, arg in zip(fn.params, args)}
    base = fn.captured if fn.captured is not None else interp.stack.frames

    with interp.stack.entered([*base, params]):
        signal = exec_func(fn.body, interp)

    match signal:
        case None:
            return BrNil()
        case Return(value=value):
            return value
        case _:
            raise EscapeError(f"'{_signal_name(signal)}' outside of a loop in {fn}")

def _signal_name(signal: object) -> str:
    return type(signal).__name__.lower()
