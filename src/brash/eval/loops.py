from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from lark import Tree

from ..tree import tree_children
from ..types import (
    Break,
    BrDict,
    BrNum,
    BrRange,
    BrString,
    BrValue,
    BrVec,
    Continue,
    Escape,
    ForBinderError,
    TypeMismatchError,
    is_truthy,
    type_name,
)
from .common import EvalFunc, ExecFunc, expect_ident_token

if TYPE_CHECKING:
    from ..interpreter import Interpreter

def exec_if(node: Tree, interp: 'Interpreter', eval_func: EvalFunc, exec_func: ExecFunc) -> Optional[Escape]:
    cond, then_body, *rest = node.children

    if is_truthy(eval_func(cond, interp)):
        return exec_func(then_body, interp)

    if rest:
        return exec_func(rest[0], interp)

    return None

def exec_while(node: Tree, interp: 'Interpreter', eval_func: EvalFunc, exec_func: ExecFunc) -> Optional[Escape]:
    cond, body = node.children

    while is_truthy(eval_func(cond, interp)):
        signal = exec_func(body, interp)

        match signal:
            case Break():
                break
            case None | Continue():
                continue
            case _:
                return signal

    return None

def exec_for(node: Tree, interp: 'Interpreter', eval_func: EvalFunc, exec_func: ExecFunc) -> Optional[Escape]:
    """
    Range: `for x in lo..hi` binds one variable.
    Vec: `for i, x in v` binds index and element.
    Dict: `for k, v in d` binds key and value in insertion order.
    """
    binders_node, iterable_node, body = node.children
    names = [expect_ident_token(b, "Loop variable") for b in tree_children(binders_node)]
    iterable = eval_func(iterable_node, interp)
    rows = _loop_rows(iterable, len(names))

    interp.stack.push()

    try:
        for row in rows:
            for name, value in zip(names, row):
                interp.stack.define(name, value)

            signal = exec_func(body, interp)

            match signal:
                case Break():
                    break
                case None | Continue():
                    continue
                case _:
                    return signal
    finally:
        interp.stack.pop()

    return None

def _loop_rows(iterable: BrValue, arity: int) -> Iterable[Tuple[BrValue, ...]]:
    match iterable:
        case BrRange():
            if arity != 1:
                raise ForBinderError(f"A range loop binds exactly one variable; got {arity}")
            return ((BrNum(float(i)),) for i in iterable)
        case BrVec(items=items):
            if arity != 2:
                raise ForBinderError(f"A vec loop binds an index and an element; got {arity} variable(s)")
            # snapshot, so the body may mutate the vec
            snapshot: List[BrValue] = list(items)
            return ((BrNum(float(i)), item) for i, item in enumerate(snapshot))
        case BrDict(slots=slots):
            if arity != 2:
                raise ForBinderError(f"A dict loop binds a key and a value; got {arity} variable(s)")
            pairs = list(slots.items())
            return ((BrString(k), v) for k, v in pairs)

    raise TypeMismatchError(f"Cannot iterate over a {type_name(iterable)}")
