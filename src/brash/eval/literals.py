from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from lark import Tree

from ..tree import is_token, tree_children, tree_label
from ..types import BrashRuntimeError, BrDict, BrRange, BrString, BrValue, BrVec, RangeTypeError, type_name
from .common import EvalFunc, integer_value, token_kind

if TYPE_CHECKING:
    from ..interpreter import Interpreter

def eval_string_interp(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrString:
    parts: list[str] = []

    for part in tree_children(node):
        if token_kind(part) == 'STRING_PART':
            parts.append(str(part.value))
            continue

        value = eval_func(part, interp)
        parts.append(str(value))

    return BrString("".join(parts))

def eval_vec(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrVec:
    return BrVec([eval_func(child, interp) for child in tree_children(node)])

def eval_dict(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrDict:
    slots: Dict[str, BrValue] = {}

    for pair in tree_children(node):
        if tree_label(pair) != 'pair':
            raise BrashRuntimeError("Malformed dict literal")

        key, value_node = pair.children
        # later duplicates overwrite, keeping the first insertion position
        slots[str(key.value) if is_token(key) else str(key)] = eval_func(value_node, interp)

    return BrDict(slots)

def eval_range(node: Tree, interp: 'Interpreter', eval_func: EvalFunc) -> BrRange:
    lo_node, hi_node, kind = node.children
    lo = eval_func(lo_node, interp)
    hi = eval_func(hi_node, interp)

    lo_int = integer_value(lo)
    hi_int = integer_value(hi)

    if lo_int is None or hi_int is None:
        raise RangeTypeError(
            f"Range bounds must be integer nums; got {_describe(lo)} and {_describe(hi)}"
        )

    return BrRange.build(lo_int, hi_int, token_kind(kind) == 'INCLUSIVE')

def _describe(value: BrValue) -> str:
    return str(value) if type_name(value) == 'num' else type_name(value)
