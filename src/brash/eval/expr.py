from __future__ import annotations

import math
from typing import TYPE_CHECKING, List

from lark import Token

from ..tree import Node
from ..types import BrBool, BrNum, BrString, BrValue, TypeMismatchError, is_truthy, type_name, values_equal
from .common import EvalFunc, require_number, token_kind

if TYPE_CHECKING:
    from ..interpreter import Interpreter

_SYMBOLS = {
    'SUM': '+',
    'SUB': '-',
    'MUL': '*',
    'DIV': '/',
    'MOD': '%',
    'POW': '**',
    'LESS': '<',
    'GREAT': '>',
    'EQUAL': '==',
}

def eval_binary(children: List[Node], interp: 'Interpreter', eval_func: EvalFunc) -> BrValue:
    lhs_node, op, rhs_node = children
    kind = token_kind(op)

    if kind in ('AND', 'OR'):
        return eval_logical(kind, lhs_node, rhs_node, interp, eval_func)

    lhs = eval_func(lhs_node, interp)
    rhs = eval_func(rhs_node, interp)
    return apply_binary_operator(kind, lhs, rhs)

def eval_logical(kind: str, lhs_node: Node, rhs_node: Node, interp: 'Interpreter', eval_func: EvalFunc) -> BrValue:
    """Short-circuit `&&`/`||`: the deciding operand's value is the result."""
    lhs = eval_func(lhs_node, interp)

    if kind == 'AND':
        return eval_func(rhs_node, interp) if is_truthy(lhs) else lhs

    return lhs if is_truthy(lhs) else eval_func(rhs_node, interp)

def eval_unary(op: Token, rhs_node: Node, interp: 'Interpreter', eval_func: EvalFunc) -> BrValue:
    rhs = eval_func(rhs_node, interp)

    match token_kind(op):
        case 'NEG':
            return BrNum(-require_number(rhs, '-'))
        case 'NOT':
            return BrBool(not is_truthy(rhs))
        case other:
            raise TypeMismatchError(f"Unsupported unary op {other}")

def apply_binary_operator(kind: str, lhs: BrValue, rhs: BrValue) -> BrValue:
    if kind == 'EQUAL':
        return BrBool(values_equal(lhs, rhs))

    if kind == 'SUM' and isinstance(lhs, BrString) and isinstance(rhs, BrString):
        return BrString(lhs.value + rhs.value)

    symbol = _SYMBOLS.get(kind, kind)

    if not isinstance(lhs, BrNum) or not isinstance(rhs, BrNum):
        raise TypeMismatchError(
            f"Unsupported operand types for {symbol}: {type_name(lhs)} and {type_name(rhs)}"
        )

    a, b = lhs.value, rhs.value

    match kind:
        case 'SUM':
            return BrNum(a + b)
        case 'SUB':
            return BrNum(a - b)
        case 'MUL':
            return BrNum(a * b)
        case 'DIV':
            return BrNum(_divide(a, b))
        case 'MOD':
            return BrNum(_modulo(a, b))
        case 'POW':
            return BrNum(_power(a, b))
        case 'LESS':
            return BrBool(a < b)
        case 'GREAT':
            return BrBool(a > b)

    raise TypeMismatchError(f"Unknown operator {symbol}")

def _divide(a: float, b: float) -> float:
    if b != 0:
        return a / b

    if a == 0 or math.isnan(a):
        return math.nan

    return math.copysign(math.inf, a) * math.copysign(1.0, b)

def _modulo(a: float, b: float) -> float:
    # sign follows the dividend
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan

def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        if a < 0 and b.is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 ** negative, or a negative base with a fractional exponent
        return math.inf if a == 0 else math.nan
