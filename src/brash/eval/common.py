from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from lark import Token

from ..tree import Node, is_token
from ..types import BrNum, BrString, BrValue, Escape, TypeMismatchError, type_name

if TYPE_CHECKING:
    from ..interpreter import Interpreter

EvalFunc = Callable[[Node, 'Interpreter'], BrValue]
ExecFunc = Callable[[Node, 'Interpreter'], Optional[Escape]]

def token_kind(node: Any) -> Optional[str]:
    if not is_token(node):
        return None
    tok: Token = node
    return str(tok.type)

def expect_ident_token(node: Any, context: str) -> str:
    if is_token(node) and token_kind(node) == 'IDENT':
        return str(node.value)

    raise TypeMismatchError(f"{context} must be an identifier")

def token_number(t: Token, _interp: 'Interpreter') -> BrNum:
    return BrNum(float(t.value))

def token_string(t: Token, _interp: 'Interpreter') -> BrString:
    return BrString(str(t.value))

def require_number(value: BrValue, op: str) -> float:
    if isinstance(value, BrNum):
        return value.value

    raise TypeMismatchError(f"'{op}' expects num operands; got {type_name(value)}")

def integer_value(value: BrValue) -> Optional[int]:
    """The int held by an integer-valued num, else None."""
    if isinstance(value, BrNum) and value.is_integer():
        return int(value.value)

    return None
