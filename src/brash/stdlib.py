"""Built-in natives (print, len, ...) and builtin methods, registered via brash.runtime."""

from __future__ import annotations

from typing import List

from .runtime import register_dict, register_stdlib, register_string, register_vec
from .types import (
    BadIndexError,
    BrBool,
    BrDict,
    BrNil,
    BrNum,
    BrRange,
    BrString,
    BrValue,
    BrVec,
    TypeMismatchError,
    type_name,
)

def _expect(value: BrValue, kind: type, fn: str, what: str):
    if not isinstance(value, kind):
        raise TypeMismatchError(f"{fn} expects {what}; got {type_name(value)}")
    return value

@register_stdlib("print")
def std_print(interp, args: List[BrValue]) -> BrNil:
    interp.write_line(" ".join(str(arg) for arg in args))
    return BrNil()

@register_stdlib("len", arity=1)
@register_vec("len", arity=0)
@register_dict("len", arity=0)
@register_string("len", arity=0)
def std_len(_interp, args: List[BrValue]) -> BrNum:
    value = args[0]

    match value:
        case BrString(value=s):
            return BrNum(float(len(s)))
        case BrVec(items=items):
            return BrNum(float(len(items)))
        case BrDict(slots=slots):
            return BrNum(float(len(slots)))
        case BrRange():
            return BrNum(float(len(value)))

    raise TypeMismatchError(f"len expects a string, vec, dict or range; got {type_name(value)}")

@register_stdlib("push", arity=2)
@register_vec("push", arity=1)
def std_push(_interp, args: List[BrValue]) -> BrNil:
    vec = _expect(args[0], BrVec, "push", "a vec")
    vec.items.append(args[1])
    return BrNil()

@register_stdlib("pop", arity=1)
@register_vec("pop", arity=0)
def std_pop(_interp, args: List[BrValue]) -> BrValue:
    vec = _expect(args[0], BrVec, "pop", "a vec")

    if not vec.items:
        raise BadIndexError("pop from empty vec")

    return vec.items.pop()

@register_stdlib("keys", arity=1)
@register_dict("keys", arity=0)
def std_keys(_interp, args: List[BrValue]) -> BrVec:
    d = _expect(args[0], BrDict, "keys", "a dict")
    return BrVec([BrString(k) for k in d.slots])

@register_stdlib("has", arity=2)
@register_dict("has", arity=1)
def std_has(_interp, args: List[BrValue]) -> BrBool:
    d = _expect(args[0], BrDict, "has", "a dict")
    key = _expect(args[1], BrString, "has", "a string key")
    return BrBool(key.value in d.slots)

@register_stdlib("str", arity=1)
def std_str(_interp, args: List[BrValue]) -> BrString:
    return BrString(str(args[0]))

@register_stdlib("num", arity=1)
def std_num(_interp, args: List[BrValue]) -> BrNum:
    value = args[0]

    if isinstance(value, BrNum):
        return value

    s = _expect(value, BrString, "num", "a string or num")

    try:
        return BrNum(float(s.value.strip()))
    except ValueError:
        raise TypeMismatchError(f"num cannot parse '{s.value}'") from None

@register_stdlib("type", arity=1)
def std_type(_interp, args: List[BrValue]) -> BrString:
    return BrString(type_name(args[0]))

@register_stdlib("split", arity=2)
@register_string("split", arity=1)
def std_split(_interp, args: List[BrValue]) -> BrVec:
    s = _expect(args[0], BrString, "split", "a string")
    sep = _expect(args[1], BrString, "split", "a string separator")

    if not sep.value:
        return BrVec([BrString(ch) for ch in s.value])

    return BrVec([BrString(part) for part in s.value.split(sep.value)])

@register_stdlib("trim", arity=1)
@register_string("trim", arity=0)
def std_trim(_interp, args: List[BrValue]) -> BrString:
    s = _expect(args[0], BrString, "trim", "a string")
    return BrString(s.value.strip())

@register_stdlib("lines", arity=1)
@register_string("lines", arity=0)
def std_lines(_interp, args: List[BrValue]) -> BrVec:
    s = _expect(args[0], BrString, "lines", "a string")
    return BrVec([BrString(line) for line in s.value.splitlines()])
