from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from .interpreter import Interpreter

# ---------- Value Model ----------

@dataclass
class BrNil:
    def __str__(self) -> str:
        return "nil"

@dataclass
class BrBool:
    value: bool
    def __str__(self) -> str:
        return "true" if self.value else "false"

@dataclass
class BrNum:
    value: float
    def __str__(self) -> str:
        v = self.value
        if math.isnan(v):
            return "NaN"
        if math.isinf(v):
            return "inf" if v > 0 else "-inf"
        # shortest round-trip digits, always positional (1e-07 -> 0.0000001)
        text = format(Decimal(repr(v)), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text

    def is_integer(self) -> bool:
        return math.isfinite(self.value) and math.trunc(self.value) == self.value

@dataclass(frozen=True)
class BrString:
    value: str
    def __str__(self) -> str:
        return self.value

@dataclass(eq=False)
class BrVec:
    """Shared, mutable sequence: every binding of the same BrVec aliases `items`."""
    items: List['BrValue'] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        return values_equal(self, other)

    def __str__(self) -> str:
        return "[" + ", ".join(quoted(x) for x in self.items) + "]"

@dataclass(eq=False)
class BrDict:
    """Shared, mutable string-keyed mapping, same aliasing rules as BrVec."""
    slots: Dict[str, 'BrValue'] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        return values_equal(self, other)

    def __str__(self) -> str:
        pairs = []

        for k, v in self.slots.items():
            pairs.append(f"{k}: {quoted(v)}")

        return "{" + ", ".join(pairs) + "}"

@dataclass(frozen=True)
class BrRange:
    lo: int
    hi: int
    def __str__(self) -> str:
        return f"{self.lo}..{self.hi}"

    @classmethod
    def build(cls, lo: int, hi: int, inclusive: bool) -> 'BrRange':
        return cls(lo, hi + 1 if inclusive else hi)

    def __iter__(self):
        return iter(range(self.lo, self.hi))

    def __len__(self) -> int:
        return max(0, self.hi - self.lo)

@dataclass(eq=False)
class UserFn:
    name: Optional[str]
    params: List[str]
    body: Any                                   # block node
    captured: Optional[List[Dict[str, 'Var']]] = None  # closure frame chain

    def __eq__(self, other: object) -> bool:
        return values_equal(self, other)

    def __str__(self) -> str:
        if self.name is None:
            return "<lambda func>"
        return f"<func {self.name}>"

NativeCallable = Callable[['Interpreter', List['BrValue']], 'BrValue']

@dataclass(eq=False)
class NativeFn:
    name: str
    arity: Optional[int]
    func: NativeCallable
    receiver: Optional['BrValue'] = None

    def __eq__(self, other: object) -> bool:
        return False

    def __str__(self) -> str:
        return f"<native func {self.name}>"

    def bind(self, receiver: 'BrValue') -> 'NativeFn':
        return NativeFn(self.name, self.arity, self.func, receiver)

BrFunc: TypeAlias = UserFn | NativeFn

BrValue: TypeAlias = (
    BrNil
    | BrBool
    | BrNum
    | BrString
    | BrVec
    | BrDict
    | BrRange
    | UserFn
    | NativeFn
)

def is_truthy(value: BrValue) -> bool:
    match value:
        case BrNil():
            return False
        case BrBool(value=b):
            return b
        case _:
            return True

def quoted(value: BrValue) -> str:
    if isinstance(value, BrString):
        return f"'{value.value}'"
    return str(value)

def type_name(value: object) -> str:
    match value:
        case BrNil():
            return "nil"
        case BrBool():
            return "bool"
        case BrNum():
            return "num"
        case BrString():
            return "string"
        case BrVec():
            return "vec"
        case BrDict():
            return "dict"
        case BrRange():
            return "range"
        case UserFn() | NativeFn():
            return "func"
        case _:
            return type(value).__name__

def values_equal(lhs: object, rhs: object) -> bool:
    match (lhs, rhs):
        case (BrNil(), BrNil()):
            return True
        case (BrBool(value=a), BrBool(value=b)):
            return a == b
        case (BrNum(value=a), BrNum(value=b)):
            return a == b
        case (BrString(value=a), BrString(value=b)):
            return a == b
        case (BrRange(), BrRange()):
            return lhs.lo == rhs.lo and lhs.hi == rhs.hi
        case (BrVec(items=a), BrVec(items=b)):
            if len(a) != len(b):
                return False
            return all(values_equal(x, y) for x, y in zip(a, b))
        case (BrDict(slots=a), BrDict(slots=b)):
            if a.keys() != b.keys():
                return False
            return all(values_equal(v, b[k]) for k, v in a.items())
        case (UserFn(name=a), UserFn(name=b)):
            # anonymous funcs never compare equal, not even to themselves
            return a is not None and a == b
        case _:
            return False

# ---------- Environment entries ----------

@dataclass
class Var:
    value: BrValue
    is_exported: bool = False

# ---------- Escape signals ----------

@dataclass(frozen=True)
class Break:
    pass

@dataclass(frozen=True)
class Continue:
    pass

@dataclass(frozen=True)
class Return:
    value: BrValue

Escape: TypeAlias = Break | Continue | Return

# ---------- Exceptions ----------

class BrashRuntimeError(Exception):
    line: Optional[int]

    def __init__(self, message: str):
        super().__init__(message)
        self.line = None

    def __str__(self) -> str:
        msg = super().__str__()

        if self.line is None:
            return msg

        return f"{msg} (line {self.line})"

class UnboundNameError(BrashRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"Name '{name}' is not bound")
        self.name = name

class TypeMismatchError(BrashRuntimeError):
    pass

class BadIndexError(BrashRuntimeError):
    pass

class IndexOutOfBoundsError(BrashRuntimeError):
    def __init__(self, index: int, length: int):
        super().__init__(f"Index {index} out of bounds for vec of length {length}")
        self.index = index
        self.length = length

class MissingKeyError(BrashRuntimeError):
    def __init__(self, key: str):
        super().__init__(f"Key '{key}' not found")
        self.key = key

class BadAssignTargetError(BrashRuntimeError):
    pass

class RangeTypeError(BrashRuntimeError):
    pass

class NotCallableError(BrashRuntimeError):
    def __init__(self, value: BrValue):
        super().__init__(f"Attempt to call non-function value of type {type_name(value)}")
        self.value = value

class CallArityError(BrashRuntimeError):
    def __init__(self, fn: BrFunc, expected: int, got: int):
        super().__init__(f"{fn} expects {expected} argument(s); got {got}")
        self.expected = expected
        self.got = got

class MethodNotFoundError(BrashRuntimeError):
    def __init__(self, recv: BrValue, name: str):
        super().__init__(f"{type_name(recv)} has no builtin method '{name}'")
        self.receiver = recv
        self.name = name

class ForBinderError(BrashRuntimeError):
    pass

class EscapeError(BrashRuntimeError):
    """An escape signal (break/continue/return) left the construct that handles it."""

class ProcessError(BrashRuntimeError):
    def __init__(self, message: str, cmd: Optional[str] = None):
        super().__init__(message)
        self.cmd = cmd
