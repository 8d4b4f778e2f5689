from __future__ import annotations

import importlib
from typing import Dict, List, Optional

from .types import (
    BrDict,
    BrString,
    BrValue,
    BrVec,
    CallArityError,
    MethodNotFoundError,
    NativeCallable,
    NativeFn,
)

_STDLIB_INITIALIZED = False

MethodRegistry = Dict[str, NativeFn]

class Builtins:
    vec_methods: MethodRegistry = {}
    dict_methods: MethodRegistry = {}
    string_methods: MethodRegistry = {}
    stdlib_functions: Dict[str, NativeFn] = {}

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_stdlib hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("brash.stdlib")
    _STDLIB_INITIALIZED = True

def register_stdlib(name: str, *, arity: Optional[int] = None):
    def dec(fn: NativeCallable):
        Builtins.stdlib_functions[name] = NativeFn(name=name, arity=arity, func=fn)
        return fn

    return dec

def register_method(registry: MethodRegistry, name: str, *, arity: Optional[int] = None):
    """Methods receive the receiver as their first argument; `arity` excludes it."""
    def dec(fn: NativeCallable):
        registry[name] = NativeFn(name=name, arity=arity, func=fn)
        return fn

    return dec

def register_vec(name: str, *, arity: Optional[int] = None):
    return register_method(Builtins.vec_methods, name, arity=arity)

def register_dict(name: str, *, arity: Optional[int] = None):
    return register_method(Builtins.dict_methods, name, arity=arity)

def register_string(name: str, *, arity: Optional[int] = None):
    return register_method(Builtins.string_methods, name, arity=arity)

def resolve_method(recv: BrValue, name: str) -> NativeFn:
    """Look up a builtin method for the receiver's type and bind the receiver."""
    registry_by_type: Dict[type, MethodRegistry] = {
        BrVec: Builtins.vec_methods,
        BrDict: Builtins.dict_methods,
        BrString: Builtins.string_methods,
    }

    registry = registry_by_type.get(type(recv))
    if registry:
        method = registry.get(name)
        if method is not None:
            return method.bind(recv)

    raise MethodNotFoundError(recv, name)

def call_native(fn: NativeFn, args: List[BrValue], interp) -> BrValue:
    if fn.arity is not None and len(args) != fn.arity:
        raise CallArityError(fn, fn.arity, len(args))

    if fn.receiver is not None:
        args = [fn.receiver, *args]

    return fn.func(interp, args)
