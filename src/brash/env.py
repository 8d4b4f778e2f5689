"""Environment stack: lexical frames of variables, innermost last."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional

from .types import BrString, BrValue, UnboundNameError, Var

Frame = Dict[str, Var]

class Stack:
    def __init__(self, frames: Optional[List[Frame]] = None):
        self.frames: List[Frame] = frames if frames is not None else [{}]

    def push(self) -> None:
        self.frames.append({})

    def pop(self) -> None:
        self.frames.pop()

    def depth(self) -> int:
        return len(self.frames)

    def define(self, name: str, val: BrValue | Var, exported: bool = False) -> None:
        var = val if isinstance(val, Var) else Var(val, exported)
        self.frames[-1][name] = var

    def get_var(self, name: str) -> Var:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]

        raise UnboundNameError(name)

    def get(self, name: str) -> BrValue:
        return self.get_var(name).value

    def set(self, name: str, val: BrValue) -> None:
        self.get_var(name).value = val

    def os_env(self) -> Dict[str, str]:
        env: Dict[str, str] = {}
        seen = set()

        # a shadowed binding is not visible, exported or not
        for frame in reversed(self.frames):
            for name, var in frame.items():
                if name in seen:
                    continue
                seen.add(name)

                if var.is_exported:
                    env[name] = str(var.value)

        return env

    def import_env(self, environ: Mapping[str, str]) -> None:
        outer = self.frames[0]

        for name, value in environ.items():
            outer[name] = Var(BrString(value))

    def capture(self) -> List[Frame]:
        """Share the current frame chain with a closure (bindings are not copied)."""
        return list(self.frames)

    @contextmanager
    def entered(self, frames: List[Frame]) -> Iterator[None]:
        saved = self.frames
        self.frames = frames

        try:
            yield
        finally:
            self.frames = saved
