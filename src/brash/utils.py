from __future__ import annotations

import os

DEBUG_PY_TRACE_ENV = "BRASH_DEBUG_PY_TRACE"

def debug_py_trace_enabled() -> bool:
    return os.environ.get(DEBUG_PY_TRACE_ENV, "").lower() in ("1", "true", "yes", "on")

def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        os.environ.pop(DEBUG_PY_TRACE_ENV, None)
