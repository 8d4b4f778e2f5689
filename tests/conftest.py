from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

for path in (BASE_DIR, SRC_DIR):
    if str(path) not in sys.path:
        sys.path.append(str(path))


@pytest.fixture(autouse=True)
def _no_py_trace(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's BRASH_DEBUG_PY_TRACE from leaking into error output checks."""
    monkeypatch.delenv("BRASH_DEBUG_PY_TRACE", raising=False)


@pytest.fixture
def interp():
    from tests.support.harness import make_interpreter

    return make_interpreter()


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if two parametrized scenarios share an id."""
    del session
    del config

    counts: Dict[str, int] = {}
    for item in items:
        counts[item.nodeid] = counts.get(item.nodeid, 0) + 1

    duplicates = sorted(nodeid for nodeid, count in counts.items() if count > 1)
    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
    raise pytest.UsageError(
        "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
    )
