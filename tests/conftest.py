from __future__ import annotations

import sys
from pathlib import Path
from textwrap import dedent

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
for _path in (SRC_ROOT, ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target


@pytest.fixture
def format_registry():
    """Restore the built-in position formats after the test."""

    from aria_monitor.ingestion import formats

    yield formats
    formats._clear_registry()


@pytest.fixture
def restore_root_logging():
    import logging

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
