"""Convenience re-exports for test helpers."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Tuple

_MODULE_EXPORTS: Tuple[Tuple[str, Iterable[str]], ...] = (
    (
        "records",
        (
            "AGW_LINE",
            "CENTER_LINE",
            "MEARTS_LINE",
            "STARS_LINE",
            "build_csv_line",
        ),
    ),
    (
        "events",
        (
            "EPOCH",
            "build_daily_metric",
            "build_test_event",
            "events_for",
        ),
    ),
)

_NAME_TO_MODULE: Dict[str, str] = {
    name: module for module, names in _MODULE_EXPORTS for name in names
}

__all__ = [name for _, names in _MODULE_EXPORTS for name in names]


def __getattr__(name: str) -> Any:
    try:
        module_name = _NAME_TO_MODULE[name]
    except KeyError as exc:  # pragma: no cover - standard AttributeError path
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from exc

    module = importlib.import_module(f".{module_name}", __name__)
    return getattr(module, name)


def __dir__() -> List[str]:
    return sorted(set(__all__) | set(globals()))


if TYPE_CHECKING:
    from .events import EPOCH, build_daily_metric, build_test_event, events_for
    from .records import AGW_LINE, CENTER_LINE, MEARTS_LINE, STARS_LINE, build_csv_line
