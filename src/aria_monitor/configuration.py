"""Helpers to load project-level pipeline settings."""

from __future__ import annotations

from collections.abc import Mapping as ABCMapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from aria_monitor.errors import ConfigurationError
from aria_monitor.metrics.density import DEFAULT_BUCKET_WIDTH, DEFAULT_MAX_BUCKETS

__all__ = [
    "DEFAULT_BUCKET_WIDTH",
    "DEFAULT_MAX_BUCKETS",
    "PipelineSettings",
    "load_project_config",
    "load_settings",
]

_PROJECT_FILENAME = "pyproject.toml"
_TOOL_NAME = "aria_monitor"


def _as_dict(payload: ABCMapping[str, Any]) -> dict[str, Any]:
    """Recursively coerce TOML mappings into regular dictionaries."""

    result: dict[str, Any] = {}
    for key, value in payload.items():
        key_str = str(key)
        if isinstance(value, ABCMapping):
            result[key_str] = _as_dict(value)
        elif isinstance(value, list):
            result[key_str] = [
                _as_dict(item) if isinstance(item, ABCMapping) else item for item in value
            ]
        else:
            result[key_str] = value
    return result


def _resolve_pyproject_path(candidate: Path) -> Path | None:
    """Return the concrete ``pyproject.toml`` path for ``candidate`` if possible."""

    candidate = candidate.expanduser()
    if candidate.name == _PROJECT_FILENAME:
        return candidate
    if candidate.suffix:
        return None
    return candidate / _PROJECT_FILENAME


def _load_toml_mapping(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    if isinstance(data, ABCMapping):
        return _as_dict(data)
    return None


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Load the ``[tool.aria_monitor]`` section from ``pyproject.toml``."""

    pyproject_path = _resolve_pyproject_path(Path(path))
    if pyproject_path is None:
        return None

    pyproject_path = pyproject_path.expanduser().resolve(strict=False)
    pyproject_payload = _load_toml_mapping(pyproject_path)
    if not pyproject_payload:
        return None

    tool_section = pyproject_payload.get("tool")
    if not isinstance(tool_section, ABCMapping):
        return None

    section = tool_section.get(_TOOL_NAME)
    if not isinstance(section, ABCMapping):
        return None

    return _as_dict(section), pyproject_path


def _positive_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"'{key}' must be positive, got {value!r}")
    return float(value)


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"'{key}' must be positive, got {value!r}")
    return value


@dataclass(frozen=True)
class PipelineSettings:
    """Resolved settings for an :class:`~aria_monitor.pipeline.EventPipeline`."""

    input_format: str = "csv"
    density_bucket_width: timedelta = DEFAULT_BUCKET_WIDTH
    density_max_buckets: int = DEFAULT_MAX_BUCKETS
    logging: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "PipelineSettings":
        """Build settings from a ``[tool.aria_monitor]`` style mapping."""

        if not isinstance(payload, ABCMapping):
            raise ConfigurationError("Pipeline settings must be a mapping")

        input_format = payload.get("input_format", "csv")
        if not isinstance(input_format, str) or not input_format.strip():
            raise ConfigurationError(f"'input_format' must be a non-empty string, got {input_format!r}")

        density = payload.get("density", {})
        if not isinstance(density, ABCMapping):
            raise ConfigurationError("'density' must be a table")
        width = DEFAULT_BUCKET_WIDTH
        if "bucket_width_seconds" in density:
            width = timedelta(
                seconds=_positive_number(
                    density["bucket_width_seconds"], "density.bucket_width_seconds"
                )
            )
        max_buckets = DEFAULT_MAX_BUCKETS
        if "max_buckets" in density:
            max_buckets = _positive_int(density["max_buckets"], "density.max_buckets")

        logging_section = payload.get("logging", {})
        if not isinstance(logging_section, ABCMapping):
            raise ConfigurationError("'logging' must be a table")

        return cls(
            input_format=input_format.strip().lower(),
            density_bucket_width=width,
            density_max_buckets=max_buckets,
            logging=dict(logging_section),
        )

    def logging_config(self) -> dict[str, Any]:
        """Return a ``setup_logging`` payload with the default values filled in."""

        section = dict(self.logging)
        section.setdefault("level", "info")
        section.setdefault("output", "stderr")
        section.setdefault("format", "json")
        return {"logging": section}


def load_settings(path: Path | str | None = None) -> PipelineSettings:
    """Return the settings declared in ``path`` or the defaults when absent."""

    if path is None:
        path = Path.cwd()
    loaded = load_project_config(Path(path))
    if loaded is None:
        return PipelineSettings()
    config, _ = loaded
    return PipelineSettings.from_mapping(config)
