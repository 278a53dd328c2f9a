"""Utilities for retrieving and validating the package version."""

from importlib import metadata

from packaging.version import InvalidVersion, Version

_DISTRIBUTION = "aria-monitor"
_FALLBACK_VERSION = "0.1.0"


def _load_version() -> str:
    """Return the validated package version.

    The version is loaded from the installed distribution metadata and must
    conform to the ``MAJOR.MINOR.PATCH`` scheme.  Source checkouts without
    metadata report the development fallback.
    """

    try:
        raw_version = metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        raw_version = _FALLBACK_VERSION

    try:
        parsed = Version(raw_version)
    except InvalidVersion as exc:
        raise RuntimeError(
            f"Invalid version string for '{_DISTRIBUTION}': "
            f"{raw_version!r}. Expected a semantic version."
        ) from exc

    if len(parsed.release) != 3:
        raise RuntimeError(
            f"The '{_DISTRIBUTION}' version must follow the MAJOR.MINOR.PATCH format. "
            f"Found: {raw_version!r}."
        )

    return raw_version


__version__ = _load_version()

__all__ = ["__version__"]
