"""Top-level package for :mod:`awkts` editing support.

The package exposes version metadata so host integrations can surface the
installed build.

Example:
    >>> from awkts import __version__
    >>> __version__.split(".")[0]
    '0'
"""

from importlib import metadata

try:
    __version__ = metadata.version("awkts")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

__all__ = ["__version__"]
