"""Private per-user reading lists storage."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("readinglists")
except PackageNotFoundError:
    # Development environment fallback
    __version__ = "0.1.0-dev"

__license__ = "MIT"
