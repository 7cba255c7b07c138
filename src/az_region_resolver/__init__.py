"""Azure region alias resolver."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("az-region-resolver")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
