"""sizederive - SizedOnDisk implementation generator for Rust-style structs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sizederive")
except PackageNotFoundError:
    __version__ = "(local)"
