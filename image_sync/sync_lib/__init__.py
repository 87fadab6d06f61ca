"""Shared helpers for the folder image sync toolchain."""

from . import config, log, errors, hashing, paths, imaging, normalizer  # noqa: F401

__all__ = [
    "config",
    "log",
    "errors",
    "hashing",
    "paths",
    "imaging",
    "normalizer",
]
