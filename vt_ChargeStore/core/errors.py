# vt_ChargeStore/core/errors.py
from __future__ import annotations
from pathlib import Path


class StoreOpenError(OSError):
    """The charge log could not be created or opened for append."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(cause.errno, f"Could not open charge log {path}: {cause.strerror or cause}")


class StoreClosedError(RuntimeError):
    """An operation was issued on a store after close()."""
