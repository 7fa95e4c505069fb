from __future__ import annotations


class PivotError(Exception):
    """Base class for pivot engine errors."""


class InputError(PivotError, ValueError):
    """Raised by eager configuration validation."""


class PivotCancelled(PivotError):
    """Raised when a running pivot computation is cancelled."""
