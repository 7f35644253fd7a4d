# Quire Sheets
# File: errors.py
# Version: v1

"""Error kinds raised by Quire.

Every error derives from ``QuireError`` and also from the closest builtin so
callers can catch either.
"""

from __future__ import annotations


class QuireError(Exception):
    """Base class for all Quire errors."""


class ConfigError(QuireError):
    """A required setup value is missing or invalid."""


class ShapeError(QuireError, TypeError):
    """A value does not have the structure an operation requires."""


class RangeError(QuireError, ValueError):
    """A row index argument is out of range (negative)."""


class TransportError(QuireError, RuntimeError):
    """A GridStore call failed.

    The underlying exception, when there is one, is chained as ``__cause__``.
    """
