"""Errors raised while decoding BEACON link dumps."""

from __future__ import annotations


class MetaLineError(ValueError):
    """A header line is not '#' NAME separator value."""


class LinkLineError(ValueError):
    """A link line does not fit the configured dialect."""


class BeaconError(ValueError):
    """A decoding failure, tagged with the line it happened on.

    ``cause`` is the underlying MetaLineError, LinkLineError, or source
    error (OSError, UnicodeDecodeError); it is also chained as
    ``__cause__``.
    """

    def __init__(self, line: int, cause: Exception) -> None:
        super().__init__(f"line {line}: {cause}")
        self.line = line
        self.cause = cause
