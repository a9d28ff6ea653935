"""Exceptions raised by the fastjump core.

No-match conditions are not errors: they resolve to the ``"."`` sentinel.
Plain ``OSError`` from file access propagates unchanged.
"""

from __future__ import annotations


class FastjumpError(Exception):
    """Base class for failures the CLI reports and exits non-zero on."""


class StoreCorruptError(FastjumpError):
    """The store file exists but cannot be decoded."""


class TabProtocolError(FastjumpError):
    """A tab-completion entry does not match what the resolver produced."""


class EnvironmentCheckError(FastjumpError):
    """The shell integration has not been sourced."""


class InstallError(FastjumpError):
    """The installer refused the requested options or target."""
