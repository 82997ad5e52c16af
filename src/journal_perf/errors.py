"""
Error Taxonomy - Exceptions Raised by the Performance Layer.

Only argument and configuration validation raises. Routine outcomes
(cache misses, unknown keys, work enqueued after teardown) return a
sentinel instead.
"""

from __future__ import annotations


class PerfEngineError(Exception):
    """Base class for all performance layer errors."""
    pass


class InvalidArgument(PerfEngineError, ValueError):
    """Raised when a call receives an out-of-range argument (e.g. negative TTL)."""
    pass


class InvalidConfiguration(PerfEngineError, ValueError):
    """Raised when a component is configured inconsistently (e.g. zero item extent)."""
    pass
