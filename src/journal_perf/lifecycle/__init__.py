"""
Lifecycle Package - Explicit Teardown.

    - ResourceRegistry: register()/unregister()/dispose_all(), usable as a
      context manager so release happens on all exit paths
"""

from journal_perf.lifecycle.registry import ResourceRegistry

__all__ = ["ResourceRegistry"]
