"""
Resource Registry - Deterministic Release of Scoped Resources.

Tracks resources a scope acquired (timers, image handles, object URLs,
open files) and releases them all on dispose_all(). Used as a context
manager it releases on every exit path, independent of garbage
collection.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from journal_perf.errors import InvalidArgument

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Method names tried, in order, when no release callback is given
RELEASE_METHODS = ("dispose", "close", "cancel", "release")


class ResourceRegistry:
    """
    Scope-owned registry of releasable resources.

    Usage:
        with ResourceRegistry() as scope:
            saver = scope.register(Debouncer(store.save, 0.3))
            url = scope.register("blob:chart-42", release=revoke_object_url)
            ...
        # saver disposed and url revoked here, even on error
    """

    def __init__(self, name: str = "scope") -> None:
        self.name = name
        self._resources: List[Tuple[Any, Callable[[], Any]]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, resource: object) -> bool:
        return any(r is resource for r, _ in self._resources)

    def register(
        self,
        resource: R,
        release: Optional[Callable[[R], Any]] = None,
    ) -> R:
        """
        Track a resource for release.

        Args:
            resource: Resource to track
            release: Called with the resource on release; defaults to the
                resource's own dispose()/close()/cancel()/release() method

        Returns:
            The resource, for inline use

        Raises:
            InvalidArgument: If no release callback can be determined
        """
        releaser = self._releaser(resource, release)

        if self._disposed:
            # Late registration after teardown: release straight away
            logger.debug(f"{self.name}: register after dispose, releasing immediately")
            self._release_one(resource, releaser)
            return resource

        self._resources.append((resource, releaser))
        return resource

    def unregister(self, resource: object, release: bool = False) -> bool:
        """
        Stop tracking a resource.

        Args:
            resource: Previously registered resource
            release: Release it now as well

        Returns:
            True if the resource was registered
        """
        for i, (tracked, releaser) in enumerate(self._resources):
            if tracked is resource:
                del self._resources[i]
                if release:
                    self._release_one(tracked, releaser)
                return True
        return False

    def dispose_all(self) -> int:
        """
        Release every tracked resource, newest first. Idempotent.

        A failing release is logged and does not stop the others.

        Returns:
            Number of resources released successfully
        """
        resources, self._resources = self._resources, []
        self._disposed = True

        released = 0
        for resource, releaser in reversed(resources):
            if self._release_one(resource, releaser):
                released += 1

        if resources:
            logger.debug(f"{self.name}: released {released}/{len(resources)} resources")
        return released

    def __enter__(self) -> "ResourceRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose_all()

    def _releaser(
        self,
        resource: Any,
        release: Optional[Callable[[Any], Any]],
    ) -> Callable[[], Any]:
        if release is not None:
            return lambda: release(resource)

        for method_name in RELEASE_METHODS:
            method = getattr(resource, method_name, None)
            if callable(method):
                return method

        raise InvalidArgument(
            f"{type(resource).__name__} has no {'/'.join(RELEASE_METHODS)} method; "
            "pass release="
        )

    def _release_one(self, resource: Any, releaser: Callable[[], Any]) -> bool:
        try:
            releaser()
            return True
        except Exception:
            logger.exception(f"{self.name}: failed to release {resource!r}")
            return False
