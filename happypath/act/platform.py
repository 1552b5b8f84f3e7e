"""Host-side collaborators: the review prompt UI, UI-thread dispatch, app version.

The platform prompt is fire-and-forget. Issuing the request says nothing about
whether the platform actually showed anything; it may decline silently once its
own per-period quota is used up.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

# A UI dispatcher runs the given task on whatever context may present UI
UIDispatcher = Callable[[Callable[[], None]], None]

VersionProvider = Callable[[], "str | None"]


class ReviewPlatform(Protocol):
    """Platform review prompt capability."""

    def foreground_scene(self) -> Any | None:
        """Return the active foreground UI context, or None if there is none."""
        ...

    def request_review(self, scene: Any) -> None:
        """Ask the platform to show its review prompt in ``scene``. No result."""
        ...


def run_immediately(task: Callable[[], None]) -> None:
    """Dispatcher for hosts that already call the engine from their UI thread."""
    task()


class QueuedDispatcher:
    """Collects tasks from any thread for the host's UI loop to run.

    The host calls ``drain()`` from its UI thread (e.g. once per event loop
    tick). Tasks run in submission order.
    """

    def __init__(self) -> None:
        self._tasks: deque[Callable[[], None]] = deque()
        self._lock = threading.Lock()

    def __call__(self, task: Callable[[], None]) -> None:
        with self._lock:
            self._tasks.append(task)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._tasks)

    def drain(self) -> int:
        """Run every queued task, including ones queued while draining.

        Returns:
            Number of tasks run.
        """
        n_run = 0
        while True:
            with self._lock:
                if not self._tasks:
                    return n_run
                task = self._tasks.popleft()
            task()
            n_run += 1


class RecordingPlatform:
    """ReviewPlatform that records requests instead of showing UI.

    Used for tests, dry runs and offline simulation. Set ``scene_available``
    to False to mimic an app with no foreground window.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        scene_available: bool = True,
    ) -> None:
        self.clock = clock or datetime.now
        self.scene_available = scene_available
        self.requests: list[datetime] = []

    def foreground_scene(self) -> Any | None:
        return "foreground" if self.scene_available else None

    def request_review(self, scene: Any) -> None:
        self.requests.append(self.clock())
        logger.debug(f"Review requested in scene {scene!r}")

    @property
    def request_count(self) -> int:
        return len(self.requests)


def static_version(value: str | None) -> VersionProvider:
    """Version provider for hosts that know their version up front."""
    return lambda: value


def distribution_version(dist_name: str) -> VersionProvider:
    """Version provider reading an installed distribution's metadata.

    Reports None when the distribution is not installed.
    """

    def provider() -> str | None:
        try:
            return version(dist_name)
        except PackageNotFoundError:
            logger.debug(f"Distribution {dist_name!r} not installed; version unknown")
            return None

    return provider
