"""Registry change notification."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Executor
from typing import Any

import structlog

logger = structlog.stdlib.get_logger(__name__)

REGISTRY_DID_CHANGE = "registry.did_change"

ChangeHandler = Callable[[Any], None]


class ChangeNotifier:
    """Publish/subscribe list of registry change handlers.

    Handlers receive the changed registry and nothing else. Without an
    executor they run inline in subscription order, so a slow handler
    delays the caller of publish(). With one, publish() submits each
    handler and returns without waiting for it. Neither a failing handler
    nor a failing submit is raised to the publisher.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._handlers: tuple[ChangeHandler, ...] = ()
        self._executor = executor
        self._lock = threading.Lock()

    def subscribe(self, handler: ChangeHandler) -> None:
        """Subscribe a handler to registry changes."""
        with self._lock:
            self._handlers = (*self._handlers, handler)

    def unsubscribe(self, handler: ChangeHandler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        with self._lock:
            if handler not in self._handlers:
                return False
            handlers = list(self._handlers)
            handlers.remove(handler)
            self._handlers = tuple(handlers)
            return True

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def publish(self, registry: Any) -> None:
        """Notify every subscribed handler that registry changed."""
        for handler in self._handlers:
            if self._executor is None:
                self._deliver(handler, registry)
                continue
            try:
                self._executor.submit(self._deliver, handler, registry)
            except Exception:
                # e.g. RuntimeError from an executor that has been shut down
                logger.exception(
                    "change handler dispatch failed",
                    event_type=REGISTRY_DID_CHANGE,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )

    @staticmethod
    def _deliver(handler: ChangeHandler, registry: Any) -> None:
        try:
            handler(registry)
        except Exception:
            logger.exception(
                "change handler failed",
                event_type=REGISTRY_DID_CHANGE,
                handler=getattr(handler, "__qualname__", repr(handler)),
            )
