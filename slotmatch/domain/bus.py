"""In-process event bus with optional background delivery."""

from __future__ import annotations

import contextvars
import logging
from collections import defaultdict
from concurrent.futures import Executor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Publish/subscribe bus for domain events.

    Handlers are called in registration order. Without an executor they run
    synchronously on the publisher's thread; with one, each handler is
    submitted to it and ``publish`` returns immediately. Either way a
    failing handler is logged and never propagates to the publisher.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._subscribers: dict[type, list[Callable]] = defaultdict(list)
        self._executor = executor

    def subscribe(self, event_type: type, handler: Callable) -> None:
        self._subscribers[event_type].append(handler)

    def publish(self, event: Any) -> None:
        for handler in self._subscribers.get(type(event), []):
            if self._executor is None:
                self._deliver(handler, event)
                continue
            try:
                context = contextvars.copy_context()
                self._executor.submit(context.run, self._deliver, handler, event)
            except RuntimeError:
                logger.exception(
                    "Could not dispatch %s to %s", type(event).__name__, _name(handler)
                )

    @staticmethod
    def _deliver(handler: Callable, event: Any) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Handler %s failed for %s", _name(handler), type(event).__name__
            )


def _name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", repr(handler))
