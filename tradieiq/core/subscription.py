"""
Cancellable push-stream primitives.

A ``Subscription`` is the handle returned by every ``on_change``/``subscribe``
call. ``ListenerRegistry`` is the emitting side used by the local backends
and by the job cache to fan pushes out to their listeners.
"""

import logging
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """
    Handle for a live stream of pushes.

    ``cancel()`` is idempotent and runs the teardown hook exactly once.
    Usable as a context manager so the stream is torn down when the
    block exits.
    """

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None, name: str = "subscription"):
        self._on_cancel = on_cancel
        self._active = True
        self.name = name

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        hook, self._on_cancel = self._on_cancel, None
        if hook is not None:
            hook()
        logger.debug(f"Cancelled {self.name}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"<Subscription {self.name} {state}>"


class ListenerRegistry(Generic[T]):
    """Fan-out of pushes to callbacks, each behind its own Subscription."""

    def __init__(self, name: str = "listener", on_empty: Optional[Callable[[], None]] = None):
        self._name = name
        self._on_empty = on_empty
        self._entries: List[Tuple[Subscription, Callable[[T], Any]]] = []

    def add(self, callback: Callable[[T], Any]) -> Subscription:
        def _remove() -> None:
            if entry in self._entries:
                self._entries.remove(entry)
                if not self._entries and self._on_empty is not None:
                    self._on_empty()

        subscription = Subscription(on_cancel=_remove, name=self._name)
        entry = (subscription, callback)
        self._entries.append(entry)
        return subscription

    def emit(self, value: T) -> int:
        """
        Deliver ``value`` to every listener still active at delivery time.

        Listeners cancelled by an earlier callback in the same emit are
        skipped. A listener that raises is logged and does not stop
        delivery to the others, nor reach the caller that triggered the push.

        Returns:
            Number of callbacks that completed
        """
        delivered = 0
        for subscription, callback in list(self._entries):
            if not subscription.active:
                continue
            try:
                callback(value)
            except Exception:
                logger.exception(f"Listener on {self._name} failed")
                continue
            delivered += 1
        return delivered

    def __len__(self) -> int:
        return len(self._entries)
