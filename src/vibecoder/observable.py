"""Synchronous change notification.

Models extend ChangeNotifier and call notify_listeners() after every
mutation. Listeners run on the caller's thread, in registration order,
before the mutating call returns.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from vibecoder.logging import get_logger

_log = get_logger("observable")

Listener = Callable[[], None]


@dataclass(eq=False)
class Subscription:
    """Token returned by subscribe(); call unsubscribe() to stop delivery."""

    _notifier: ChangeNotifier | None
    _callback: Listener
    _active: bool = field(default=True, init=False)

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._notifier is not None:
            self._notifier._remove(self)
            self._notifier = None


class ChangeNotifier:
    """Observer base class with explicit subscription tokens."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._disposed = False

    @property
    def has_listeners(self) -> bool:
        return bool(self._subscriptions)

    @property
    def listener_count(self) -> int:
        return len(self._subscriptions)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def subscribe(self, callback: Listener) -> Subscription:
        """Register a zero-argument callback.

        Returns:
            A Subscription token. The same callback may be registered more
            than once; each registration gets its own token.
        """
        if self._disposed:
            raise RuntimeError(f"{type(self).__name__} was used after being disposed")
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def notify_listeners(self) -> None:
        """Deliver a change event to every current listener.

        A listener that raises is logged and does not stop delivery to the
        remaining listeners.
        """
        if self._disposed:
            return
        # Snapshot so listeners may unsubscribe during delivery
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription._callback()
            except Exception:
                _log.exception("Listener error in %s", type(self).__name__)

    def dispose(self) -> None:
        """Drop every listener. Further notifications are ignored."""
        for subscription in list(self._subscriptions):
            subscription._active = False
            subscription._notifier = None
        self._subscriptions.clear()
        self._disposed = True
