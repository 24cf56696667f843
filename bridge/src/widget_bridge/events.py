"""
Minimal event emitter used by widget models and views.

Listeners are kept per event name in registration order. `on()` hands back a
Subscription so the listener can detach itself without holding a reference to
the callback.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class Subscription:
    """Handle for a single listener registered with `EventEmitter.on`."""

    def __init__(self, emitter: "EventEmitter", event: str, callback: Listener):
        self.emitter = emitter
        self.event = event
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self.emitter._remove_subscription(self)

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"<Subscription {self.event!r} {state}>"


class EventEmitter:
    """
    Synchronous event dispatch.

    A listener that raises is logged and skipped; the remaining listeners
    for the event still run.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Subscription]] = {}

    def on(self, event: str, callback: Listener) -> Subscription:
        subscription = Subscription(self, event, callback)
        self._listeners.setdefault(event, []).append(subscription)
        return subscription

    def once(self, event: str, callback: Listener) -> Subscription:
        """Register a listener that detaches itself after the first call."""
        subscription: Optional[Subscription] = None

        def _fire_once(*args, **kwargs):
            subscription.cancel()
            return callback(*args, **kwargs)

        subscription = self.on(event, _fire_once)
        return subscription

    def off(self, event: Optional[str] = None, callback: Optional[Listener] = None) -> None:
        """
        Remove listeners.

        With no arguments every listener is removed; with only `event` all
        listeners of that event are removed.
        """
        events = [event] if event is not None else list(self._listeners.keys())
        for name in events:
            for subscription in list(self._listeners.get(name, [])):
                if callback is None or subscription.callback is callback:
                    subscription.cancel()

    def trigger(self, event: str, *args, **kwargs) -> None:
        for subscription in list(self._listeners.get(event, [])):
            if not subscription.active:
                continue
            try:
                subscription.callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Listener for '{event}' on {self!r} failed: {e}", exc_info=True)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _remove_subscription(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.event)
        if not listeners:
            return
        try:
            listeners.remove(subscription)
        except ValueError:
            pass
        if not listeners:
            del self._listeners[subscription.event]
