"""Event subscriptions replacing global keyboard and page-unload listeners."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

KEY_EVENT = "key"
UNLOAD_EVENT = "unload"


@dataclass
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class UnloadEvent:
    """Returning with `blocked` set asks the host to confirm navigation."""
    blocked: bool = False
    message: str = ""


class Subscription:
    def __init__(self, hub: "EventHub", name: str, handler: Callable[[Any], Any]):
        self._hub = hub
        self.name = name
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._hub._remove(self)
            self.active = False


class EventHub:
    def __init__(self):
        self._handlers: Dict[str, List[Subscription]] = defaultdict(list)

    def subscribe(self, name: str, handler: Callable[[Any], Any]) -> Subscription:
        subscription = Subscription(self, name, handler)
        self._handlers[name].append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        handlers = self._handlers.get(subscription.name, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def emit(self, name: str, event: Any) -> Any:
        for subscription in list(self._handlers.get(name, [])):
            try:
                subscription.handler(event)
            except Exception as e:
                logger.error(f"Handler for '{name}' failed: {e}", exc_info=True)
        return event

    def listener_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))
