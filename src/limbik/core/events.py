"""EventBus for decoupled publish/subscribe communication.

The IK solver reports chain setup problems and per-frame results here so
hosts can route them to whatever diagnostics sink they use.
"""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Chain setup
    CHAIN_BUILT = auto()        # data: name (str), joint_count (int), total_length (float)
    CHAIN_REJECTED = auto()     # data: name (str), error (ChainConfigError)
    CONFIG_WARNING = auto()     # data: name (str), message (str)

    # Frame events
    CHAIN_SOLVED = auto()       # data: stats (ChainStats)
    FRAME_UPDATE = auto()       # data: stats (list[ChainStats])


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in self._handlers[event_type]:
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
