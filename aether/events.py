"""Events, the module interface and the publish/subscribe event bus."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar


class EventType(str, Enum):
    """Standard event types carried on the event bus."""

    CORE_START = "core.start"
    CORE_STOP = "core.stop"
    CORE_STATUS = "core.status"
    MODULE_STOPPED = "MODULE_STOPPED"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Event:
    """An event published on the bus.

    ``target`` names the receiving module; an empty target reaches every
    subscriber.
    """

    source: str
    target: str
    type: str
    data: Any = None


class Module(ABC):
    """A module that can be plugged into the system and receive events."""

    @abstractmethod
    def on_event(self, event: Event) -> None:
        """Receive an event published on the bus."""

    @abstractmethod
    def name(self) -> str:
        """Return the module name used for targeted events."""

    def start(self) -> None:
        """Start the module. Does nothing by default."""

    def is_running(self) -> bool:
        """Return whether the module is running."""
        return False


class EventBus:
    """Keeps the subscribed modules and delivers events to them."""

    _instance: ClassVar[EventBus | None] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._subscribers: list[Module] = []
        self._lock = threading.Lock()

    @classmethod
    def instance(cls) -> EventBus:
        """Return the shared bus, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    def subscribe(self, module: Module) -> None:
        """Register ``module`` to receive events."""
        with self._lock:
            self._subscribers.append(module)

    def unsubscribe(self, module: Module) -> None:
        """Remove every registration of ``module``."""
        with self._lock:
            self._subscribers = [m for m in self._subscribers if m is not module]

    @property
    def subscribers(self) -> tuple[Module, ...]:
        """The currently subscribed modules, in subscription order."""
        with self._lock:
            return tuple(self._subscribers)

    def publish(self, event: Event) -> list[threading.Thread]:
        """Deliver ``event`` to each matching subscriber on its own thread.

        Returns the started delivery threads so callers may wait on them.
        """
        threads: list[threading.Thread] = []
        with self._lock:
            for module in self._subscribers:
                if event.target and module.name() != event.target:
                    continue
                thread = threading.Thread(
                    target=module.on_event,
                    args=(event,),
                    daemon=True,
                    name=f"event-{event.type}",
                )
                thread.start()
                threads.append(thread)
        return threads