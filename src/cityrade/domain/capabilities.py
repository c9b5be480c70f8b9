"""Registry of named capability handlers.

Extensions are addressed by name and exchange :class:`CapabilityMessage` /
:class:`CapabilityReply` records with the core.  Handlers must be enabled
before they receive messages; registering does not enable them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cityrade.interfaces.capability import CapabilityHandler

logger = logging.getLogger(__name__)

WORLD_TICK_TOPIC = "world.tick"


@dataclass(frozen=True, slots=True)
class CapabilityMessage:
    """Message sent to a capability."""

    topic: str
    payload: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CapabilityReply:
    """Reply produced by a capability (or by the registry on its behalf)."""

    capability: str
    handled: bool
    payload: dict[str, object] = field(default_factory=dict)
    detail: str = ""


class CapabilityRegistry:
    """Holds handlers by name and routes messages to the enabled ones."""

    def __init__(self) -> None:
        self._handlers: dict[str, CapabilityHandler] = {}
        self._enabled: list[str] = []

    def register(self, handler: CapabilityHandler) -> None:
        if handler.name in self._handlers:
            raise ValueError(f"capability {handler.name!r} is already registered")
        self._handlers[handler.name] = handler
        logger.debug("registered capability %s %s", handler.name, handler.version)

    def get(self, name: str) -> CapabilityHandler | None:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return list(self._handlers)

    def enabled(self) -> list[str]:
        return list(self._enabled)

    def is_enabled(self, name: str) -> bool:
        return name in self._enabled

    def enable(self, name: str) -> bool:
        """Enable a registered handler; return ``False`` for unknown names."""

        if name not in self._handlers:
            return False
        if name not in self._enabled:
            self._enabled.append(name)
        return True

    def disable(self, name: str) -> bool:
        if name not in self._handlers:
            return False
        if name in self._enabled:
            self._enabled.remove(name)
        return True

    def dispatch(self, name: str, message: CapabilityMessage) -> CapabilityReply:
        """Send ``message`` to one enabled handler."""

        handler = self._handlers.get(name)
        if handler is None:
            return CapabilityReply(capability=name, handled=False, detail="not registered")
        if name not in self._enabled:
            return CapabilityReply(capability=name, handled=False, detail="disabled")
        return handler.handle(message)

    def broadcast(self, message: CapabilityMessage) -> list[CapabilityReply]:
        """Send ``message`` to every enabled handler in enable order."""

        return [self._handlers[name].handle(message) for name in list(self._enabled)]
