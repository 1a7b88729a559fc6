# core/domain/dispatcher.py
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List, Type

from .events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


class DomainEventDispatcher:
    """
    Synchronous in-process event bus.

    Handlers run in registration order. A failing handler is logged and
    the remaining handlers still run; emit() itself never raises.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def register_handler(self, event_type: Type[DomainEvent]):
        def decorator(func: Handler) -> Handler:
            # Module reloads must not register twice
            if func not in self._handlers[event_type]:
                self._handlers[event_type].append(func)
            return func

        return decorator

    def emit(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed for %s",
                    handler.__name__,
                    type(event).__name__,
                )


dispatcher = DomainEventDispatcher()

register_handler = dispatcher.register_handler
emit = dispatcher.emit
