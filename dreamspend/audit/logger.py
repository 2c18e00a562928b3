"""
Game Event Logger

DESIGN DECISION: Every committed engine operation is logged as a GameEvent.
This provides:
1. Traceability of how the day list and allowance evolved
2. Debugging capability for reconciliation over long absences
3. A single hook for observers (UI refresh, reminder scheduling)

The event logger:
- Is synchronous, like the engine it serves
- Gracefully handles listener failures (a broken observer never breaks the game)
"""

from typing import Callable, Optional

import structlog

from dreamspend.models.events import EventSeverity, GameEvent


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


EventListener = Callable[[GameEvent], None]


class GameEventLogger:
    """
    Central event service for the engine.

    Sends each event to:
    1. Structured local log
    2. Every subscribed listener, in subscription order
    """

    def __init__(self, listeners: Optional[list[EventListener]] = None):
        self._listeners: list[EventListener] = list(listeners or [])
        self._logger = structlog.get_logger("dreamspend.events")

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def log(self, event: GameEvent) -> None:
        """Log an event locally and dispatch it to listeners."""
        log_dict = event.to_log_dict()

        if event.severity == EventSeverity.ERROR:
            self._logger.error("game_event", **log_dict)
        elif event.severity == EventSeverity.WARNING:
            self._logger.warning("game_event", **log_dict)
        elif event.severity == EventSeverity.DEBUG:
            self._logger.debug("game_event", **log_dict)
        else:
            self._logger.info("game_event", **log_dict)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "event_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                    event_type=event.event_type.value,
                )
