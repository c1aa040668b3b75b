"""Central reporting for per-item failures."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..events.bus import Event, EventBus
from . import DomainError


class ErrorSeverity(Enum):
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)

    @property
    def source(self) -> Optional[str]:
        """Label of the item that failed, when the reporter supplied one."""
        return self.context.get("source")


def severity_for(error: Exception) -> ErrorSeverity:
    """Rejected input is a warning; anything that broke mid-flight is an error."""
    if isinstance(error, DomainError):
        return ErrorSeverity.WARNING
    return ErrorSeverity.ERROR


class ErrorHandler:
    """Log a failure once and announce it on the event bus."""

    def __init__(self, logger: logging.Logger, event_bus: Optional[EventBus] = None):
        self._logger = logger
        self._events = event_bus

    def handle(
        self,
        error: Exception,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[dict] = None,
    ) -> ErrorOccurredEvent:
        severity = severity or severity_for(error)
        event = ErrorOccurredEvent(error=error, severity=severity, context=dict(context or {}))
        if event.source is not None:
            self._logger.log(
                severity.value,
                "Failed to process %s: %s: %s",
                event.source,
                type(error).__name__,
                error,
                extra={"context": event.context},
            )
        else:
            self._logger.log(
                severity.value,
                "%s: %s",
                type(error).__name__,
                error,
                extra={"context": event.context},
            )
        if self._events is not None:
            self._events.publish(event)
        return event
