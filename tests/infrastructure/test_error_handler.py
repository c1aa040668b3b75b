import logging
from unittest.mock import Mock

from thermo_overlay.errors import ImageDecodeError, InvalidArgumentError
from thermo_overlay.errors.handler import (
    ErrorHandler,
    ErrorOccurredEvent,
    ErrorSeverity,
    severity_for,
)
from thermo_overlay.events.bus import EventBus


def test_handle_error_logs_and_publishes():
    logger = Mock(spec=logging.Logger)
    event_bus = Mock(spec=EventBus)
    handler = ErrorHandler(logger, event_bus)

    error = ImageDecodeError("broken.png")
    returned = handler.handle(error, ErrorSeverity.ERROR, {"source": "broken.png"})

    logger.log.assert_called_once()
    args, kwargs = logger.log.call_args
    assert args[0] == logging.ERROR
    assert "broken.png" in args
    assert kwargs["extra"] == {"context": {"source": "broken.png"}}

    event_bus.publish.assert_called_once_with(returned)
    assert isinstance(returned, ErrorOccurredEvent)
    assert returned.error is error
    assert returned.severity == ErrorSeverity.ERROR
    assert returned.source == "broken.png"


def test_severity_defaults_from_error_layer():
    assert severity_for(InvalidArgumentError("bad crop")) is ErrorSeverity.WARNING
    assert severity_for(ImageDecodeError("bad bytes")) is ErrorSeverity.ERROR
    assert severity_for(OSError("disk full")) is ErrorSeverity.ERROR


def test_default_severity_selects_log_level():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger)

    event = handler.handle(InvalidArgumentError("careful"))

    assert event.severity is ErrorSeverity.WARNING
    assert logger.log.call_args[0][0] == logging.WARNING


def test_works_without_event_bus_or_context():
    logger = Mock(spec=logging.Logger)
    handler = ErrorHandler(logger)

    event = handler.handle(RuntimeError("no bus"))

    logger.log.assert_called_once()
    assert event.source is None
    assert event.context == {}


def test_subscribers_receive_events():
    bus = EventBus()
    received = []
    bus.subscribe(ErrorOccurredEvent, received.append)
    handler = ErrorHandler(logging.getLogger("test"), bus)

    handler.handle(ImageDecodeError("x"), context={"source": "a.png"})

    assert [event.source for event in received] == ["a.png"]
