"""In-process event bus carrying translation progress and error events."""

from __future__ import annotations

from subq_core.ports.translation import (
    ErrorHandler,
    ProgressHandler,
    TranslationEventSourceProtocol,
    Unsubscribe,
)
from subq_schemas.events import (
    TranslationChannel,
    TranslationErrorEvent,
    TranslationProgressEvent,
)
from subq_schemas.validation import parse_error_event, parse_progress_event


class TranslationEventBus(TranslationEventSourceProtocol):
    """Fan out backend events to subscribers in subscription order."""

    def __init__(self) -> None:
        """Initialize an event bus with no subscribers."""
        self._progress_handlers: list[ProgressHandler] = []
        self._error_handlers: list[ErrorHandler] = []

    @property
    def subscriber_count(self) -> int:
        """Return the number of registered handlers across both streams."""
        return len(self._progress_handlers) + len(self._error_handlers)

    def subscribe_progress(self, handler: ProgressHandler) -> Unsubscribe:
        """Register a progress handler.

        Returns:
            Unsubscribe: Removes the handler when called.
        """
        return _register(self._progress_handlers, handler)

    def subscribe_error(self, handler: ErrorHandler) -> Unsubscribe:
        """Register an error handler.

        Returns:
            Unsubscribe: Removes the handler when called.
        """
        return _register(self._error_handlers, handler)

    async def publish_progress(self, event: TranslationProgressEvent) -> None:
        """Deliver a progress event to every progress handler."""
        for handler in list(self._progress_handlers):
            await handler(event)

    async def publish_error(self, event: TranslationErrorEvent) -> None:
        """Deliver an error event to every error handler."""
        for handler in list(self._error_handlers):
            await handler(event)

    async def publish_raw(self, channel: str, payload: str | bytes) -> None:
        """Parse and deliver a JSON payload received on a named channel.

        Args:
            channel: ``translation:progress`` or ``translation:error``.
            payload: JSON encoded event.

        Raises:
            ValueError: If the channel is unknown.
        """
        if channel == TranslationChannel.PROGRESS:
            await self.publish_progress(parse_progress_event(payload))
        elif channel == TranslationChannel.ERROR:
            await self.publish_error(parse_error_event(payload))
        else:
            raise ValueError(f"Unknown translation channel: {channel}")


def _register[HandlerT](handlers: list[HandlerT], handler: HandlerT) -> Unsubscribe:
    handlers.append(handler)

    def _unsubscribe() -> None:
        if handler in handlers:
            handlers.remove(handler)

    return _unsubscribe
