"""Translation event transport."""

from subq_io.events.bus import TranslationEventBus

__all__ = ["TranslationEventBus"]
