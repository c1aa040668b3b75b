from .bus import ArtifactExportedEvent, ArtifactRenderedEvent, Event, EventBus, Subscription

__all__ = ["ArtifactExportedEvent", "ArtifactRenderedEvent", "Event", "EventBus", "Subscription"]
