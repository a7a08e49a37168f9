from typing import Callable, Dict, List
from collections import defaultdict


# Event types published by the pipeline controller
PIPELINE_STATE_CHANGED = "pipeline_state_changed"
ANALYSIS_COMPLETED = "analysis_completed"
ANALYSIS_FAILED = "analysis_failed"


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Callable):
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: str, handler: Callable):
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: str, payload: dict):
        handlers = list(self._subscribers.get(event_type, []))
        for handler in handlers:
            handler(payload)


# Singleton instance (one controller per process)
event_bus = EventBus()
