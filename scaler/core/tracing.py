"""
Event tracing for Scaler.

Keeps a bounded buffer of recently published events so that gate changes,
sprint triggers and sprint outcomes can be inspected after the fact.
"""

import time
import logging
from typing import Dict, List, Any, Deque
from collections import deque
from .events import BaseEvent

class EventTracer:
    """
    Records events as they are published, keeping the most recent ones.
    """
    
    def __init__(self, max_events: int = 1000):
        """
        Initialize the event tracer.
        
        Args:
            max_events: Maximum number of events to keep in the buffer
        """
        self.max_events = max_events
        self.events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self.logger = logging.getLogger(__name__)
        
    def record_event(self, event: BaseEvent) -> None:
        """
        Record an event in the trace buffer.
        
        Args:
            event: The event to record
        """
        trace_data = {
            'timestamp': time.time(),
            'trace_id': event.trace_id,
            'type': event.type,
            'producer': event.producer_name,
            'event_data': event.model_dump(exclude={'trace_id', 'type', 'producer_name'})
        }
        
        self.events.append(trace_data)
        self.logger.debug(f"Recorded event {event.type} from {event.producer_name}")
        
    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        """
        Get all recorded events of a specific type, oldest first.
        
        Args:
            event_type: The event type to filter by
        """
        return [e for e in self.events if e['type'] == event_type]
        
    def get_events_by_producer(self, producer_name: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e['producer'] == producer_name]
        
    def get_event_count(self) -> int:
        return len(self.events)
        
    def clear(self) -> None:
        """Clear all recorded events."""
        self.events.clear()
        
    def get_event_stats(self) -> Dict[str, Any]:
        """
        Get counts of recorded events by type and by producer.
        
        Returns:
            Dictionary with event statistics
        """
        event_types: Dict[str, int] = {}
        producers: Dict[str, int] = {}
        
        for event in self.events:
            event_types[event['type']] = event_types.get(event['type'], 0) + 1
            producers[event['producer']] = producers.get(event['producer'], 0) + 1
                
        return {
            'total_events': len(self.events),
            'event_types': event_types,
            'producers': producers
        }
