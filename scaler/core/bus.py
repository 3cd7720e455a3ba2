"""
Event bus for Scaler.

This module provides the event bus that carries events between the usage
controller, the sprint owners and any observers. It handles event validation,
tracing, and fan-out delivery to subscribers.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Callable, Awaitable
from .events import EventType, BaseEvent
from .registry import EventRegistry
from .tracing import EventTracer

# Type aliases
EventHandler = Callable[[BaseEvent], Awaitable[None]]

class EventBus:
    """
    Central event bus for delivering typed events between services.
    
    The event bus is responsible for:
    - Validating events against their registered schemas
    - Tracking event producers and consumers
    - Routing events to subscribers in subscription order
    - Isolating subscribers from each other's errors
    - Providing observability through tracing
    
    Handlers are awaited one after another on the caller's loop, so every
    subscriber sees an event only after the previous subscriber has finished
    with it, and a publish returns once the whole fan-out has completed.
    """
    
    def __init__(self, registry: EventRegistry, tracer: Optional[EventTracer] = None):
        """
        Initialize the event bus.
        
        Args:
            registry: The event registry for validation and tracking
            tracer: Optional event tracer for observability
        """
        self.registry = registry
        self.tracer = tracer
        self.subscribers: Dict[EventType, List[EventHandler]] = {}
        self.wildcard_subscribers: List[EventHandler] = []
        self.logger = logging.getLogger(__name__)
        
    async def publish(self, event: BaseEvent, sender: str) -> int:
        """
        Publish an event to all subscribers.
        
        Args:
            event: The event to publish
            sender: Name of the service publishing the event
            
        Returns:
            Number of handlers the event was delivered to
        """
        if not event.producer_name:
            event.producer_name = sender
            
        try:
            self.registry.validate_schema(event)
        except (ValueError, TypeError) as e:
            self.logger.error(f"Event validation failed: {e}")
            return 0
            
        if self.tracer:
            self.tracer.record_event(event)
            
        # Snapshot the subscriber list so handlers may (un)subscribe during delivery
        all_subscribers = list(self.subscribers.get(event.type, [])) + list(self.wildcard_subscribers)
        
        if not all_subscribers:
            self.logger.debug(f"No subscribers for event type: {event.type}")
            return 0
            
        for subscriber in all_subscribers:
            await self._deliver_event(subscriber, event)
        return len(all_subscribers)
    
    async def _deliver_event(self, handler: EventHandler, event: BaseEvent) -> None:
        """
        Deliver an event to a single handler with error handling.
        
        Args:
            handler: The event handler function
            event: The event to deliver
        """
        try:
            await handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # A failing subscriber must not stop delivery to the others
            self.logger.error(f"Error delivering event {event.type} to {handler.__qualname__}: {e}",
                              exc_info=True)
                
    def subscribe(self, event_type: Optional[EventType], handler: EventHandler, service_name: str) -> None:
        """
        Subscribe a handler to events of a specific type, or all events if None.
        
        Args:
            event_type: The event type to subscribe to, or None for all events
            handler: The handler coroutine to call when events arrive
            service_name: Name of the subscribing service
        """
        if event_type is None:
            self.wildcard_subscribers.append(handler)
            self.logger.debug(f"Service {service_name} subscribed to all events")
        else:
            self.subscribers.setdefault(event_type, []).append(handler)
            self.registry.register_consumer(service_name, event_type)
            self.logger.debug(f"Service {service_name} subscribed to {event_type}")
            
    def unsubscribe(self, event_type: Optional[EventType], handler: EventHandler) -> None:
        """
        Unsubscribe a handler from events of a specific type, or all events if None.
        
        Unsubscribing a handler that is not subscribed is a no-op.
        """
        if event_type is None:
            if handler in self.wildcard_subscribers:
                self.wildcard_subscribers.remove(handler)
                self.logger.debug(f"Handler {handler.__qualname__} unsubscribed from all events")
        elif event_type in self.subscribers:
            if handler in self.subscribers[event_type]:
                self.subscribers[event_type].remove(handler)
                if not self.subscribers[event_type]:
                    del self.subscribers[event_type]
                self.logger.debug(f"Handler {handler.__qualname__} unsubscribed from {event_type}")
                
    def get_subscribers(self, event_type: EventType) -> List[EventHandler]:
        """Get the handlers an event of this type would be delivered to, in order."""
        return list(self.subscribers.get(event_type, [])) + list(self.wildcard_subscribers)
