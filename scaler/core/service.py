"""
Base service implementation for Scaler.

This module provides the BaseService class that all services inherit from,
defining the service lifecycle and event handling interfaces.
"""

import asyncio
import structlog
from abc import ABC, abstractmethod
from typing import Dict, Set, Any, Optional, ClassVar
from .events import EventType, BaseEvent
from .registry import ServiceRegistry
from .bus import EventBus

class BaseService(ABC):
    """
    Base class for all services.

    This class provides:
    - Service lifecycle management (start/stop)
    - Typed event publishing and handling
    - Service registration with lifecycle state
    - Structured logging with context

    Services declare the events they produce and consume; consumed events are
    subscribed on start() and unsubscribed on stop().
    """

    # Events produced by this service
    PRODUCES_EVENTS: ClassVar[Set[EventType]] = set()

    # Map of consumed EventType to handler method name
    CONSUMES_EVENTS: ClassVar[Dict[EventType, str]] = {}

    def __init__(self,
                 event_bus: EventBus,
                 service_registry: ServiceRegistry,
                 name: Optional[str] = None,
                 config: Optional[Any] = None):
        """
        Initialize the service.

        Args:
            event_bus: The event bus for publishing and subscribing to events
            service_registry: The service registry for service lifecycle management
            name: Optional service name (defaults to class name)
            config: Optional application configuration
        """
        self.event_bus = event_bus
        self.service_registry = service_registry
        self.name = name or self.__class__.__name__
        self.config = config

        self.logger = structlog.get_logger(service=self.name)

        self._running = False
        self._lock = asyncio.Lock()

        for event_type in self.PRODUCES_EVENTS:
            event_bus.registry.register_producer(self.name, event_type)

        self.service_registry.register_service(self.name, self)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """
        Start the service.

        This method:
        1. Subscribes to events
        2. Performs service-specific initialization via _start_impl()
        """
        async with self._lock:
            if self._running:
                self.logger.warning("Service already running")
                return

            for event_type, handler_name in self.CONSUMES_EVENTS.items():
                handler = getattr(self, handler_name)
                self.event_bus.subscribe(event_type, handler, self.name)

            self._running = True
            self.service_registry.set_service_state(self.name, 'running')
            await self._start_impl()
            self.logger.info("Service started")

        await self.publish_service_state('started')

    async def stop(self) -> None:
        """
        Stop the service.

        This method:
        1. Performs service-specific cleanup via _stop_impl()
        2. Unsubscribes from events
        3. Marks the service as stopped
        """
        async with self._lock:
            if not self._running:
                self.logger.warning("Service already stopped")
                return

            await self.publish_service_state('stopping')
            await self._stop_impl()

            for event_type, handler_name in self.CONSUMES_EVENTS.items():
                self.event_bus.unsubscribe(event_type, getattr(self, handler_name))

            self._running = False
            self.service_registry.set_service_state(self.name, 'stopped')
            self.logger.info("Service stopped")

        await self.publish_service_state('stopped')

    async def _start_impl(self) -> None:
        """Service-specific start-up, run after subscriptions are in place."""
        pass

    async def _stop_impl(self) -> None:
        """Service-specific shutdown, run before subscriptions are removed."""
        pass

    async def publish(self, event: BaseEvent) -> None:
        """
        Publish an event through the bus.

        Args:
            event: The event to publish
        """
        if not self._running:
            self.logger.warning("Attempted publish while stopped",
                                event_type=event.type)
            return

        if not event.producer_name:
            event.producer_name = self.name

        await self.event_bus.publish(event, self.name)

    async def publish_service_state(self, state: str) -> None:
        """
        Publish a service state change event.

        Args:
            state: New state of the service
        """
        from scaler.events.system import ServiceStateChangedEvent

        event = ServiceStateChangedEvent(
            producer_name=self.name,
            service_name=self.name,
            state=state
        )
        await self.event_bus.publish(event, self.name)

    @abstractmethod
    async def handle_event(self, event: BaseEvent) -> None:
        """
        Handle an event from the event bus.

        Handlers named in CONSUMES_EVENTS typically point here; services that
        route by event type dispatch from this method.

        Args:
            event: The event to handle
        """
        pass
