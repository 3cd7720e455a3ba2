"""
Event and service registry for Scaler.

Tracks which event schemas exist, who produces and consumes each event type,
and which services are registered and in which lifecycle state.
"""

import logging
from typing import Dict, Set, Type, Any, Optional
from .events import EventType, BaseEvent

class EventRegistry:
    """
    Central registry of event types, producers, and consumers.
    
    The bus validates every published event against the schema registered here,
    so an event type must be registered before it can be delivered.
    """
    
    def __init__(self):
        self._producers: Dict[EventType, Set[str]] = {}
        self._consumers: Dict[EventType, Set[str]] = {}
        self._event_schemas: Dict[EventType, Dict[str, Any]] = {}
        self._logger = logging.getLogger(__name__)
        
    def register_event(self, event_type: EventType, event_schema: Type[BaseEvent], description: str):
        """
        Register an event type with its schema and description.
        
        Args:
            event_type: The type of event being registered
            event_schema: The pydantic model class for this event type
            description: Human-readable description of this event type
        """
        self._event_schemas[event_type] = {
            'schema': event_schema,
            'description': description
        }
        self._logger.debug(f"Registered event type: {event_type} ({description})")
        
    def register_producer(self, service_name: str, event_type: EventType):
        """Record that a service publishes the given event type."""
        self._producers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered producer {service_name} for {event_type}")
        
    def register_consumer(self, service_name: str, event_type: EventType):
        """Record that a service subscribes to the given event type."""
        self._consumers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered consumer {service_name} for {event_type}")
        
    def validate_schema(self, event: BaseEvent) -> bool:
        """
        Validate that an event matches its registered schema.
        
        Args:
            event: The event to validate
            
        Returns:
            bool: True if validation passes
            
        Raises:
            ValueError: If event type is unknown
            TypeError: If event doesn't match registered schema
        """
        event_type = event.type
        if event_type not in self._event_schemas:
            raise ValueError(f"Unknown event type: {event_type}")
            
        schema = self._event_schemas[event_type]['schema']
        if not isinstance(event, schema):
            raise TypeError(f"Event does not match schema for {event_type}")
            
        return True
    
    def get_event_flow(self, event_type: EventType) -> Dict[str, Set[str]]:
        """
        Get all producers and consumers for an event type.
        
        Returns:
            Dict containing producers and consumers sets
        """
        return {
            'producers': self._producers.get(event_type, set()),
            'consumers': self._consumers.get(event_type, set())
        }
    
    def get_event_schema(self, event_type: EventType) -> Optional[Type[BaseEvent]]:
        if event_type in self._event_schemas:
            return self._event_schemas[event_type]['schema']
        return None
    
    def get_all_event_types(self) -> Set[EventType]:
        return set(self._event_schemas.keys())


class ServiceRegistry:
    """
    Registry for services and their lifecycle state.
    """
    
    def __init__(self):
        self._services: Dict[str, Any] = {}
        self._states: Dict[str, str] = {}
        self._logger = logging.getLogger(__name__)
    
    def register_service(self, service_name: str, service_instance: Any):
        """
        Register a service with the registry.
        
        Args:
            service_name: Name of the service
            service_instance: The service instance
        """
        self._services[service_name] = service_instance
        self._states[service_name] = "registered"
        self._logger.debug(f"Registered service: {service_name}")
    
    def get_service(self, service_name: str) -> Optional[Any]:
        return self._services.get(service_name)
    
    def set_service_state(self, service_name: str, state: str):
        self._states[service_name] = state
        self._logger.debug(f"Service {service_name} state changed to {state}")
    
    def get_service_state(self, service_name: str) -> Optional[str]:
        return self._states.get(service_name)

