"""
Base hardware abstraction for Scaler.

This module provides the BaseHardware class that all hardware abstractions
inherit from, defining the hardware lifecycle and interface.
"""

import asyncio
import structlog
from abc import ABC, abstractmethod
from typing import Any, Optional

class BaseHardware(ABC):
    """
    Base class for all hardware abstractions.
    
    Provides a common initialize/shutdown lifecycle guarded by a lock.
    Errors raised by the implementation hooks are logged and re-raised so the
    owning service can decide how to degrade.
    """
    
    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        """
        Initialize the hardware component.
        
        Args:
            config: Optional hardware-specific configuration
            name: Optional name for this hardware instance
        """
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = structlog.get_logger(hardware=self.name)
        self._initialized = False
        self._lock = asyncio.Lock()
        
    async def initialize(self) -> None:
        """
        Initialize the hardware component.
        
        Must be called before the hardware is used.
        """
        async with self._lock:
            if self._initialized:
                self.logger.warning("Hardware already initialized")
                return
                
            try:
                await self._initialize_impl()
                self._initialized = True
                self.logger.info("Hardware initialized")
                
            except Exception as e:
                self.logger.error(f"Error initializing hardware: {e}")
                raise
                
    async def shutdown(self) -> None:
        """
        Shut down the hardware component.
        """
        async with self._lock:
            if not self._initialized:
                self.logger.debug("Hardware not initialized")
                return
                
            try:
                await self._shutdown_impl()
                self._initialized = False
                self.logger.info("Hardware shut down")
                
            except Exception as e:
                self.logger.error(f"Error shutting down hardware: {e}")
                raise
                
    def is_initialized(self) -> bool:
        return self._initialized
        
    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Implementation-specific initialization."""
        pass
        
    @abstractmethod
    async def _shutdown_impl(self) -> None:
        """Implementation-specific shutdown."""
        pass
