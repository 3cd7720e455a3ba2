"""
Main entry point for Scaler.

This module wires the core components together (event registry, bus,
scheduler, motion hardware and services) and exposes the in-process surface
the presentation layer talks to: sensor and lifecycle inputs, test hooks and
a snapshot of the published state. It also handles signal management, logging
setup and the system lifecycle when run as a program.
"""

import argparse
import asyncio
import logging
import signal
import sys
import structlog
from typing import Any, Dict, Optional
from pydantic import BaseModel

from scaler.core import (
    EventRegistry, ServiceRegistry, EventBus, EventTracer, Scheduler, get_config
)
from scaler.core.config import ApplicationConfig, UsageMode
from scaler.events import register_default_events
from scaler.events.sensors import OrientationSampleEvent, AccelerationSampleEvent
from scaler.events.system import (
    ApplicationStartupCompletedEvent,
    AppWillEnterForegroundEvent,
    AppDidEnterBackgroundEvent
)
from scaler.hardware import MotionHardware, SimulatedMotionHardware
from scaler.models.sprint import SprintKind, SprintSession
from scaler.models.usage import format_duration
from scaler.services import MotionService, UsageService, SprintService

APP_NAME = "scaler"

def setup_logging(level: str = "INFO"):
    """Configure structured logging for the application."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Set up stdlib logging
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
    )

class SprintStatus(BaseModel):
    """Published state of one sprint session."""
    progress: float
    is_active: bool
    events_per_second: float
    gesture_count: int
    state: str

class StatusSnapshot(BaseModel):
    """
    Everything a view needs to render the gate, usage and sprint state.
    """
    pitch: float
    is_level: bool
    content_locked: bool
    mode: str
    total_usage_time: float
    out_of_level_time: float
    non_level_usage_time: float
    usage_progress: float
    usage_remaining: float
    usage_remaining_display: str
    shake: SprintStatus
    fitness: SprintStatus

def _sprint_status(session: SprintSession) -> SprintStatus:
    return SprintStatus(
        progress=session.progress,
        is_active=session.is_active,
        events_per_second=session.events_per_second,
        gesture_count=session.gesture_count,
        state=session.state.value
    )

class ScalerApplication:
    """
    Main application class for Scaler.

    This class initializes and manages the core components of the system,
    including the event system, the scheduler, the service registry and the
    services, and is the single process-wide coordinator owning the bus.
    """

    def __init__(self,
                 config: Optional[ApplicationConfig] = None,
                 clock: Optional[Any] = None,
                 hardware: Optional[MotionHardware] = None):
        """
        Initialize the Scaler application.

        Args:
            config: Application configuration; read from the environment if omitted
            clock: Clock for the scheduler; a ManualClock makes time simulated
            hardware: Motion hardware; a simulated sensor if omitted
        """
        self.logger = structlog.get_logger(app=APP_NAME)
        self.config = config or get_config()

        # Set up core components
        self.event_registry = register_default_events(EventRegistry())
        self.service_registry = ServiceRegistry()

        # Set up event tracing if enabled
        if self.config.event.tracing_enabled:
            self.event_tracer = EventTracer(max_events=self.config.event.max_trace_events)
        else:
            self.event_tracer = None

        self.event_bus = EventBus(self.event_registry, self.event_tracer)
        self.scheduler = Scheduler(clock)
        self.hardware = hardware or MotionHardware.create(self.config.motion)

        self.sprints = SprintService(
            self.event_bus, self.service_registry, self.scheduler, config=self.config)
        self.usage = UsageService(
            self.event_bus, self.service_registry, self.scheduler, config=self.config)
        self.motion = MotionService(
            self.event_bus, self.service_registry, self.hardware, self.scheduler,
            config=self.config)

        # Started in this order, stopped in reverse; motion must start last
        self.services = {
            "sprints": self.sprints,
            "usage": self.usage,
            "motion": self.motion,
        }
        self._running = False
        self._scheduler_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self):
        """Start all services and publish the startup event."""
        self.logger.info("Initializing Scaler", mode=self.usage.controller.mode.value,
                         debug=self.config.debug)

        try:
            for name, service in self.services.items():
                self.logger.info(f"Starting service: {name}")
                await service.start()

            self._running = True
            await self.event_bus.publish(
                ApplicationStartupCompletedEvent(producer_name=APP_NAME),
                APP_NAME
            )
            self.logger.info("Scaler initialization complete")

        except Exception as e:
            self.logger.error("Failed to initialize application", error=str(e), exc_info=True)
            raise

    async def run(self, seconds: Optional[float] = None):
        """
        Drive the scheduler on the real clock until shut down.

        Args:
            seconds: Stop after this many seconds; run until interrupted if None
        """
        self._scheduler_task = asyncio.create_task(self.scheduler.run())
        try:
            if seconds is None:
                await self._scheduler_task
            else:
                await asyncio.sleep(seconds)

        except asyncio.CancelledError:
            self.logger.info("Application task cancelled")

        finally:
            await self.shutdown()

    async def shutdown(self):
        """Shut down all services and clean up resources."""
        if not self._running:
            return

        self._running = False
        self.logger.info("Shutting down Scaler")

        # Stop services in reverse start order
        for name, service in reversed(list(self.services.items())):
            try:
                self.logger.info(f"Stopping service: {name}")
                await service.stop()
            except Exception as e:
                self.logger.error(f"Error stopping service {name}: {e}")

        self.scheduler.stop()
        self.scheduler.cancel_all()
        if self._scheduler_task and not self._scheduler_task.done():
            self._scheduler_task.cancel()

        self.logger.info("Scaler shutdown complete")

    def handle_signal(self, sig):
        """
        Handle termination signals.

        Args:
            sig: The signal received
        """
        self.logger.info(f"Received signal {sig.name}, shutting down")
        self.scheduler.stop()

        # Cancel all tasks except the current one
        for task in asyncio.all_tasks():
            if task is not asyncio.current_task():
                task.cancel()

    # Inbound surface

    async def _publish(self, event) -> None:
        await self.event_bus.publish(event, APP_NAME)

    async def on_orientation_sample(self, pitch_degrees: float) -> None:
        await self._publish(OrientationSampleEvent(pitch_degrees=pitch_degrees))

    async def on_acceleration_sample(self, x: float, y: float, z: float) -> None:
        await self._publish(AccelerationSampleEvent(x=x, y=y, z=z))

    async def on_app_will_enter_foreground(self) -> None:
        self.logger.info("App entering foreground")
        await self._publish(AppWillEnterForegroundEvent())

    async def on_app_did_enter_background(self) -> None:
        self.logger.info("App entered background")
        await self._publish(AppDidEnterBackgroundEvent())

    async def mock_pitch(self, pitch_degrees: float) -> None:
        """Feed a pitch as if the sensor had reported it."""
        await self.on_orientation_sample(pitch_degrees)

    def mock_gesture_event(self, kind: Optional[SprintKind] = None) -> bool:
        """Record one gesture for the running sprint."""
        return self.sprints.mock_gesture_event(kind)

    async def set_mode(self, mode: UsageMode) -> None:
        await self.usage.set_mode(mode)

    async def trigger_sprint(self, kind: SprintKind = SprintKind.SHAKE) -> None:
        """Trigger a sprint immediately, as the debug controls do."""
        await self.usage.controller.trigger_now(SprintKind(kind))

    async def reset(self) -> None:
        """Abort any sprint and zero every accumulator; the mode is kept."""
        await self.sprints.reset()
        self.usage.controller.reset()

    # Published state

    @property
    def content_locked(self) -> bool:
        """Content is hidden while a sprint runs or the required orientation is not met."""
        return self.sprints.active_session is not None or self.usage.content_locked_by_orientation

    def snapshot(self) -> StatusSnapshot:
        gate = self.usage.gate
        controller = self.usage.controller
        level_usage = controller.level_usage
        return StatusSnapshot(
            pitch=gate.current_pitch,
            is_level=gate.is_level,
            content_locked=self.content_locked,
            mode=controller.mode.value,
            total_usage_time=controller.total_usage_time,
            out_of_level_time=controller.out_of_level_time,
            non_level_usage_time=controller.non_level_usage_time,
            usage_progress=level_usage.progress,
            usage_remaining=level_usage.remaining,
            usage_remaining_display=format_duration(level_usage.remaining, self.config.debug),
            shake=_sprint_status(self.sprints.shake),
            fitness=_sprint_status(self.sprints.fitness)
        )

    def get_event_stats(self) -> Dict[str, Any]:
        if not self.event_tracer:
            return {}
        return self.event_tracer.get_event_stats()

def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="scaler", description="Run the Scaler engagement gate")
    parser.add_argument("--mode", choices=[m.value for m in UsageMode],
                        help="Usage mode (defaults to SCALER_USAGE_DEFAULT_MODE)")
    parser.add_argument("--debug", action="store_true", help="Short usage target and debug logging")
    parser.add_argument("--seconds", type=float, default=None,
                        help="Stop after this many seconds")
    parser.add_argument("--pitch", type=float, default=0.0,
                        help="Pitch of the simulated device, in degrees")
    parser.add_argument("--shake", action="store_true",
                        help="Keep the simulated device shaking")
    return parser.parse_args(argv)

async def main(argv=None):
    """Application entry point."""
    args = parse_args(argv)

    overrides = {}
    if args.debug:
        overrides["debug"] = True
        overrides["log_level"] = "DEBUG"
    config = get_config(**overrides)
    if args.mode:
        config.usage.default_mode = UsageMode(args.mode)

    setup_logging(config.log_level.value)

    hardware = SimulatedMotionHardware(config.motion)
    hardware.set_pitch(args.pitch)
    hardware.set_shaking(args.shake)

    app = ScalerApplication(config=config, hardware=hardware)

    # Set up signal handlers
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(
            sig, lambda s=sig: app.handle_signal(s))

    await app.initialize()
    await app.run(args.seconds)

def cli():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except asyncio.CancelledError:
        logging.info("Application cancelled")
    except KeyboardInterrupt:
        logging.info("Application interrupted")
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    cli()
