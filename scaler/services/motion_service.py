"""
This service samples the motion hardware and publishes the samples to the event bus.

Sampling runs on a scheduler timer at the configured rate (30 Hz by default).
Each reading becomes an OrientationSampleEvent (pitch in degrees) and an
AccelerationSampleEvent (gravity-inclusive, in g).

If the device has no motion sensor the service still starts: it reports the
problem once with a HardwareErrorEvent and then stays idle.
"""

from typing import Optional
from scaler.core.events import BaseEvent, EventType
from scaler.core.scheduler import Scheduler, Timer
from scaler.core.service import BaseService
from scaler.events.sensors import OrientationSampleEvent, AccelerationSampleEvent
from scaler.events.system import HardwareErrorEvent
from scaler.hardware.motion import MotionHardware, SensorUnavailableError

class MotionService(BaseService):
    """Service for reading motion samples"""

    PRODUCES_EVENTS = {
        EventType.ORIENTATION_SAMPLE,
        EventType.ACCELERATION_SAMPLE,
        EventType.HARDWARE_ERROR,
    }

    def __init__(self, event_bus, service_registry, hardware: MotionHardware,
                 scheduler: Scheduler, name: Optional[str] = None, config=None):
        super().__init__(event_bus, service_registry, name, config)
        self.hardware = hardware
        self.scheduler = scheduler
        self.available = True
        self.samples_published = 0
        self._sample_timer: Optional[Timer] = None

    async def _start_impl(self) -> None:
        try:
            await self.hardware.initialize()
        except SensorUnavailableError as e:
            # Already logged by the hardware layer; report it on the bus and stay idle
            self.available = False
            await self.publish(HardwareErrorEvent(
                component="motion",
                error_type="sensor_unavailable",
                error_message=str(e)
            ))
            return

        self._sample_timer = self.scheduler.every(
            self.hardware.sample_interval, self._read_sample, name="motion_sample")

    async def _stop_impl(self) -> None:
        if self._sample_timer:
            self._sample_timer.cancel()
            self._sample_timer = None
        if self.available:
            await self.hardware.shutdown()

    async def _read_sample(self) -> None:
        """Read one sample and publish it"""
        reading = self.hardware.read()
        if reading is None:
            return
        x, y, z = reading.acceleration
        await self.publish(OrientationSampleEvent(pitch_degrees=reading.pitch_degrees))
        await self.publish(AccelerationSampleEvent(x=x, y=y, z=z))
        self.samples_published += 1

    async def handle_event(self, event: BaseEvent) -> None:
        # Produces only
        pass
