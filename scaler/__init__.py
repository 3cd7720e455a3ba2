"""
Scaler - physical engagement gate for app content.

This package gates access to content behind the device's orientation and
periodically interrupts continued use with a physical sprint challenge.

Features:
- Orientation gate (hold the device level)
- Usage accounting modes that decide when a sprint is due
- Shake and fitness sprints driven by a windowed gesture rate
- Typed event bus connecting the usage controller and sprint owners
"""

__version__ = "1.0.0"
