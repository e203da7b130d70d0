"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.driving_adapter.http_controller import booking_controller


WIRE_MODULES: list[ModuleType] = [
    booking_controller,
]
