"""
app/services package marker.
"""

from app.services.pickup_service import PickupService, build_pickup_service

__all__ = [
    "PickupService",
    "build_pickup_service",
]
