"""
app/repositories package marker.
"""

from app.repositories.picked_number_repository import PickedNumberRepository

__all__ = ["PickedNumberRepository"]
