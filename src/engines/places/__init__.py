"""
Places Engine - transactional create/update/delete of places and their
owner links.
"""

from src.engines.places.place_service import PlaceService

__all__ = ["PlaceService"]
