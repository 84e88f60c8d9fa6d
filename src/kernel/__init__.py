"""
Kernel Layer

Foundational components shared by the engines and the API:
- Data models (users, places)
- Identity (bearer-token verification, user records)
- Uploads (admission filter, blob store)
- Geocoding (address resolution)
- Error taxonomy

Invariant: ``Place.creator_id == User.id`` iff the place id is in
``User.place_ids``. Only the places engine writes either side.
"""

from src.kernel.models import User, Place
from src.kernel.errors import PlaceShareError

__all__ = [
    "User",
    "Place",
    "PlaceShareError",
]
