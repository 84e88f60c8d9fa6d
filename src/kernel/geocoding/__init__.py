"""
Geocoding - resolve free-text addresses to coordinates.
"""

from src.kernel.geocoding.geocoder import Coordinates, Geocoder, GoogleGeocoder

__all__ = ["Coordinates", "Geocoder", "GoogleGeocoder"]
