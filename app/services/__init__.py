"""
Application services module.
"""

from app.services.analyzers import (
    get_project,
    get_flip_analyzer,
    update_flip_analyzer,
    get_brrrr_analyzer,
    update_brrrr_analyzer,
)
from app.services.geocoding import GoogleGeocoder, format_address, get_geocoder

__all__ = [
    "get_project",
    "get_flip_analyzer",
    "update_flip_analyzer",
    "get_brrrr_analyzer",
    "update_brrrr_analyzer",
    "GoogleGeocoder",
    "format_address",
    "get_geocoder",
]
