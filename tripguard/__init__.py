"""tripguard: input moderation for AI travel-itinerary generation."""

__version__ = "0.1.0"
