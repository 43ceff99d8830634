"""Layered validation of trip requests before paid AI generation."""
