"""Incident logging for rejected and suspicious requests."""
