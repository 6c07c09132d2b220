"""Offline question quality statistics."""
