"""Inventory repositories package."""
from .trailer_repository import TrailerRepository

__all__ = ['TrailerRepository']
