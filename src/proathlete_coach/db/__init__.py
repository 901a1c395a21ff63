"""Local persistence for ProAthlete Coach."""

from .repository import AppStateRepository

__all__ = ["AppStateRepository"]
