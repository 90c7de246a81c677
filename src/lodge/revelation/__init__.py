"""Revelation — randomness request and fulfilment."""

from lodge.revelation.coordinator import RandomnessService, RevealCoordinator

__all__ = ["RandomnessService", "RevealCoordinator"]
