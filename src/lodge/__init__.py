"""The Lodge — a fixed-supply collectible drop engine."""

from lodge.config import DropConfig
from lodge.models.sale import AirdropEntry, CallContext
from lodge.service import TheLodge

__all__ = ["AirdropEntry", "CallContext", "DropConfig", "TheLodge"]
