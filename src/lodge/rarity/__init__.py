"""Rarity — deterministic tier assignment and one-step promotions."""

from lodge.rarity.engine import UNREVEALED_DISPLAY_ID, RarityAssignmentEngine, assign
from lodge.rarity.promotion import PromotionLedger

__all__ = [
    "PromotionLedger",
    "RarityAssignmentEngine",
    "UNREVEALED_DISPLAY_ID",
    "assign",
]
