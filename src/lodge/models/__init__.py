"""Core data models for the drop engine."""

from lodge.models.rarity import (
    CollectionLayout,
    PromotionOverride,
    PromotionPoolState,
    Rarity,
    RarityBand,
    THE_LODGE_LAYOUT,
)
from lodge.models.revelation import RandomnessRequest, RevelationConfig
from lodge.models.sale import AirdropEntry, CallContext, SaleConfiguration, SalePhase

__all__ = [
    "AirdropEntry",
    "CallContext",
    "CollectionLayout",
    "PromotionOverride",
    "PromotionPoolState",
    "RandomnessRequest",
    "Rarity",
    "RarityBand",
    "RevelationConfig",
    "SaleConfiguration",
    "SalePhase",
    "THE_LODGE_LAYOUT",
]
