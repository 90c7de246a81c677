"""Rarity assignment engine — token id to (tier, display id), without storage.

After the reveal seed is known every token's tier and display id follow
from arithmetic alone:

    ordinal  = token_id - 1
    shifted  = (ordinal + seed) % total_supply
    band     = the tier whose cumulative natural-count interval holds shifted
    position = shifted - start of that interval
    display  = first_id + (position % group_size) * num_groups
                        + position // group_size

The rotation by seed makes the assignment unpredictable before the
reveal. The final step transposes a group_size x num_groups grid, so
consecutive positions land group_size apart and the mapping is a
bijection from the band's positions onto its natural id range.

Promotion overrides, recorded by the promotion ledger, supersede both the
computed tier and display id. Every query is O(number of tiers).
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from lodge.collection.ledger import OwnershipLedger
from lodge.errors import TokenDoesNotExist, TokenNotRevealed
from lodge.models.rarity import CollectionLayout, PromotionOverride, Rarity

UNREVEALED_DISPLAY_ID = 0


class SeedSource(Protocol):
    """Anything that knows whether the reveal happened and with what seed."""

    @property
    def revealed(self) -> bool:
        ...

    @property
    def seed(self) -> int:
        ...


def assign(token_id: int, seed: int, layout: CollectionLayout) -> tuple[Rarity, int]:
    """Natural (tier, display id) of a token for a given seed."""
    shifted = (token_id - 1 + seed) % layout.total_supply
    band, position = layout.locate(shifted)
    display_id = (
        band.first_id
        + (position % band.group_size) * band.num_groups
        + position // band.group_size
    )
    return band.rarity, display_id


class RarityAssignmentEngine:
    """Answers tier and display-id queries for existing tokens.

    Usage:
        engine = RarityAssignmentEngine(THE_LODGE_LAYOUT, ledger, coordinator)
        engine.display_id_of(1)   # 0 until revealed
        engine.rarity_of(1)       # TokenNotRevealed until revealed
    """

    def __init__(
        self,
        layout: CollectionLayout,
        ledger: OwnershipLedger,
        seed_source: SeedSource,
    ) -> None:
        self._layout = layout
        self._ledger = ledger
        self._seed_source = seed_source
        self._overrides: Dict[int, PromotionOverride] = {}

    @property
    def layout(self) -> CollectionLayout:
        return self._layout

    @property
    def revealed(self) -> bool:
        return self._seed_source.revealed

    def rarity_of(self, token_id: int) -> Rarity:
        self._require_exists(token_id)
        override = self._overrides.get(token_id)
        if override is not None:
            return override.rarity
        if not self.revealed:
            raise TokenNotRevealed(token_id)
        return assign(token_id, self._seed_source.seed, self._layout)[0]

    def display_id_of(self, token_id: int) -> int:
        self._require_exists(token_id)
        override = self._overrides.get(token_id)
        if override is not None:
            return override.display_id
        if not self.revealed:
            return UNREVEALED_DISPLAY_ID
        return assign(token_id, self._seed_source.seed, self._layout)[1]

    def rarities_of(self, token_ids: Iterable[int]) -> List[Rarity]:
        return [self.rarity_of(token_id) for token_id in token_ids]

    def display_ids_of(self, token_ids: Iterable[int]) -> List[int]:
        return [self.display_id_of(token_id) for token_id in token_ids]

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def record_override(self, override: PromotionOverride) -> None:
        """Pin a token's tier and display id. Later overrides replace earlier ones."""
        self._overrides[override.token_id] = override

    def override_for(self, token_id: int) -> Optional[PromotionOverride]:
        return self._overrides.get(token_id)

    def _require_exists(self, token_id: int) -> None:
        if not self._ledger.exists(token_id):
            raise TokenDoesNotExist(token_id)
