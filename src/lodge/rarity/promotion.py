"""Promotion ledger — upgrades a revealed token by exactly one tier.

Each tier above the lowest keeps a pool of reserved display ids outside
the natural range 1..total_supply. A promotion takes the next reserved id of
the target tier, so promoted tokens never collide with natural ones or
with each other.

Both failure modes are fatal and abort the whole call: promoting a
top-tier token (RarityOutOfRange) and promoting into an empty pool
(PromotionPoolExhausted).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from lodge.access import AccessControl
from lodge.crypto.addresses import checksum
from lodge.errors import PromotionPoolExhausted, RarityOutOfRange
from lodge.models.rarity import PromotionOverride, PromotionPoolState, Rarity
from lodge.models.sale import CallContext
from lodge.persistence.event_log import EventKind, EventLog
from lodge.rarity.engine import RarityAssignmentEngine

logger = logging.getLogger(__name__)


class PromotionLedger:
    """Promoter-gated tier upgrades backed by per-tier reserved id pools."""

    def __init__(
        self,
        engine: RarityAssignmentEngine,
        access: AccessControl,
        event_log: EventLog,
    ) -> None:
        self._engine = engine
        self._access = access
        self._event_log = event_log
        self._pools: Dict[Rarity, PromotionPoolState] = {}
        for rarity in engine.layout.promotable_tiers():
            band = engine.layout.band(rarity)
            self._pools[rarity] = PromotionPoolState(
                rarity=rarity,
                next_reserved_id=band.reserved_first_id,
                promotions_remaining=band.promotion_slots,
            )

    def promote(self, ctx: CallContext, token_id: int, now: Optional[int] = None) -> PromotionOverride:
        """Move a token up one tier and give it the next reserved display id."""
        self._access.require_promoter(ctx.sender)
        current = self._engine.rarity_of(token_id)
        if current.is_top:
            raise RarityOutOfRange(current.value + 1)
        target = current.next_tier()
        pool = self._pools[target]
        if pool.promotions_remaining <= 0:
            raise PromotionPoolExhausted(target.name)

        override = PromotionOverride(token_id, target, pool.next_reserved_id)
        pool.next_reserved_id += 1
        pool.promotions_remaining -= 1
        self._engine.record_override(override)
        logger.debug(
            "promoted token %d from %s to %s as display id %d (%d left)",
            token_id, current.name, target.name, override.display_id, pool.promotions_remaining,
        )
        self._event_log.emit(
            EventKind.TOKEN_PROMOTED,
            ctx.sender,
            {
                "token_id": token_id,
                "from_rarity": current.name,
                "to_rarity": target.name,
                "display_id": override.display_id,
            },
            timestamp=now,
        )
        return override

    def set_promote_permission(
        self, ctx: CallContext, address: str, allowed: bool, now: Optional[int] = None
    ) -> None:
        """Grant or revoke promoter permission. Owner only."""
        self._access.set_promote_permission(ctx.sender, address, allowed)
        self._event_log.emit(
            EventKind.PROMOTER_PERMISSION_CHANGED,
            ctx.sender,
            {"address": checksum(address), "allowed": allowed},
            timestamp=now,
        )

    def can_promote(self, address: str) -> bool:
        return self._access.can_promote(address)

    def pool(self, rarity: Rarity) -> PromotionPoolState:
        """Current pool state of a promotable tier.

        The lowest tier has no pool; asking for it raises KeyError.
        """
        return self._pools[rarity]

    def pools(self) -> List[PromotionPoolState]:
        return [self._pools[r] for r in sorted(self._pools)]

    def override_for(self, token_id: int) -> Optional[PromotionOverride]:
        return self._engine.override_for(token_id)
