"""The Lodge service — unified facade over one collectible drop.

This is the primary interface for programmatic access to a drop.
It wires and orchestrates all subsystems:
- Sale admission (whitelist and open mints in native currency or token)
- Airdrops, burns and withdrawals
- Reveal (randomness request and callback)
- Rarity and display-id inspection
- Promotions
- Token metadata URIs
- Ownership and promoter permissions

Every state change is recorded in the event log after the operation has
fully succeeded. A failed call raises a DropError subclass and leaves no
state behind.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from lodge.access import AccessControl
from lodge.collection.ledger import InMemoryTokenLedger, NativeCurrency, OwnershipLedger
from lodge.config import DropConfig, UriConfig
from lodge.crypto.addresses import checksum
from lodge.errors import ConfigurationError
from lodge.models.rarity import PromotionOverride, PromotionPoolState, Rarity
from lodge.models.sale import AirdropEntry, CallContext, SaleConfiguration, SalePhase
from lodge.persistence.event_log import EventKind, EventLog
from lodge.rarity.engine import RarityAssignmentEngine
from lodge.rarity.promotion import PromotionLedger
from lodge.revelation.coordinator import RandomnessService, RevealCoordinator
from lodge.sale.controller import Clock, SaleAdmissionController, system_clock
from lodge.sale.oracle import PaymentToken, PriceFeed, PriceOracleAdapter


class TheLodge:
    """A fixed-supply drop with tiered admission, reveal and promotions.

    Usage:
        config = DropConfig.from_json(Path("config/the_lodge.json"))
        drop = TheLodge(config, owner=owner, address=drop_address,
                        randomness=vrf, payment_token=token,
                        price_feed=feed, native=native)

        drop.whitelist_mint(CallContext(buyer, value=price), proof, 1)
        drop.mint(CallContext(buyer, value=price * 2), 2)

        request_id = drop.reveal(CallContext(owner))
        drop.fulfill(CallContext(coordinator), request_id, [seed])
        drop.rarity_of(1), drop.display_id_of(1), drop.token_uri(1)

    Persistence (optional):
        drop = TheLodge(..., event_log=EventLog(Path("events.jsonl")))
    """

    def __init__(
        self,
        config: DropConfig,
        owner: str,
        address: str,
        randomness: RandomnessService,
        payment_token: Optional[PaymentToken] = None,
        price_feed: Optional[PriceFeed] = None,
        native: Optional[NativeCurrency] = None,
        ledger: Optional[OwnershipLedger] = None,
        event_log: Optional[EventLog] = None,
        clock: Clock = system_clock,
    ) -> None:
        if (payment_token is None) != (price_feed is None):
            raise ConfigurationError("payment_token and price_feed must be supplied together")

        self._config = config
        self._address = checksum(address)
        self._clock = clock
        self._uris = UriConfig(config.uris.base_uri, config.uris.unrevealed_uri)
        self._access = AccessControl(owner)
        self._ledger: OwnershipLedger = ledger if ledger is not None else InMemoryTokenLedger()
        self._event_log = event_log if event_log is not None else EventLog()

        oracle = None
        if payment_token is not None and price_feed is not None:
            oracle = PriceOracleAdapter(price_feed, payment_token, config.sale)

        self._sale = SaleAdmissionController(
            config.sale,
            self._access,
            self._ledger,
            self._event_log,
            total_supply=config.layout.total_supply,
            treasury=self._address,
            payment_token=payment_token,
            oracle=oracle,
            native=native,
            clock=clock,
        )
        self._revelation = RevealCoordinator(
            config.revelation, self._access, randomness, self._event_log,
        )
        self._engine = RarityAssignmentEngine(config.layout, self._ledger, self._revelation)
        self._promotions = PromotionLedger(self._engine, self._access, self._event_log)

    @classmethod
    def from_config_dir(cls, config_dir: Path, **kwargs) -> TheLodge:
        """Build a drop from config_dir/the_lodge.json."""
        return cls(DropConfig.from_config_dir(config_dir), **kwargs)

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self._address

    @property
    def access(self) -> AccessControl:
        return self._access

    @property
    def ledger(self) -> OwnershipLedger:
        return self._ledger

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def sale(self) -> SaleAdmissionController:
        return self._sale

    @property
    def revelation(self) -> RevealCoordinator:
        return self._revelation

    @property
    def engine(self) -> RarityAssignmentEngine:
        return self._engine

    @property
    def promotions(self) -> PromotionLedger:
        return self._promotions

    # ------------------------------------------------------------------
    # Collection metadata
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._config.sale.token_name

    @property
    def symbol(self) -> str:
        return self._config.sale.token_symbol

    @property
    def owner(self) -> str:
        return self._access.owner

    @property
    def sale_config(self) -> SaleConfiguration:
        return self._config.sale

    @property
    def max_supply(self) -> int:
        return self._config.layout.total_supply

    def total_supply(self) -> int:
        return self._ledger.total_supply()

    def balance_of(self, owner: str) -> int:
        return self._ledger.balance_of(owner)

    def owner_of(self, token_id: int) -> str:
        return self._ledger.owner_of(token_id)

    def token_uri(self, token_id: int) -> str:
        """Unrevealed URI before the reveal, base URI + display id after."""
        display_id = self._engine.display_id_of(token_id)
        if not self._revelation.revealed:
            return self._uris.unrevealed_uri
        return f"{self._uris.base_uri}{display_id}"

    @property
    def base_uri(self) -> str:
        return self._uris.base_uri

    @property
    def unrevealed_uri(self) -> str:
        return self._uris.unrevealed_uri

    def set_base_uri(self, ctx: CallContext, base_uri: str, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._uris.base_uri = base_uri
        self._event_log.emit(
            EventKind.URI_CONFIG_CHANGED, ctx.sender, {"base_uri": base_uri}, timestamp=self._now(now),
        )

    def set_unrevealed_uri(self, ctx: CallContext, unrevealed_uri: str, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._uris.unrevealed_uri = unrevealed_uri
        self._event_log.emit(
            EventKind.URI_CONFIG_CHANGED,
            ctx.sender,
            {"unrevealed_uri": unrevealed_uri},
            timestamp=self._now(now),
        )

    # ------------------------------------------------------------------
    # Sale
    # ------------------------------------------------------------------

    def phase(self, now: Optional[int] = None) -> SalePhase:
        return self._sale.phase(now)

    def minted_by(self, address: str) -> int:
        return self._sale.minted_by(address)

    def mint(self, ctx: CallContext, quantity: int, now: Optional[int] = None) -> List[int]:
        return self._sale.mint(ctx, quantity, now)

    def whitelist_mint(
        self, ctx: CallContext, proof: Sequence[str | bytes], quantity: int, now: Optional[int] = None
    ) -> List[int]:
        return self._sale.whitelist_mint(ctx, proof, quantity, now)

    def buy_with_token(self, ctx: CallContext, quantity: int, now: Optional[int] = None) -> List[int]:
        return self._sale.buy_with_token(ctx, quantity, now)

    def whitelist_buy_with_token(
        self, ctx: CallContext, proof: Sequence[str | bytes], quantity: int, now: Optional[int] = None
    ) -> List[int]:
        return self._sale.whitelist_buy_with_token(ctx, proof, quantity, now)

    def airdrop(
        self, ctx: CallContext, entries: Sequence[AirdropEntry], now: Optional[int] = None
    ) -> Dict[str, List[int]]:
        return self._sale.airdrop(ctx, entries, now)

    def burn(self, ctx: CallContext, token_ids: Sequence[int], now: Optional[int] = None) -> None:
        self._sale.burn(ctx, token_ids, now)

    def withdraw_eth(self, ctx: CallContext, recipient: str, now: Optional[int] = None) -> int:
        return self._sale.withdraw_eth(ctx, recipient, now)

    def withdraw_alternative_token(
        self, ctx: CallContext, recipient: str, now: Optional[int] = None
    ) -> int:
        return self._sale.withdraw_alternative_token(ctx, recipient, now)

    def set_start_timestamps(
        self, ctx: CallContext, sale_start: int, open_sale_start: int, now: Optional[int] = None
    ) -> None:
        self._sale.set_start_timestamps(ctx, sale_start, open_sale_start, now)

    def set_merkle_root(self, ctx: CallContext, root: str | bytes, now: Optional[int] = None) -> None:
        self._sale.set_merkle_root(ctx, root, now)

    def set_max_delay(self, ctx: CallContext, max_delay: int, now: Optional[int] = None) -> None:
        self._sale.set_max_delay(ctx, max_delay, now)

    def set_token_price(self, ctx: CallContext, price: int, now: Optional[int] = None) -> None:
        self._sale.set_token_price(ctx, price, now)

    def set_max_tokens_per_address(self, ctx: CallContext, limit: int, now: Optional[int] = None) -> None:
        self._sale.set_max_tokens_per_address(ctx, limit, now)

    def set_ended(self, ctx: CallContext, ended: bool = True, now: Optional[int] = None) -> None:
        self._sale.set_ended(ctx, ended, now)

    # ------------------------------------------------------------------
    # Reveal
    # ------------------------------------------------------------------

    @property
    def revealed(self) -> bool:
        return self._revelation.revealed

    @property
    def seed(self) -> int:
        return self._revelation.seed

    def reveal(self, ctx: CallContext, now: Optional[int] = None) -> int:
        return self._revelation.reveal(ctx, self._now(now))

    def fulfill(
        self, ctx: CallContext, request_id: int, words: Sequence[int], now: Optional[int] = None
    ) -> int:
        """Randomness callback. Stores the seed and closes the sale."""
        now = self._now(now)
        seed = self._revelation.fulfill(ctx, request_id, words, now)
        self._sale.end_after_reveal(ctx.sender, now)
        return seed

    def set_sub_id(self, ctx: CallContext, sub_id: int, now: Optional[int] = None) -> None:
        self._revelation.set_sub_id(ctx, sub_id, self._now(now))

    def set_key_hash(self, ctx: CallContext, key_hash: str | bytes, now: Optional[int] = None) -> None:
        self._revelation.set_key_hash(ctx, key_hash, self._now(now))

    # ------------------------------------------------------------------
    # Rarity and promotions
    # ------------------------------------------------------------------

    def rarity_of(self, token_id: int) -> Rarity:
        return self._engine.rarity_of(token_id)

    def display_id_of(self, token_id: int) -> int:
        return self._engine.display_id_of(token_id)

    def rarities_of(self, token_ids: Sequence[int]) -> List[Rarity]:
        return self._engine.rarities_of(token_ids)

    def display_ids_of(self, token_ids: Sequence[int]) -> List[int]:
        return self._engine.display_ids_of(token_ids)

    def promote(self, ctx: CallContext, token_id: int, now: Optional[int] = None) -> PromotionOverride:
        return self._promotions.promote(ctx, token_id, self._now(now))

    def set_promote_permission(
        self, ctx: CallContext, address: str, allowed: bool, now: Optional[int] = None
    ) -> None:
        self._promotions.set_promote_permission(ctx, address, allowed, self._now(now))

    def can_promote(self, address: str) -> bool:
        return self._promotions.can_promote(address)

    def promotion_pool(self, rarity: Rarity) -> PromotionPoolState:
        return self._promotions.pool(rarity)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def transfer_ownership(self, ctx: CallContext, new_owner: str, now: Optional[int] = None) -> None:
        previous = self._access.transfer_ownership(ctx.sender, new_owner)
        self._event_log.emit(
            EventKind.OWNERSHIP_TRANSFERRED,
            ctx.sender,
            {"previous_owner": previous, "new_owner": self._access.owner},
            timestamp=self._now(now),
        )

    def _now(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now
