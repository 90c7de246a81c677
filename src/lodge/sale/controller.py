"""Sale admission controller — decides who may mint, when, and for what price.

Four paid paths share one pipeline, evaluated strictly in this order.
The first failing step raises and nothing has been mutated:

1. Time gate, from the clock alone. Before the whitelist sale,
   whitelist paths raise SaleNotStarted and open paths raise
   OpenSaleNotStarted. During the whitelist sale, open paths raise
   OpenSaleNotStarted.
2. Contract guard: a caller whose sender differs from the origin is a
   contract and raises ContractsCantBuy.
3. Ended flag: once the sale is ended every path raises SaleEnded.
4. Whitelist proof, checked only for whitelist paths during
   WHITELIST_ONLY. Once the open sale starts the proof is ignored.
5. Limits: positive quantity, per-address cap, fixed total supply.
6. Payment: exact native funds, or an oracle-converted token pull.
7. Mint through the ownership ledger, count, record the event.

Airdrops are owner-only and bypass phase, funds, proof and per-address
counting; only the ended flag and the total supply bind them.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from lodge.access import AccessControl
from lodge.collection.ledger import NativeCurrency, OwnershipLedger
from lodge.crypto.addresses import checksum
from lodge.errors import (
    ConfigurationError,
    ContractsCantBuy,
    InvalidFunds,
    InvalidProof,
    InvalidQuantity,
    OpenSaleNotStarted,
    PaymentTransferFailed,
    SaleEnded,
    SaleNotStarted,
    TokenDoesNotExist,
    TokenLimitExceeded,
    TokenSupplyExceeded,
)
from lodge.models.sale import (
    AirdropEntry,
    CallContext,
    SaleConfiguration,
    SalePhase,
    normalize_root,
    validate_start_timestamps,
)
from lodge.persistence.event_log import EventKind, EventLog
from lodge.sale.oracle import PaymentToken, PriceOracleAdapter
from lodge.sale.phase import classify_phase
from lodge.sale.whitelist import WhitelistVerifier

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time())


class SaleAdmissionController:
    """Admission state machine for the paid and airdrop mint paths.

    Usage:
        controller = SaleAdmissionController(
            config, access, ledger, event_log,
            total_supply=7777, treasury=drop_address,
            payment_token=token, oracle=adapter, native=native,
        )
        ids = controller.mint(CallContext(buyer, value=price * 2), 2)
    """

    def __init__(
        self,
        config: SaleConfiguration,
        access: AccessControl,
        ledger: OwnershipLedger,
        event_log: EventLog,
        total_supply: int,
        treasury: str,
        payment_token: Optional[PaymentToken] = None,
        oracle: Optional[PriceOracleAdapter] = None,
        native: Optional[NativeCurrency] = None,
        clock: Clock = system_clock,
    ) -> None:
        self._config = config
        self._access = access
        self._ledger = ledger
        self._event_log = event_log
        self._total_supply = total_supply
        self._treasury = checksum(treasury)
        self._payment_token = payment_token
        self._oracle = oracle
        self._native = native
        self._clock = clock
        self._whitelist = WhitelistVerifier(config)
        self._minted: Dict[str, int] = {}
        self._ended = False
        self._eth_balance = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def config(self) -> SaleConfiguration:
        return self._config

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def treasury(self) -> str:
        return self._treasury

    @property
    def eth_balance(self) -> int:
        """Native currency collected and not yet withdrawn."""
        return self._eth_balance

    @property
    def whitelist(self) -> WhitelistVerifier:
        return self._whitelist

    def phase(self, now: Optional[int] = None) -> SalePhase:
        return classify_phase(self._config, self._ended, self._now(now))

    def minted_by(self, address: str) -> int:
        """Units minted by an address through the paid paths."""
        return self._minted.get(checksum(address), 0)

    def remaining_supply(self) -> int:
        return self._total_supply - self._ledger.total_minted()

    # ------------------------------------------------------------------
    # Paid paths
    # ------------------------------------------------------------------

    def mint(self, ctx: CallContext, quantity: int, now: Optional[int] = None) -> List[int]:
        """Open-sale mint paid in native currency."""
        now = self._now(now)
        self._admit(ctx, quantity, now, whitelist_path=False, proof=None)
        self._require_exact_funds(ctx, quantity)
        return self._complete(ctx, quantity, now, path="mint", native=True)

    def whitelist_mint(
        self,
        ctx: CallContext,
        proof: Sequence[str | bytes],
        quantity: int,
        now: Optional[int] = None,
    ) -> List[int]:
        """Whitelist-sale mint paid in native currency."""
        now = self._now(now)
        self._admit(ctx, quantity, now, whitelist_path=True, proof=proof)
        self._require_exact_funds(ctx, quantity)
        return self._complete(ctx, quantity, now, path="whitelist_mint", native=True)

    def buy_with_token(self, ctx: CallContext, quantity: int, now: Optional[int] = None) -> List[int]:
        """Open-sale mint paid in the alternative token."""
        now = self._now(now)
        self._admit(ctx, quantity, now, whitelist_path=False, proof=None)
        self._collect_token_payment(ctx, quantity, now)
        return self._complete(ctx, quantity, now, path="buy_with_token", native=False)

    def whitelist_buy_with_token(
        self,
        ctx: CallContext,
        proof: Sequence[str | bytes],
        quantity: int,
        now: Optional[int] = None,
    ) -> List[int]:
        """Whitelist-sale mint paid in the alternative token."""
        now = self._now(now)
        self._admit(ctx, quantity, now, whitelist_path=True, proof=proof)
        self._collect_token_payment(ctx, quantity, now)
        return self._complete(ctx, quantity, now, path="whitelist_buy_with_token", native=False)

    # ------------------------------------------------------------------
    # Owner paths
    # ------------------------------------------------------------------

    def airdrop(
        self,
        ctx: CallContext,
        entries: Sequence[AirdropEntry],
        now: Optional[int] = None,
    ) -> Dict[str, List[int]]:
        """Mint to many recipients for free. Returns ids per recipient."""
        self._access.require_owner(ctx.sender)
        now = self._now(now)
        if self._ended:
            raise SaleEnded()
        for entry in entries:
            if entry.quantity <= 0:
                raise InvalidQuantity(entry.quantity)
        requested = sum(entry.quantity for entry in entries)
        self._require_supply(requested)

        issued: Dict[str, List[int]] = {}
        for entry in entries:
            issued.setdefault(entry.to, []).extend(self._ledger.mint(entry.to, entry.quantity))
        self._event_log.emit(
            EventKind.TOKENS_AIRDROPPED,
            ctx.sender,
            {"recipients": dict(issued), "quantity": requested},
            timestamp=now,
        )
        return issued

    def burn(self, ctx: CallContext, token_ids: Sequence[int], now: Optional[int] = None) -> None:
        """Burn tokens the sender owns or is approved for.

        Every id is validated before any is burnt.
        """
        now = self._now(now)
        seen: set[int] = set()
        for token_id in token_ids:
            if token_id in seen:
                raise TokenDoesNotExist(token_id)
            self._ledger.require_burnable(ctx.sender, token_id)
            seen.add(token_id)
        for token_id in token_ids:
            self._ledger.burn(ctx.sender, token_id)
        self._event_log.emit(
            EventKind.TOKENS_BURNED,
            ctx.sender,
            {"token_ids": list(token_ids)},
            timestamp=now,
        )

    def withdraw_eth(self, ctx: CallContext, recipient: str, now: Optional[int] = None) -> int:
        """Send the whole collected native balance to recipient."""
        self._access.require_owner(ctx.sender)
        if self._native is None:
            raise ConfigurationError("No native currency sender configured")
        recipient = checksum(recipient)
        amount = self._eth_balance
        if not self._native.send(recipient, amount):
            raise PaymentTransferFailed(self._treasury, recipient, amount)
        self._eth_balance = 0
        self._event_log.emit(
            EventKind.FUNDS_WITHDRAWN,
            ctx.sender,
            {"asset": "native", "recipient": recipient, "amount": amount},
            timestamp=self._now(now),
        )
        return amount

    def withdraw_alternative_token(
        self, ctx: CallContext, recipient: str, now: Optional[int] = None
    ) -> int:
        """Transfer the drop's whole payment-token balance to recipient."""
        self._access.require_owner(ctx.sender)
        token = self._require_payment_token()
        recipient = checksum(recipient)
        amount = token.balance_of(self._treasury)
        if not token.transfer(recipient, amount):
            raise PaymentTransferFailed(self._treasury, recipient, amount)
        self._event_log.emit(
            EventKind.FUNDS_WITHDRAWN,
            ctx.sender,
            {"asset": "alternative_token", "recipient": recipient, "amount": amount},
            timestamp=self._now(now),
        )
        return amount

    # ------------------------------------------------------------------
    # Owner setters
    # ------------------------------------------------------------------

    def set_start_timestamps(
        self, ctx: CallContext, sale_start: int, open_sale_start: int, now: Optional[int] = None
    ) -> None:
        self._access.require_owner(ctx.sender)
        validate_start_timestamps(sale_start, open_sale_start)
        self._config.sale_start_timestamp = sale_start
        self._config.open_sale_start_timestamp = open_sale_start
        self._config_changed(ctx, now, sale_start_timestamp=sale_start,
                             open_sale_start_timestamp=open_sale_start)

    def set_merkle_root(self, ctx: CallContext, root: str | bytes, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._config.merkle_root = normalize_root(root)
        self._config_changed(ctx, now, merkle_root=self._config.merkle_root)

    def set_max_delay(self, ctx: CallContext, max_delay: int, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._config.max_delay = max_delay
        self._config_changed(ctx, now, max_delay=max_delay)

    def set_token_price(self, ctx: CallContext, price: int, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._config.nft_price = price
        self._config_changed(ctx, now, nft_price=price)

    def set_max_tokens_per_address(
        self, ctx: CallContext, limit: int, now: Optional[int] = None
    ) -> None:
        self._access.require_owner(ctx.sender)
        self._config.max_tokens_per_address = limit
        self._config_changed(ctx, now, max_tokens_per_address=limit)

    def set_ended(self, ctx: CallContext, ended: bool = True, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._set_ended(ctx.sender, ended, self._now(now))

    def end_after_reveal(self, actor: str, now: Optional[int] = None) -> None:
        """Close the sale once the reveal seed has been delivered."""
        self._set_ended(actor, True, self._now(now))

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _admit(
        self,
        ctx: CallContext,
        quantity: int,
        now: int,
        whitelist_path: bool,
        proof: Optional[Sequence[str | bytes]],
    ) -> None:
        # Time gates are judged from the clock alone; the ended flag comes
        # after the contract guard.
        phase = classify_phase(self._config, False, now)

        if phase is SalePhase.NOT_STARTED:
            if whitelist_path:
                raise SaleNotStarted(self._config.sale_start_timestamp)
            raise OpenSaleNotStarted(self._config.open_sale_start_timestamp)
        if phase is SalePhase.WHITELIST_ONLY and not whitelist_path:
            raise OpenSaleNotStarted(self._config.open_sale_start_timestamp)

        if ctx.is_contract:
            raise ContractsCantBuy(ctx.sender)
        if self._ended:
            raise SaleEnded()

        if whitelist_path and phase is SalePhase.WHITELIST_ONLY:
            if not self._whitelist.verify(ctx.sender, proof or []):
                logger.debug("rejecting %s: proof does not match root %s", ctx.sender, self._whitelist.root)
                raise InvalidProof(ctx.sender)

        if quantity <= 0:
            raise InvalidQuantity(quantity)
        already = self.minted_by(ctx.sender)
        limit = self._config.max_tokens_per_address
        if already + quantity > limit:
            raise TokenLimitExceeded(ctx.sender, already, quantity, limit)
        self._require_supply(quantity)

    def _require_supply(self, quantity: int) -> None:
        remaining = self.remaining_supply()
        if quantity > remaining:
            raise TokenSupplyExceeded(quantity, remaining)

    def _require_exact_funds(self, ctx: CallContext, quantity: int) -> None:
        required = self._config.nft_price * quantity
        if ctx.value != required:
            raise InvalidFunds(ctx.value, required)

    def _collect_token_payment(self, ctx: CallContext, quantity: int, now: int) -> None:
        token = self._require_payment_token()
        if self._oracle is None:
            raise ConfigurationError("No price oracle configured")
        amount = self._oracle.convert(self._config.nft_price * quantity, now)
        if not token.transfer_from(ctx.sender, self._treasury, amount):
            raise PaymentTransferFailed(ctx.sender, self._treasury, amount)

    def _complete(
        self, ctx: CallContext, quantity: int, now: int, path: str, native: bool
    ) -> List[int]:
        ids = self._ledger.mint(ctx.sender, quantity)
        self._minted[ctx.sender] = self.minted_by(ctx.sender) + quantity
        if native:
            self._eth_balance += ctx.value
        self._event_log.emit(
            EventKind.TOKENS_MINTED,
            ctx.sender,
            {"path": path, "to": ctx.sender, "token_ids": ids, "quantity": quantity},
            timestamp=now,
        )
        return ids

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_payment_token(self) -> PaymentToken:
        if self._payment_token is None:
            raise ConfigurationError("No alternative payment token configured")
        return self._payment_token

    def _set_ended(self, actor: str, ended: bool, now: int) -> None:
        self._ended = ended
        self._event_log.emit(EventKind.SALE_ENDED, actor, {"ended": ended}, timestamp=now)

    def _config_changed(self, ctx: CallContext, now: Optional[int], **changes: object) -> None:
        self._event_log.emit(
            EventKind.SALE_CONFIG_CHANGED, ctx.sender, dict(changes), timestamp=self._now(now),
        )

    def _now(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now
