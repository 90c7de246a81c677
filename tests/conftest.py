"""Shared fakes and fixtures for drop tests.

The fakes implement the collaborator protocols (price feed, payment
token, randomness service) in memory and record every call so tests can
assert what the drop asked of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import pytest
from web3 import Web3

from lodge.collection.ledger import InMemoryNativeCurrency
from lodge.config import DropConfig, UriConfig
from lodge.crypto.merkle import MerkleTree
from lodge.models.rarity import THE_LODGE_LAYOUT, CollectionLayout, Rarity, RarityBand
from lodge.models.revelation import RevelationConfig
from lodge.models.sale import CallContext, SaleConfiguration
from lodge.sale.oracle import RoundData
from lodge.service import TheLodge


def address(n: int) -> str:
    return Web3.to_checksum_address("0x" + format(n, "040x"))


OWNER = address(0xA11CE)
DROP_ADDRESS = address(0xD509)
COORDINATOR = address(0xC0FFEE)
PAYMENT_TOKEN_ADDRESS = address(0x70CE)
ORACLE_ADDRESS = address(0x0AC1E)
WHITELISTED = [address(0x1000 + i) for i in range(5)]
OUTSIDER = address(0x2000)
OTHER = address(0x3000)
CALLER_CONTRACT = address(0x4000)

SALE_START = 1_700_000_000
OPEN_SALE_START = SALE_START + 86_400
PRICE = 10 ** 18
MAX_TOKENS_PER_ADDRESS = 3
MAX_DELAY = 86_400
ANSWER = 10 ** 16  # 0.01 native per whole payment token
SEED = 23113

BEFORE_SALE = SALE_START - 1
DURING_WHITELIST = SALE_START + 1
DURING_OPEN = OPEN_SALE_START + 1


@dataclass
class FakePriceFeed:
    """Price feed returning a fixed, settable round."""
    answer: int = ANSWER
    updated_at: int = DURING_OPEN
    reads: int = 0

    def latest_round_data(self) -> RoundData:
        self.reads += 1
        return RoundData(
            round_id=1,
            answer=self.answer,
            started_at=self.updated_at,
            updated_at=self.updated_at,
            answered_in_round=1,
        )


@dataclass
class FakePaymentToken:
    """ERC-20 stand-in tracking balances and recording transfers."""
    holder: str = DROP_ADDRESS
    token_decimals: int = 18
    transfer_from_result: bool = True
    transfer_result: bool = True
    balances: dict[str, int] = field(default_factory=dict)
    transfer_from_calls: list[tuple[str, str, int]] = field(default_factory=list)
    transfer_calls: list[tuple[str, int]] = field(default_factory=list)

    def decimals(self) -> int:
        return self.token_decimals

    def balance_of(self, owner: str) -> int:
        return self.balances.get(owner, 0)

    def transfer(self, recipient: str, amount: int) -> bool:
        self.transfer_calls.append((recipient, amount))
        if not self.transfer_result:
            return False
        self.balances[self.holder] = self.balance_of(self.holder) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        self.transfer_from_calls.append((sender, recipient, amount))
        if not self.transfer_from_result:
            return False
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True


@dataclass
class FakeRandomnessService:
    """VRF coordinator stand-in handing out sequential request ids."""
    next_request_id: int = 1
    requests: list[tuple[str, int, int, int, int]] = field(default_factory=list)

    def request_random_words(
        self,
        key_hash: str,
        sub_id: int,
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> int:
        self.requests.append((key_hash, sub_id, request_confirmations, callback_gas_limit, num_words))
        request_id = self.next_request_id
        self.next_request_id += 1
        return request_id


@dataclass
class FailingNativeCurrency:
    """Native sender whose every transfer fails."""
    attempts: int = 0

    def send(self, recipient: str, amount: int) -> bool:
        self.attempts += 1
        return False


def owner_ctx() -> CallContext:
    return CallContext(OWNER)


def coordinator_ctx() -> CallContext:
    return CallContext(COORDINATOR)


def sale_config(merkle_root: Optional[str] = None, **overrides) -> SaleConfiguration:
    values = dict(
        token_name="Test",
        token_symbol="T",
        nft_price=PRICE,
        max_tokens_per_address=MAX_TOKENS_PER_ADDRESS,
        sale_start_timestamp=SALE_START,
        open_sale_start_timestamp=OPEN_SALE_START,
        max_delay=MAX_DELAY,
        alternative_payment_token=PAYMENT_TOKEN_ADDRESS,
        oracle=ORACLE_ADDRESS,
    )
    if merkle_root is not None:
        values["merkle_root"] = merkle_root
    values.update(overrides)
    return SaleConfiguration(**values)


def compact_layout() -> CollectionLayout:
    """Twelve tokens: 6 Apprentice, 4 Fellow, 2 Master, none Transcended.

    Naturals are 1..12; promotion pools are Fellow 13-14, Master 15, Transcended 16.
    """
    return CollectionLayout(
        12,
        [
            RarityBand(Rarity.APPRENTICE, first_id=1, natural_count=6, group_size=3),
            RarityBand(
                Rarity.FELLOW, first_id=7, natural_count=4, group_size=2,
                promotion_slots=2, reserved_first_id=13,
            ),
            RarityBand(
                Rarity.MASTER, first_id=11, natural_count=2, group_size=1,
                promotion_slots=1, reserved_first_id=15,
            ),
            RarityBand(Rarity.TRANSCENDED, first_id=16, natural_count=0, promotion_slots=1),
        ],
    )


@pytest.fixture
def whitelist_tree() -> MerkleTree:
    return MerkleTree.from_addresses(WHITELISTED)


@pytest.fixture
def price_feed() -> FakePriceFeed:
    return FakePriceFeed()


@pytest.fixture
def payment_token() -> FakePaymentToken:
    return FakePaymentToken()


@pytest.fixture
def randomness() -> FakeRandomnessService:
    return FakeRandomnessService()


@pytest.fixture
def native() -> InMemoryNativeCurrency:
    return InMemoryNativeCurrency()


@pytest.fixture
def make_drop(
    whitelist_tree: MerkleTree,
    price_feed: FakePriceFeed,
    payment_token: FakePaymentToken,
    randomness: FakeRandomnessService,
    native: InMemoryNativeCurrency,
) -> Callable[..., TheLodge]:
    """Factory for drops wired to the shared fakes."""

    def _make(layout: CollectionLayout = THE_LODGE_LAYOUT, **sale_overrides) -> TheLodge:
        config = DropConfig(
            sale=sale_config(merkle_root=whitelist_tree.compute_root(), **sale_overrides),
            revelation=RevelationConfig(vrf_coordinator=COORDINATOR),
            uris=UriConfig(base_uri="baseUri/", unrevealed_uri="unrevealedUri"),
            layout=layout,
        )
        return TheLodge(
            config,
            owner=OWNER,
            address=DROP_ADDRESS,
            randomness=randomness,
            payment_token=payment_token,
            price_feed=price_feed,
            native=native,
            clock=lambda: DURING_OPEN,
        )

    return _make


@pytest.fixture
def drop(make_drop: Callable[..., TheLodge]) -> TheLodge:
    return make_drop()


@pytest.fixture
def revealed_drop(make_drop: Callable[..., TheLodge]) -> TheLodge:
    """A compact drop with every token minted and the seed delivered."""
    lodge = make_drop(layout=compact_layout(), max_tokens_per_address=12)
    lodge.mint(CallContext(OTHER, value=PRICE * 12), 12, now=DURING_OPEN)
    request_id = lodge.reveal(owner_ctx(), now=DURING_OPEN)
    lodge.fulfill(coordinator_ctx(), request_id, [0], now=DURING_OPEN)
    return lodge
