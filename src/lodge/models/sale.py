"""Sale models — configuration, phase, call context and airdrop entries.

The sale phase is never stored. It is derived from the clock, the two
start timestamps and the explicit ended flag:

    NOT_STARTED → WHITELIST_ONLY → OPEN_TO_ALL
    any phase → ENDED (terminal, overrides time)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from lodge.crypto.addresses import ZERO_ADDRESS, checksum
from lodge.errors import ConfigurationError, OpenSaleBeforeWhitelistSale

ZERO_ROOT = "0x" + "0" * 64


class SalePhase(str, enum.Enum):
    """Which admission paths are open."""
    NOT_STARTED = "not_started"
    WHITELIST_ONLY = "whitelist_only"
    OPEN_TO_ALL = "open_to_all"
    ENDED = "ended"


@dataclass(frozen=True)
class CallContext:
    """The caller-side facts of one invocation.

    sender: the immediate caller.
    origin: the externally-owned account that started the call chain.
        Defaults to the sender; a differing origin marks a contract caller.
    value: native currency attached to the call, in wei.
    """
    sender: str
    origin: str = ""
    value: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", checksum(self.sender))
        origin = checksum(self.origin) if self.origin else self.sender
        object.__setattr__(self, "origin", origin)
        if self.value < 0:
            raise ConfigurationError(f"Call value must be non-negative, got {self.value}")

    @property
    def is_contract(self) -> bool:
        return self.sender != self.origin


@dataclass(frozen=True)
class AirdropEntry:
    """One recipient of an owner airdrop."""
    to: str
    quantity: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "to", checksum(self.to))


@dataclass
class SaleConfiguration:
    """Owner-tunable sale parameters.

    Mutable only through the controller's owner setters. The only
    cross-field invariant is open_sale_start_timestamp >=
    sale_start_timestamp, checked on construction and on every change
    to either timestamp.
    """
    token_name: str
    token_symbol: str
    nft_price: int
    max_tokens_per_address: int
    sale_start_timestamp: int
    open_sale_start_timestamp: int
    max_delay: int
    alternative_payment_token: str = ZERO_ADDRESS
    oracle: str = ZERO_ADDRESS
    merkle_root: str = ZERO_ROOT

    def __post_init__(self) -> None:
        self.alternative_payment_token = checksum(self.alternative_payment_token)
        self.oracle = checksum(self.oracle)
        self.merkle_root = normalize_root(self.merkle_root)
        if self.nft_price < 0:
            raise ConfigurationError(f"nft_price must be non-negative, got {self.nft_price}")
        if self.max_tokens_per_address < 0:
            raise ConfigurationError(
                f"max_tokens_per_address must be non-negative, got {self.max_tokens_per_address}"
            )
        if self.max_delay < 0:
            raise ConfigurationError(f"max_delay must be non-negative, got {self.max_delay}")
        validate_start_timestamps(self.sale_start_timestamp, self.open_sale_start_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_name": self.token_name,
            "token_symbol": self.token_symbol,
            "nft_price": self.nft_price,
            "max_tokens_per_address": self.max_tokens_per_address,
            "sale_start_timestamp": self.sale_start_timestamp,
            "open_sale_start_timestamp": self.open_sale_start_timestamp,
            "max_delay": self.max_delay,
            "alternative_payment_token": self.alternative_payment_token,
            "oracle": self.oracle,
            "merkle_root": self.merkle_root,
        }


def validate_start_timestamps(sale_start: int, open_sale_start: int) -> None:
    """Reject an open sale that would start before the whitelist sale."""
    if open_sale_start < sale_start:
        raise OpenSaleBeforeWhitelistSale(sale_start, open_sale_start)


def normalize_root(root: str | bytes) -> str:
    """Return a Merkle root as a lowercase 0x-prefixed 32-byte hex string."""
    return normalize_bytes32(root, "Merkle root")


def normalize_bytes32(value: str | bytes, label: str) -> str:
    if isinstance(value, bytes):
        raw = value
    elif isinstance(value, str):
        try:
            raw = bytes.fromhex(value.removeprefix("0x"))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid {label}: {value!r}") from exc
    else:
        raise ConfigurationError(f"Invalid {label}: {value!r}")
    if len(raw) != 32:
        raise ConfigurationError(f"{label} must be 32 bytes, got {len(raw)}")
    return "0x" + raw.hex()
