"""Revelation models — randomness service configuration and request record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lodge.crypto.addresses import checksum
from lodge.errors import ConfigurationError
from lodge.models.sale import normalize_bytes32

ZERO_KEY_HASH = "0x" + "0" * 64


@dataclass
class RevelationConfig:
    """Parameters forwarded to the randomness service on every request."""
    vrf_coordinator: str
    key_hash: str = ZERO_KEY_HASH
    sub_id: int = 0
    request_confirmations: int = 3
    callback_gas_limit: int = 100_000

    def __post_init__(self) -> None:
        self.vrf_coordinator = checksum(self.vrf_coordinator)
        self.key_hash = normalize_bytes32(self.key_hash, "key hash")
        if self.sub_id < 0:
            raise ConfigurationError(f"sub_id must be non-negative, got {self.sub_id}")
        if self.request_confirmations < 0 or self.callback_gas_limit <= 0:
            raise ConfigurationError("request_confirmations and callback_gas_limit out of range")


@dataclass
class RandomnessRequest:
    """The single outstanding (or completed) randomness request.

    seed stays 0 until the request is fulfilled.
    """
    request_id: int
    fulfilled: bool = False
    seed: int = 0
    requested_at: Optional[int] = None
    fulfilled_at: Optional[int] = None
