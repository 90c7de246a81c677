"""Address normalisation helpers.

All addresses inside the engine are EIP-55 checksummed strings so that
equality checks (owner, coordinator, per-address counters) never depend
on the caller's choice of letter case.
"""

from __future__ import annotations

from web3 import Web3

from lodge.errors import ConfigurationError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def checksum(address: str) -> str:
    """Return the EIP-55 form of an address.

    Raises ConfigurationError if the value is not a 20-byte hex address.
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ConfigurationError(f"Invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def address_bytes(address: str) -> bytes:
    """Return the raw 20 bytes of an address."""
    return bytes.fromhex(checksum(address)[2:])
