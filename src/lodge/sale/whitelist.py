"""Whitelist verification against the configured Merkle root."""

from __future__ import annotations

from typing import Sequence

from lodge.crypto.merkle import leaf_for_address, verify_proof
from lodge.errors import ConfigurationError
from lodge.models.sale import SaleConfiguration


class WhitelistVerifier:
    """Checks membership proofs against the sale's current root.

    The root is read from the sale configuration on every call, so a
    set_merkle_root invalidates previously issued proofs immediately.
    """

    def __init__(self, config: SaleConfiguration) -> None:
        self._config = config

    @property
    def root(self) -> str:
        return self._config.merkle_root

    def verify(self, address: str, proof: Sequence[str | bytes]) -> bool:
        """True if proof links address to the current root.

        Malformed addresses or proof elements verify as False.
        """
        try:
            leaf = leaf_for_address(address)
        except ConfigurationError:
            return False
        return verify_proof(proof, self.root, leaf)
