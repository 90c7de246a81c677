"""Cryptographic primitives — address normalisation and whitelist Merkle trees."""

from lodge.crypto.addresses import ZERO_ADDRESS, address_bytes, checksum
from lodge.crypto.merkle import MerkleTree, leaf_for_address, verify_proof

__all__ = [
    "MerkleTree",
    "ZERO_ADDRESS",
    "address_bytes",
    "checksum",
    "leaf_for_address",
    "verify_proof",
]
