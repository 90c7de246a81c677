"""Merkle tree over whitelisted addresses.

Uses keccak-256 with sorted-pair hashing, which makes every pair hash
independent of left/right order. Roots and proofs match what
merkletreejs produces with ``{ sort: true }`` and what OpenZeppelin's
MerkleProof.verify accepts on-chain:

- leaf = keccak256(raw 20 address bytes)
- leaves are sorted before the tree is built
- parent = keccak256(min(a, b) || max(a, b))
- an unpaired node at the end of a level is carried up unchanged

All hashes are exchanged as 0x-prefixed lowercase hex strings.
"""

from __future__ import annotations

from typing import Sequence

from web3 import Web3

from lodge.crypto.addresses import address_bytes

EMPTY_ROOT = "0x" + "0" * 64


class MerkleTree:
    """A deterministic whitelist Merkle tree.

    Usage:
        tree = MerkleTree()
        tree.add_address("0xAbc...")
        tree.add_address("0xDef...")
        root = tree.compute_root()
        proof = tree.inclusion_proof("0xAbc...")
        assert verify_proof(proof, root, leaf_for_address("0xAbc..."))
    """

    def __init__(self) -> None:
        self._leaves: list[bytes] = []
        self._tree: list[list[bytes]] = []
        self._computed = False

    @classmethod
    def from_addresses(cls, addresses: Sequence[str]) -> MerkleTree:
        tree = cls()
        for address in addresses:
            tree.add_address(address)
        tree.compute_root()
        return tree

    def add_address(self, address: str) -> None:
        """Add an address leaf. Must be called before compute_root."""
        self.add_leaf(_keccak(address_bytes(address)))

    def add_leaf(self, leaf: bytes) -> None:
        """Add a pre-hashed 32-byte leaf. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        if len(leaf) != 32:
            raise ValueError(f"Leaf must be 32 bytes, got {len(leaf)}")
        self._leaves.append(leaf)

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def compute_root(self) -> str:
        """Compute the Merkle root as hex.

        An empty tree has the all-zero root, which no proof satisfies.
        """
        if not self._leaves:
            self._computed = True
            self._tree = [[]]
            return EMPTY_ROOT

        current_level = sorted(self._leaves)
        self._tree = [current_level]
        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(hash_pair(current_level[i], current_level[i + 1]))
                else:
                    next_level.append(current_level[i])  # Carried up unpaired
            self._tree.append(next_level)
            current_level = next_level

        self._computed = True
        return _hex(current_level[0])

    def inclusion_proof(self, address: str) -> list[str] | None:
        """Generate the sibling path for an address.

        Returns None if the address is not in the tree.
        Must call compute_root first.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        leaf = leaf_for_address(address)
        sorted_leaves = self._tree[0]
        if leaf not in sorted_leaves:
            return None

        path: list[str] = []
        idx = sorted_leaves.index(leaf)
        for level in self._tree[:-1]:
            sibling_idx = idx + 1 if idx % 2 == 0 else idx - 1
            if sibling_idx < len(level):
                path.append(_hex(level[sibling_idx]))
            idx //= 2
        return path


def leaf_for_address(address: str) -> bytes:
    """The whitelist leaf for an address."""
    return _keccak(address_bytes(address))


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Sorted-pair keccak hash of two nodes."""
    if right < left:
        left, right = right, left
    return _keccak(left + right)


def process_proof(proof: Sequence[str | bytes], leaf: bytes) -> bytes:
    """Fold a proof onto a leaf, returning the implied root."""
    computed = leaf
    for node in proof:
        computed = hash_pair(computed, _as_bytes(node))
    return computed


def verify_proof(proof: Sequence[str | bytes], root: str | bytes, leaf: bytes) -> bool:
    """True if the proof links the leaf to the root.

    Malformed proof elements (wrong length, bad hex) verify as False.
    """
    try:
        return process_proof(proof, leaf) == _as_bytes(root)
    except ValueError:
        return False


def _keccak(data: bytes) -> bytes:
    return bytes(Web3.keccak(data))


def _as_bytes(node: str | bytes) -> bytes:
    if isinstance(node, bytes):
        raw = node
    elif isinstance(node, str):
        raw = bytes.fromhex(node.removeprefix("0x"))
    else:
        raise ValueError(f"Merkle node must be hex or bytes, got {type(node).__name__}")
    if len(raw) != 32:
        raise ValueError(f"Merkle node must be 32 bytes, got {len(raw)}")
    return raw


def _hex(node: bytes) -> str:
    return "0x" + node.hex()
