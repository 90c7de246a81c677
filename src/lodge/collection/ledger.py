"""Ownership ledger — who holds which token.

The drop engine never stores ownership itself. It mints, burns and
queries through the OwnershipLedger protocol, so the same engine can sit
in front of an in-memory book (tests, simulations) or a live token
contract.

Token identifiers are issued sequentially starting at 1 and are never
reused, even after a burn. total_minted() therefore counts every token
ever issued, while total_supply() counts only tokens still in existence.
The fixed supply cap is enforced against total_minted().
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Set, runtime_checkable

from lodge.crypto.addresses import checksum
from lodge.errors import NotOwnerNorApproved, TokenDoesNotExist

logger = logging.getLogger(__name__)


@runtime_checkable
class OwnershipLedger(Protocol):
    """Contract every ownership backend must satisfy."""

    def mint(self, to: str, quantity: int) -> List[int]:
        """Issue quantity new tokens to an address. Returns their ids."""
        ...

    def burn(self, caller: str, token_id: int) -> None:
        """Destroy a token. Caller must be its owner or approved."""
        ...

    def require_burnable(self, caller: str, token_id: int) -> None:
        """Raise exactly as burn would, without burning."""
        ...

    def exists(self, token_id: int) -> bool:
        ...

    def owner_of(self, token_id: int) -> str:
        ...

    def balance_of(self, owner: str) -> int:
        ...

    def total_supply(self) -> int:
        """Tokens currently in existence."""
        ...

    def total_minted(self) -> int:
        """Tokens ever issued, burnt ones included."""
        ...


@runtime_checkable
class NativeCurrency(Protocol):
    """Outbound native-currency transfers (withdrawals)."""

    def send(self, recipient: str, amount: int) -> bool:
        """Send amount wei to recipient. Returns False on failure."""
        ...


class InMemoryTokenLedger:
    """In-memory ownership book with per-token and operator approvals.

    Usage:
        ledger = InMemoryTokenLedger()
        ids = ledger.mint("0xAbc...", 3)      # [1, 2, 3]
        ledger.approve("0xAbc...", "0xDef...", 2)
        ledger.burn("0xDef...", 2)
    """

    def __init__(self) -> None:
        self._owners: Dict[int, str] = {}
        self._balances: Dict[str, int] = {}
        self._token_approvals: Dict[int, str] = {}
        self._operator_approvals: Dict[str, Set[str]] = {}
        self._next_id = 1
        self._burned = 0

    def mint(self, to: str, quantity: int) -> List[int]:
        to = checksum(to)
        if quantity <= 0:
            raise ValueError(f"quantity must be positive, got {quantity}")
        ids = list(range(self._next_id, self._next_id + quantity))
        for token_id in ids:
            self._owners[token_id] = to
        self._balances[to] = self._balances.get(to, 0) + quantity
        self._next_id += quantity
        logger.debug("minted %s to %s", ids, to)
        return ids

    def require_burnable(self, caller: str, token_id: int) -> None:
        owner = self.owner_of(token_id)
        caller = checksum(caller)
        if caller == owner:
            return
        if self._token_approvals.get(token_id) == caller:
            return
        if caller in self._operator_approvals.get(owner, set()):
            return
        raise NotOwnerNorApproved(caller, token_id)

    def burn(self, caller: str, token_id: int) -> None:
        self.require_burnable(caller, token_id)
        owner = self._owners.pop(token_id)
        self._token_approvals.pop(token_id, None)
        self._balances[owner] -= 1
        self._burned += 1
        logger.debug("burned %d (owner %s)", token_id, owner)

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def owner_of(self, token_id: int) -> str:
        try:
            return self._owners[token_id]
        except KeyError:
            raise TokenDoesNotExist(token_id) from None

    def balance_of(self, owner: str) -> int:
        return self._balances.get(checksum(owner), 0)

    def tokens_of(self, owner: str) -> List[int]:
        owner = checksum(owner)
        return sorted(t for t, o in self._owners.items() if o == owner)

    def total_supply(self) -> int:
        return len(self._owners)

    def total_minted(self) -> int:
        return self._next_id - 1

    # ------------------------------------------------------------------
    # Approvals
    # ------------------------------------------------------------------

    def approve(self, caller: str, spender: str, token_id: int) -> None:
        """Let spender burn one token. Caller must own it or be an operator."""
        owner = self.owner_of(token_id)
        caller = checksum(caller)
        if caller != owner and caller not in self._operator_approvals.get(owner, set()):
            raise NotOwnerNorApproved(caller, token_id)
        self._token_approvals[token_id] = checksum(spender)

    def get_approved(self, token_id: int) -> Optional[str]:
        self.owner_of(token_id)
        return self._token_approvals.get(token_id)

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        operators = self._operator_approvals.setdefault(checksum(caller), set())
        if approved:
            operators.add(checksum(operator))
        else:
            operators.discard(checksum(operator))

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return checksum(operator) in self._operator_approvals.get(checksum(owner), set())


class InMemoryNativeCurrency:
    """Native-currency book that records every payout.

    Stands in for the chain's value transfer when the drop runs off-chain.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}

    def send(self, recipient: str, amount: int) -> bool:
        if amount < 0:
            return False
        recipient = checksum(recipient)
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return True

    def balance_of(self, address: str) -> int:
        return self._balances.get(checksum(address), 0)
