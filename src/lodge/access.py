"""Access control — the owner role and the promoter permission set.

Shared by every component of one drop so that an ownership transfer
takes effect everywhere at once. Checks are explicit calls made at the
start of each guarded operation; they raise Unauthorized naming the
caller and the missing role.
"""

from __future__ import annotations

from lodge.crypto.addresses import checksum
from lodge.errors import Unauthorized

OWNER_ROLE = "owner"
PROMOTER_ROLE = "promoter"


class AccessControl:
    """Owner plus owner-managed promoter allow-list."""

    def __init__(self, owner: str) -> None:
        self._owner = checksum(owner)
        self._promoters: set[str] = set()

    @property
    def owner(self) -> str:
        return self._owner

    def require_owner(self, caller: str) -> None:
        if checksum(caller) != self._owner:
            raise Unauthorized(caller, OWNER_ROLE)

    def require_promoter(self, caller: str) -> None:
        if checksum(caller) not in self._promoters:
            raise Unauthorized(caller, PROMOTER_ROLE)

    def can_promote(self, address: str) -> bool:
        return checksum(address) in self._promoters

    def set_promote_permission(self, caller: str, address: str, allowed: bool) -> None:
        """Grant or revoke promoter permission. Owner only."""
        self.require_owner(caller)
        address = checksum(address)
        if allowed:
            self._promoters.add(address)
        else:
            self._promoters.discard(address)

    def transfer_ownership(self, caller: str, new_owner: str) -> str:
        """Hand the owner role to another address. Returns the previous owner."""
        self.require_owner(caller)
        previous = self._owner
        self._owner = checksum(new_owner)
        return previous

    def promoters(self) -> list[str]:
        return sorted(self._promoters)
