"""Token collection — ownership ledger protocol and in-memory backends."""

from lodge.collection.ledger import (
    InMemoryNativeCurrency,
    InMemoryTokenLedger,
    NativeCurrency,
    OwnershipLedger,
)

__all__ = [
    "InMemoryNativeCurrency",
    "InMemoryTokenLedger",
    "NativeCurrency",
    "OwnershipLedger",
]
