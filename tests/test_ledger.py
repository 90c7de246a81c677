"""Tests for the in-memory ownership book and access control."""

import pytest

from lodge.access import AccessControl
from lodge.collection.ledger import (
    InMemoryNativeCurrency,
    InMemoryTokenLedger,
    NativeCurrency,
    OwnershipLedger,
)
from lodge.errors import NotOwnerNorApproved, TokenDoesNotExist, Unauthorized

from conftest import OTHER, OUTSIDER, OWNER


class TestTokenLedger:
    def test_protocol(self) -> None:
        assert isinstance(InMemoryTokenLedger(), OwnershipLedger)
        assert isinstance(InMemoryNativeCurrency(), NativeCurrency)

    def test_sequential_ids(self) -> None:
        ledger = InMemoryTokenLedger()
        assert ledger.mint(OTHER, 3) == [1, 2, 3]
        assert ledger.mint(OWNER, 1) == [4]
        assert ledger.balance_of(OTHER) == 3
        assert ledger.tokens_of(OTHER) == [1, 2, 3]
        assert ledger.owner_of(4) == OWNER

    def test_lowercase_addresses_match(self) -> None:
        ledger = InMemoryTokenLedger()
        ledger.mint(OTHER.lower(), 1)
        assert ledger.balance_of(OTHER) == 1

    def test_burn_keeps_minted_count(self) -> None:
        ledger = InMemoryTokenLedger()
        ledger.mint(OTHER, 3)
        ledger.burn(OTHER, 2)
        assert not ledger.exists(2)
        assert ledger.total_supply() == 2
        assert ledger.total_minted() == 3
        assert ledger.mint(OTHER, 1) == [4]
        with pytest.raises(TokenDoesNotExist):
            ledger.owner_of(2)

    def test_burn_requires_owner_or_approval(self) -> None:
        ledger = InMemoryTokenLedger()
        ledger.mint(OTHER, 2)
        with pytest.raises(NotOwnerNorApproved):
            ledger.burn(OUTSIDER, 1)
        ledger.approve(OTHER, OUTSIDER, 1)
        assert ledger.get_approved(1) == OUTSIDER
        ledger.burn(OUTSIDER, 1)
        with pytest.raises(NotOwnerNorApproved):
            ledger.burn(OUTSIDER, 2)

    def test_operator_approval(self) -> None:
        ledger = InMemoryTokenLedger()
        ledger.mint(OTHER, 1)
        ledger.set_approval_for_all(OTHER, OUTSIDER, True)
        assert ledger.is_approved_for_all(OTHER, OUTSIDER)
        ledger.burn(OUTSIDER, 1)
        assert ledger.total_supply() == 0

    def test_non_positive_quantity(self) -> None:
        with pytest.raises(ValueError):
            InMemoryTokenLedger().mint(OTHER, 0)


class TestNativeCurrency:
    def test_send_records_payout(self) -> None:
        native = InMemoryNativeCurrency()
        assert native.send(OTHER, 5)
        assert native.send(OTHER, 0)
        assert native.balance_of(OTHER) == 5


class TestAccessControl:
    def test_owner_checks(self) -> None:
        access = AccessControl(OWNER)
        access.require_owner(OWNER.lower())
        with pytest.raises(Unauthorized) as exc_info:
            access.require_owner(OTHER)
        assert exc_info.value.role == "owner"

    def test_promoters(self) -> None:
        access = AccessControl(OWNER)
        access.set_promote_permission(OWNER, OTHER, True)
        access.set_promote_permission(OWNER, OUTSIDER, True)
        assert access.promoters() == sorted([OTHER, OUTSIDER])
        access.set_promote_permission(OWNER, OTHER, False)
        assert not access.can_promote(OTHER)
        access.require_promoter(OUTSIDER)

    def test_transfer_ownership(self) -> None:
        access = AccessControl(OWNER)
        assert access.transfer_ownership(OWNER, OTHER) == OWNER
        assert access.owner == OTHER
        with pytest.raises(Unauthorized):
            access.transfer_ownership(OWNER, OWNER)
