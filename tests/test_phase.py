"""Tests for sale phase classification."""

import pytest

from lodge.errors import OpenSaleBeforeWhitelistSale
from lodge.models.sale import SalePhase
from lodge.sale.phase import classify_phase

from conftest import OPEN_SALE_START, SALE_START, sale_config


class TestClassifyPhase:
    @pytest.mark.parametrize(
        "now, expected",
        [
            (SALE_START - 1, SalePhase.NOT_STARTED),
            (SALE_START, SalePhase.WHITELIST_ONLY),
            (OPEN_SALE_START - 1, SalePhase.WHITELIST_ONLY),
            (OPEN_SALE_START, SalePhase.OPEN_TO_ALL),
            (OPEN_SALE_START + 10 ** 9, SalePhase.OPEN_TO_ALL),
        ],
    )
    def test_boundaries(self, now: int, expected: SalePhase) -> None:
        assert classify_phase(sale_config(), False, now) is expected

    @pytest.mark.parametrize("now", [SALE_START - 1, SALE_START, OPEN_SALE_START])
    def test_ended_overrides_time(self, now: int) -> None:
        assert classify_phase(sale_config(), True, now) is SalePhase.ENDED

    def test_equal_starts_skip_whitelist_phase(self) -> None:
        config = sale_config(open_sale_start_timestamp=SALE_START)
        assert classify_phase(config, False, SALE_START - 1) is SalePhase.NOT_STARTED
        assert classify_phase(config, False, SALE_START) is SalePhase.OPEN_TO_ALL

    def test_pure(self) -> None:
        config = sale_config()
        results = {classify_phase(config, False, SALE_START + 5) for _ in range(3)}
        assert results == {SalePhase.WHITELIST_ONLY}


class TestStartTimestampInvariant:
    def test_open_before_whitelist_rejected_at_construction(self) -> None:
        with pytest.raises(OpenSaleBeforeWhitelistSale) as exc_info:
            sale_config(open_sale_start_timestamp=SALE_START - 1)
        assert exc_info.value.sale_start_timestamp == SALE_START
        assert str(exc_info.value) == f"OpenSaleBeforeWhitelistSale({SALE_START}, {SALE_START - 1})"
