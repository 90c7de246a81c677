"""Sale — phases, whitelist, oracle pricing and the admission controller."""

from lodge.sale.controller import SaleAdmissionController
from lodge.sale.oracle import PaymentToken, PriceFeed, PriceOracleAdapter, RoundData
from lodge.sale.phase import classify_phase
from lodge.sale.whitelist import WhitelistVerifier

__all__ = [
    "PaymentToken",
    "PriceFeed",
    "PriceOracleAdapter",
    "RoundData",
    "SaleAdmissionController",
    "WhitelistVerifier",
    "classify_phase",
]
