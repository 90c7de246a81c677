"""Sale phase classification.

A pure function of the configuration, the ended flag and the clock:

    ended                                   → ENDED
    now <  sale_start                       → NOT_STARTED
    sale_start <= now < open_sale_start     → WHITELIST_ONLY
    now >= open_sale_start                  → OPEN_TO_ALL
"""

from __future__ import annotations

from lodge.models.sale import SaleConfiguration, SalePhase


def classify_phase(config: SaleConfiguration, ended: bool, now: int) -> SalePhase:
    if ended:
        return SalePhase.ENDED
    if now < config.sale_start_timestamp:
        return SalePhase.NOT_STARTED
    if now < config.open_sale_start_timestamp:
        return SalePhase.WHITELIST_ONLY
    return SalePhase.OPEN_TO_ALL
