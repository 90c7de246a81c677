"""Rarity models — tiers, identifier bands and promotion bookkeeping.

Tiers form a closed, ordered set. Each tier owns two identifier ranges:

    [first_id, first_id + natural_count)                       natural mints
    [reserved_first_id, reserved_first_id + promotion_slots)   promotions

Invariants enforced by CollectionLayout:
- Natural ranges tile [1, total_supply] in tier order, so before any
  promotion the display ids are exactly 1..total_supply.
- All natural and reserved ranges are pairwise disjoint.
- Every natural count is a whole number of groups
  (natural_count % group_size == 0). The transpose formula fills a full
  grid, so exact divisibility is what makes it a bijection onto the
  natural range; coprimality alone is not enough.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional

from lodge.errors import InvalidCollectionLayout, RarityOutOfRange


class Rarity(enum.IntEnum):
    """Token tier, ordered from most common to rarest."""
    APPRENTICE = 0
    FELLOW = 1
    MASTER = 2
    TRANSCENDED = 3

    @classmethod
    def from_value(cls, value: int) -> Rarity:
        """Convert an integer to a tier. Out-of-range values are fatal."""
        try:
            return cls(value)
        except ValueError:
            raise RarityOutOfRange(value) from None

    def next_tier(self) -> Rarity:
        """The tier immediately above this one."""
        return Rarity.from_value(self.value + 1)

    @property
    def is_top(self) -> bool:
        return self is max(Rarity)


@dataclass(frozen=True)
class RarityBand:
    """The identifier ranges and grid shape of one tier.

    reserved_first_id defaults to the id right after the natural range.
    """
    rarity: Rarity
    first_id: int
    natural_count: int
    group_size: int = 1
    promotion_slots: int = 0
    reserved_first_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.reserved_first_id is None:
            object.__setattr__(self, "reserved_first_id", self.first_id + self.natural_count)

    @property
    def num_groups(self) -> int:
        return self.natural_count // self.group_size

    def natural_ids(self) -> range:
        return range(self.first_id, self.first_id + self.natural_count)

    def reserved_ids(self) -> range:
        """Identifiers handed out on promotion into this tier."""
        return range(self.reserved_first_id, self.reserved_first_id + self.promotion_slots)

    def __contains__(self, display_id: int) -> bool:
        return display_id in self.natural_ids() or display_id in self.reserved_ids()


class CollectionLayout:
    """Total supply plus one validated band per tier.

    Usage:
        layout = CollectionLayout(7777, [
            RarityBand(Rarity.APPRENTICE, first_id=1, natural_count=4646, group_size=101),
            ...
        ])
        band = layout.band(Rarity.FELLOW)
    """

    def __init__(self, total_supply: int, bands: Iterable[RarityBand]) -> None:
        self._total_supply = total_supply
        self._bands: dict[Rarity, RarityBand] = {}
        for band in bands:
            if band.rarity in self._bands:
                raise InvalidCollectionLayout(f"duplicate band for {band.rarity.name}")
            self._bands[band.rarity] = band
        self._validate()

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def band(self, rarity: Rarity) -> RarityBand:
        return self._bands[rarity]

    def bands(self) -> list[RarityBand]:
        """All bands in tier order."""
        return [self._bands[r] for r in sorted(self._bands)]

    def promotable_tiers(self) -> list[Rarity]:
        """Every tier that can be promoted into (all but the lowest)."""
        return sorted(self._bands)[1:]

    def locate(self, position: int) -> tuple[RarityBand, int]:
        """Map a shifted position in [0, total_supply) to (band, offset).

        Bands are stacked by natural count in tier order.
        """
        if not 0 <= position < self._total_supply:
            raise ValueError(f"Position {position} outside [0, {self._total_supply})")
        start = 0
        for band in self.bands():
            if position < start + band.natural_count:
                return band, position - start
            start += band.natural_count
        # Unreachable: natural counts sum to total_supply.
        raise InvalidCollectionLayout("natural counts do not cover total supply")

    def rarity_for_id(self, display_id: int) -> Optional[Rarity]:
        """Which tier's band contains a display identifier, if any."""
        for band in self.bands():
            if display_id in band:
                return band.rarity
        return None

    def _validate(self) -> None:
        if self._total_supply <= 0:
            raise InvalidCollectionLayout(f"total supply must be positive, got {self._total_supply}")
        missing = [r.name for r in Rarity if r not in self._bands]
        if missing:
            raise InvalidCollectionLayout(f"missing bands: {', '.join(missing)}")

        natural_total = 0
        for band in self._bands.values():
            if band.first_id < 1:
                raise InvalidCollectionLayout(f"{band.rarity.name} first_id must be >= 1")
            if band.natural_count < 0 or band.promotion_slots < 0:
                raise InvalidCollectionLayout(f"{band.rarity.name} counts must be non-negative")
            if band.group_size < 1:
                raise InvalidCollectionLayout(f"{band.rarity.name} group_size must be >= 1")
            if band.natural_count % band.group_size != 0:
                raise InvalidCollectionLayout(
                    f"{band.rarity.name} natural_count {band.natural_count} is not a "
                    f"multiple of group_size {band.group_size}"
                )
            natural_total += band.natural_count
        if natural_total != self._total_supply:
            raise InvalidCollectionLayout(
                f"natural counts sum to {natural_total}, expected {self._total_supply}"
            )

        next_id = 1
        for band in self.bands():
            if band.natural_count == 0:
                continue
            if band.first_id != next_id:
                raise InvalidCollectionLayout(
                    f"{band.rarity.name} natural range must start at {next_id}, got {band.first_id}"
                )
            next_id += band.natural_count

        ranges = []
        for band in self._bands.values():
            if band.reserved_first_id < 1:
                raise InvalidCollectionLayout(f"{band.rarity.name} reserved_first_id must be >= 1")
            for kind, ids in (("natural", band.natural_ids()), ("reserved", band.reserved_ids())):
                if ids:
                    ranges.append((ids, f"{band.rarity.name} {kind}"))
        ranges.sort(key=lambda entry: entry[0].start)
        for (lower, lower_name), (upper, upper_name) in zip(ranges, ranges[1:]):
            if upper.start < lower.stop:
                raise InvalidCollectionLayout(f"{lower_name} and {upper_name} ranges overlap")


@dataclass
class PromotionPoolState:
    """Reserved identifiers still available for promotion into a tier."""
    rarity: Rarity
    next_reserved_id: int
    promotions_remaining: int


@dataclass(frozen=True)
class PromotionOverride:
    """A promoted token's tier and identifier, superseding the computed ones."""
    token_id: int
    rarity: Rarity
    display_id: int


# The Lodge: 7777 tokens, 101-wide groups in every natural band.
# Promotion pools sit above the supply: 7778..8027, 8028..8127, 8128..8152.
THE_LODGE_LAYOUT = CollectionLayout(
    7777,
    [
        RarityBand(Rarity.APPRENTICE, first_id=1, natural_count=4646, group_size=101),
        RarityBand(
            Rarity.FELLOW, first_id=4647, natural_count=2727, group_size=101,
            promotion_slots=250, reserved_first_id=7778,
        ),
        RarityBand(
            Rarity.MASTER, first_id=7374, natural_count=404, group_size=101,
            promotion_slots=100, reserved_first_id=8028,
        ),
        RarityBand(Rarity.TRANSCENDED, first_id=8128, natural_count=0, promotion_slots=25),
    ],
)
