"""Price oracle adapter — converts a native-currency price into payment tokens.

The feed quotes the payment token in native currency (wei per whole
token). A reference amount in wei therefore converts to

    token_amount = reference_amount * 10**decimals // answer

where decimals is the payment token's decimals(). Integer division
truncates toward zero, which favours the buyer by at most one base unit.

Guards, checked in order:
- answer <= 0 is an invalid answer.
- an answer older than max_delay seconds is outdated. The boundary is
  inclusive: an answer exactly max_delay seconds old is accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from lodge.errors import InvalidAnswer, OutdatedAnswer
from lodge.models.sale import SaleConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundData:
    """One price feed round, as returned by latestRoundData."""
    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


@runtime_checkable
class PriceFeed(Protocol):
    """A price feed quoting the payment token in native currency."""

    def latest_round_data(self) -> RoundData:
        ...


@runtime_checkable
class PaymentToken(Protocol):
    """The alternative ERC-20 payment token."""

    def decimals(self) -> int:
        ...

    def balance_of(self, owner: str) -> int:
        ...

    def transfer(self, recipient: str, amount: int) -> bool:
        """Send from the drop's own balance."""
        ...

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        """Pull from sender's approved allowance."""
        ...


class PriceOracleAdapter:
    """Reads the feed and converts reference prices into token amounts.

    max_delay is read from the live sale configuration on every call, so
    the owner's set_max_delay takes effect immediately.
    """

    def __init__(
        self,
        feed: PriceFeed,
        token: PaymentToken,
        config: SaleConfiguration,
    ) -> None:
        self._feed = feed
        self._token = token
        self._config = config

    @property
    def max_delay(self) -> int:
        return self._config.max_delay

    def latest_answer(self, now: int) -> int:
        """Return the current validated answer.

        Raises InvalidAnswer or OutdatedAnswer.
        """
        round_data = self._feed.latest_round_data()
        if round_data.answer <= 0:
            logger.debug("rejecting non-positive answer %d", round_data.answer)
            raise InvalidAnswer(round_data.answer)
        if now - round_data.updated_at > self.max_delay:
            logger.debug(
                "rejecting stale answer: updated_at=%d now=%d max_delay=%d",
                round_data.updated_at, now, self.max_delay,
            )
            raise OutdatedAnswer(round_data.updated_at, self.max_delay)
        return round_data.answer

    def convert(self, reference_amount: int, now: int) -> int:
        """Convert a wei amount into payment-token base units."""
        answer = self.latest_answer(now)
        decimals = self._token.decimals()
        amount = reference_amount * 10 ** decimals // answer
        logger.debug(
            "converted %d wei to %d token units (answer=%d, decimals=%d)",
            reference_amount, amount, answer, decimals,
        )
        return amount
