"""Reveal coordinator — the request/fulfil handshake with the randomness service.

The reveal spans two separate calls with an arbitrary delay between them:

    reveal(owner)                     → request id stored as outstanding
    fulfill(coordinator, id, words)   → seed = words[0], revealed = True

Only one request is outstanding at a time. Calling reveal again before
the callback arrives replaces it and orphans the earlier id. A callback
for an id other than the outstanding one is rejected without touching
state, and once a seed is set it is never overwritten. Reveal itself
stays callable after that; the new request is issued but its callback
is refused with AlreadyRevealed.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from lodge.access import AccessControl
from lodge.errors import (
    AlreadyRevealed,
    EmptyRandomWords,
    OnlyCoordinatorCanFulfill,
    UnknownRandomnessRequest,
)
from lodge.models.revelation import RandomnessRequest, RevelationConfig
from lodge.models.sale import CallContext, normalize_bytes32
from lodge.persistence.event_log import EventKind, EventLog

logger = logging.getLogger(__name__)

NUM_WORDS = 1


@runtime_checkable
class RandomnessService(Protocol):
    """A verifiable randomness provider (VRF coordinator)."""

    def request_random_words(
        self,
        key_hash: str,
        sub_id: int,
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> int:
        """Submit a request and return its id."""
        ...


class RevealCoordinator:
    """Owns the reveal seed and the single outstanding randomness request.

    Usage:
        coordinator = RevealCoordinator(config, access, vrf, event_log)
        request_id = coordinator.reveal(CallContext(owner))
        # later, called by the randomness service:
        coordinator.fulfill(CallContext(config.vrf_coordinator), request_id, [seed])
    """

    def __init__(
        self,
        config: RevelationConfig,
        access: AccessControl,
        service: RandomnessService,
        event_log: EventLog,
    ) -> None:
        self._config = config
        self._access = access
        self._service = service
        self._event_log = event_log
        self._request: Optional[RandomnessRequest] = None
        self._revealed = False
        self._seed = 0

    @property
    def config(self) -> RevelationConfig:
        return self._config

    @property
    def revealed(self) -> bool:
        return self._revealed

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def request(self) -> Optional[RandomnessRequest]:
        return self._request

    def reveal(self, ctx: CallContext, now: Optional[int] = None) -> int:
        """Request one random word. Owner only. Returns the request id."""
        self._access.require_owner(ctx.sender)
        request_id = self._service.request_random_words(
            self._config.key_hash,
            self._config.sub_id,
            self._config.request_confirmations,
            self._config.callback_gas_limit,
            NUM_WORDS,
        )
        if self._request is not None and not self._request.fulfilled:
            logger.debug("request %d orphaned by %d", self._request.request_id, request_id)
        self._request = RandomnessRequest(request_id=request_id, requested_at=now)
        self._event_log.emit(
            EventKind.REVEAL_REQUESTED,
            ctx.sender,
            {"request_id": request_id, "sub_id": self._config.sub_id},
            timestamp=now,
        )
        return request_id

    def fulfill(
        self,
        ctx: CallContext,
        request_id: int,
        words: Sequence[int],
        now: Optional[int] = None,
    ) -> int:
        """Accept the randomness callback. Returns the stored seed."""
        if ctx.sender != self._config.vrf_coordinator:
            raise OnlyCoordinatorCanFulfill(ctx.sender, self._config.vrf_coordinator)
        if self._revealed:
            raise AlreadyRevealed(self._seed)
        outstanding = self._request.request_id if self._request is not None else None
        if request_id != outstanding:
            raise UnknownRandomnessRequest(request_id, outstanding)
        if not words:
            raise EmptyRandomWords()

        seed = int(words[0])
        self._request.fulfilled = True
        self._request.seed = seed
        self._request.fulfilled_at = now
        self._seed = seed
        self._revealed = True
        self._event_log.emit(
            EventKind.REVEALED,
            ctx.sender,
            {"request_id": request_id, "seed": seed},
            timestamp=now,
        )
        return seed

    # ------------------------------------------------------------------
    # Owner setters
    # ------------------------------------------------------------------

    def set_sub_id(self, ctx: CallContext, sub_id: int, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._config.sub_id = sub_id
        self._event_log.emit(
            EventKind.REVELATION_CONFIG_CHANGED, ctx.sender, {"sub_id": sub_id}, timestamp=now,
        )

    def set_key_hash(self, ctx: CallContext, key_hash: str | bytes, now: Optional[int] = None) -> None:
        self._access.require_owner(ctx.sender)
        self._config.key_hash = normalize_bytes32(key_hash, "key hash")
        self._event_log.emit(
            EventKind.REVELATION_CONFIG_CHANGED,
            ctx.sender,
            {"key_hash": self._config.key_hash},
            timestamp=now,
        )
