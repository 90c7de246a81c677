"""Error taxonomy for the drop engine.

Every rejected call raises a subclass of DropError. The category base
classes let callers react programmatically without string matching:

- PhaseViolation: the sale is not open for this path right now.
- AdmissionViolation: the caller may not mint (proof, limits, contracts).
- PaymentViolation: funds, oracle answer or token pull rejected.
- RandomnessViolation: reveal callback rejected.
- LedgerViolation: token existence or ownership rejected by the ledger.
- AccessViolation: caller lacks the owner or promoter role.
- FatalArithmeticError: promotion bookkeeping would underflow or overflow.
- ConfigurationError: configuration values violate an invariant.

str(error) renders as ``Name(arg, ...)`` so messages line up with the
revert strings emitted by the on-chain contracts.
"""

from __future__ import annotations


class DropError(Exception):
    """Base class for all drop engine errors."""

    def __str__(self) -> str:
        rendered = ", ".join(str(a) for a in self.args)
        return f"{type(self).__name__}({rendered})" if self.args else type(self).__name__


# ----------------------------------------------------------------------
# Phase violations
# ----------------------------------------------------------------------


class PhaseViolation(DropError):
    """The current sale phase does not admit this path."""


class SaleNotStarted(PhaseViolation):
    def __init__(self, start_timestamp: int) -> None:
        super().__init__(start_timestamp)
        self.start_timestamp = start_timestamp


class OpenSaleNotStarted(PhaseViolation):
    def __init__(self, open_sale_start_timestamp: int) -> None:
        super().__init__(open_sale_start_timestamp)
        self.open_sale_start_timestamp = open_sale_start_timestamp


class SaleEnded(PhaseViolation):
    pass


# ----------------------------------------------------------------------
# Admission violations
# ----------------------------------------------------------------------


class AdmissionViolation(DropError):
    """The caller is not admitted to mint the requested quantity."""


class ContractsCantBuy(AdmissionViolation):
    def __init__(self, sender: str) -> None:
        super().__init__(sender)
        self.sender = sender


class InvalidProof(AdmissionViolation):
    def __init__(self, sender: str) -> None:
        super().__init__(sender)
        self.sender = sender


class InvalidQuantity(AdmissionViolation):
    def __init__(self, quantity: int) -> None:
        super().__init__(quantity)
        self.quantity = quantity


class TokenLimitExceeded(AdmissionViolation):
    def __init__(self, sender: str, already_minted: int, requested: int, limit: int) -> None:
        super().__init__(sender, already_minted, requested, limit)
        self.sender = sender
        self.already_minted = already_minted
        self.requested = requested
        self.limit = limit


class TokenSupplyExceeded(AdmissionViolation):
    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(requested, remaining)
        self.requested = requested
        self.remaining = remaining


# ----------------------------------------------------------------------
# Payment violations
# ----------------------------------------------------------------------


class PaymentViolation(DropError):
    """Funds or price data rejected."""


class InvalidFunds(PaymentViolation):
    def __init__(self, sent: int, required: int) -> None:
        super().__init__(sent, required)
        self.sent = sent
        self.required = required


class InvalidAnswer(PaymentViolation):
    def __init__(self, answer: int) -> None:
        super().__init__(answer)
        self.answer = answer


class OutdatedAnswer(PaymentViolation):
    def __init__(self, updated_at: int, max_delay: int) -> None:
        super().__init__(updated_at, max_delay)
        self.updated_at = updated_at
        self.max_delay = max_delay


class PaymentTransferFailed(PaymentViolation):
    def __init__(self, sender: str, recipient: str, amount: int) -> None:
        super().__init__(sender, recipient, amount)
        self.sender = sender
        self.recipient = recipient
        self.amount = amount


# ----------------------------------------------------------------------
# Randomness violations
# ----------------------------------------------------------------------


class RandomnessViolation(DropError):
    """Reveal callback rejected."""


class OnlyCoordinatorCanFulfill(RandomnessViolation):
    def __init__(self, have: str, want: str) -> None:
        super().__init__(have, want)
        self.have = have
        self.want = want


class UnknownRandomnessRequest(RandomnessViolation):
    def __init__(self, request_id: int, outstanding: int | None) -> None:
        super().__init__(request_id, outstanding)
        self.request_id = request_id
        self.outstanding = outstanding


class AlreadyRevealed(RandomnessViolation):
    def __init__(self, seed: int) -> None:
        super().__init__(seed)
        self.seed = seed


class EmptyRandomWords(RandomnessViolation):
    pass


# ----------------------------------------------------------------------
# Ledger violations
# ----------------------------------------------------------------------


class LedgerViolation(DropError):
    """Token existence or ownership rejected by the ownership ledger."""


class TokenDoesNotExist(LedgerViolation):
    def __init__(self, token_id: int) -> None:
        super().__init__(token_id)
        self.token_id = token_id


class NotOwnerNorApproved(LedgerViolation):
    def __init__(self, caller: str, token_id: int) -> None:
        super().__init__(caller, token_id)
        self.caller = caller
        self.token_id = token_id


class TokenNotRevealed(LedgerViolation):
    def __init__(self, token_id: int) -> None:
        super().__init__(token_id)
        self.token_id = token_id


# ----------------------------------------------------------------------
# Access violations
# ----------------------------------------------------------------------


class AccessViolation(DropError):
    """Caller lacks the role required by the operation."""


class Unauthorized(AccessViolation):
    def __init__(self, caller: str, role: str) -> None:
        super().__init__(caller, role)
        self.caller = caller
        self.role = role


# ----------------------------------------------------------------------
# Fatal arithmetic conditions
# ----------------------------------------------------------------------


class FatalArithmeticError(DropError):
    """Unrecoverable counter condition; the whole call is aborted."""


class PromotionPoolExhausted(FatalArithmeticError):
    def __init__(self, rarity: str) -> None:
        super().__init__(rarity)
        self.rarity = rarity


class RarityOutOfRange(FatalArithmeticError):
    def __init__(self, value: int) -> None:
        super().__init__(value)
        self.value = value


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------


class ConfigurationError(DropError, ValueError):
    """Configuration violates an invariant."""


class OpenSaleBeforeWhitelistSale(ConfigurationError):
    def __init__(self, sale_start_timestamp: int, open_sale_start_timestamp: int) -> None:
        super().__init__(sale_start_timestamp, open_sale_start_timestamp)
        self.sale_start_timestamp = sale_start_timestamp
        self.open_sale_start_timestamp = open_sale_start_timestamp


class InvalidCollectionLayout(ConfigurationError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
