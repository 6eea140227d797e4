#!/usr/bin/env python3
"""
Treasury Error Taxonomy

Every failure the treasury can report is a TreasuryError. Precondition
failures abort an operation before any state changes; parameter bound
violations are rejected at the setter; oracle read failures are fatal for the
calling operation.
"""


class TreasuryError(Exception):
    """Base class for all treasury failures"""


class PreconditionFailed(TreasuryError):
    """An operation's precondition did not hold; nothing was changed"""


class NotInitialized(PreconditionFailed):
    pass


class AlreadyInitialized(PreconditionFailed):
    pass


class NotStarted(PreconditionFailed):
    """Program start time has not been reached"""


class EpochNotOpen(PreconditionFailed):
    """The next epoch point has not been reached"""


class PriceMoved(PreconditionFailed):
    """Oracle price differs from the price the caller expected"""


class PriceNotEligible(PreconditionFailed):
    """Price is outside the window in which the operation is allowed"""


class InvalidBondRate(PreconditionFailed):
    pass


class InvalidAmount(PreconditionFailed):
    pass


class InsufficientBudget(PreconditionFailed):
    """Amount exceeds the epoch's remaining contraction budget"""


class DebtRatioExceeded(PreconditionFailed):
    pass


class InsufficientTreasuryBalance(PreconditionFailed):
    pass


class InsufficientBalance(PreconditionFailed):
    """An account does not hold enough of a token"""


class ReentrantCall(PreconditionFailed):
    """A mutating entrypoint was entered while another one was in flight"""


class NotOperator(PreconditionFailed):
    """Caller is not the privileged operator"""


class MissingPermission(PreconditionFailed):
    """Treasury no longer holds operator rights over a governed contract"""


class UnsupportedToken(PreconditionFailed):
    pass


class InvalidAddress(PreconditionFailed):
    pass


class ParameterOutOfRange(TreasuryError, ValueError):
    """A setter value is outside its allowed bounds; state is unchanged"""


class OracleUnavailable(TreasuryError):
    """The price oracle could not be read"""
