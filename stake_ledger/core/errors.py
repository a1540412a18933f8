"""Error types raised by the staking ledger."""


class StakingError(Exception):
    """Base class for every rejected ledger operation.

    Each subclass carries a stable ``code`` so callers can tell kinds apart
    without parsing messages, and a ``hint`` suitable for showing to a user.
    """
    code = "StakingError"
    hint = ""

    def __init__(self, message: str = None):
        super().__init__(message or self.hint or self.code)


class AddressZero(StakingError):
    code = "AddressZero"
    hint = "The staked token reference must not be empty or the zero address."


class RewardRateZero(StakingError):
    code = "RewardRateZero"
    hint = "The daily reward rate must be greater than zero."


class InvalidAmount(StakingError):
    code = "InvalidAmount"
    hint = "Amount must be greater than zero."


class InsufficientBalance(StakingError):
    code = "InsufficientBalance"
    hint = "Your token balance is lower than the amount you want to stake."


class NoStakedAmount(StakingError):
    code = "NoStakedAmount"
    hint = "You have nothing staked. Stake tokens first."


class RewardsNotUpdated(StakingError):
    code = "RewardsNotUpdated"
    hint = "No fresh rewards to use. Run update-reward first."


class UpdateNotEligible(StakingError):
    code = "UpdateNotEligible"
    hint = "Rewards can be updated only a full day after your first stake."


class ClaimOncePerDay(StakingError):
    code = "ClaimOncePerDay"
    hint = "Rewards can be updated once per day. Try again later."


class UnstakeNotAllowed(StakingError):
    code = "UnstakeNotAllowed"
    hint = "Tokens are locked for 24 hours after staking. Try again after the lock period."


class RestakeNotAllowed(StakingError):
    code = "RestakeNotAllowed"
    hint = "Restaking is locked for 24 hours after your last stake. Try again after the lock period."


class TransferFailed(StakingError):
    code = "TransferFailed"
    hint = "The token transfer was rejected."


class TokenPaused(Exception):
    """Raised when minting on a paused token."""


class ConfigError(Exception):
    """Invalid or unreadable settings."""


class StoreError(Exception):
    """Persisted ledger state could not be read."""
