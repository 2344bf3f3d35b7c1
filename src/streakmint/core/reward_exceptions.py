"""
Exception hierarchy for the StreakMint daily reward ledger.

Provides typed exceptions for claim, burn, admin and persistence operations so
callers can distinguish recoverable user errors from invariant violations.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class RewardError(Exception):
    """Base exception for all reward-ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the caller can retry the operation
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Ledger Errors ====================


class ClaimTooSoonError(RewardError):
    """Raised when a claim is attempted before the cooldown has elapsed."""

    def __init__(
        self,
        message: str,
        next_claim_time: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)
        self.next_claim_time = next_claim_time


class NotTokenOwnerError(RewardError):
    """Raised when a burn is attempted by an address that does not own the token."""
    pass


class UnauthorizedError(RewardError):
    """Raised when a non-administrator calls a restricted operation."""
    pass


class InvalidAddressError(RewardError):
    """Raised when an address cannot receive reward tokens (the zero address)."""
    pass


# ==================== Collection Errors ====================


class CollectionError(RewardError):
    """Raised by the token collection when an ownership operation fails.

    The ledger never reinterprets these: they indicate a broken ID allocator
    or ownership check rather than a user mistake.
    """
    pass


class TokenNotFoundError(CollectionError):
    """Raised when a token ID was never minted or has been burned."""
    pass


class DuplicateTokenError(CollectionError):
    """Raised when minting an ID that already exists."""
    pass


# ==================== Storage Errors ====================


class StorageError(RewardError):
    """Raised when ledger persistence fails."""
    pass


class CorruptedDataError(StorageError):
    """Raised when a stored ledger snapshot cannot be decoded."""
    pass


# ==================== Configuration Errors ====================


class ConfigurationError(RewardError):
    """Raised when required configuration is missing or invalid."""
    pass
