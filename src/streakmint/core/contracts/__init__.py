"""
StreakMint reward contracts.

This package provides:
- RewardCollection: ERC721-style ownership backend for reward tokens
- DailyRewardLedger: claim cooldown, tier progression and burn history
- classify_tier: pure mapping from streak age to reward category
"""

from .daily_reward import (
    CLAIM_COOLDOWN_SECONDS,
    SECONDS_PER_DAY,
    Category,
    DailyRewardLedger,
    RewardEvent,
    UserRecord,
    classify_tier,
)
from .erc721 import ZERO_ADDRESS, RewardCollection, TransferEvent

__all__ = [
    # Ownership
    "RewardCollection",
    "TransferEvent",
    "ZERO_ADDRESS",
    # Ledger
    "DailyRewardLedger",
    "Category",
    "RewardEvent",
    "UserRecord",
    "classify_tier",
    "CLAIM_COOLDOWN_SECONDS",
    "SECONDS_PER_DAY",
]
