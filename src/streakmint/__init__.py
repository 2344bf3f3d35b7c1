"""
StreakMint - daily claimable reward tokens with streak-based tiers.
"""

__version__ = "0.1.0"
