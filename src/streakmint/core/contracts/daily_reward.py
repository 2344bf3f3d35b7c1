"""
Daily reward ledger.

Each address may claim one reward token per 24 hours. The token's category is
fixed at mint time from the number of whole days elapsed since the address's
first claim:

- days 0-6:   Theta
- days 7-13:  Beta
- days 14-29: Alpha
- day 30+:    Sigma

Holders may burn a token to signal they are continuing the cycle. Token
ownership lives in a RewardCollection; the ledger only keeps claim timestamps,
per-address claim/burn history and the category recorded for each token ID.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Sequence

from .. import reward_metrics
from ..reward_exceptions import (
    ClaimTooSoonError,
    InvalidAddressError,
    NotTokenOwnerError,
    TokenNotFoundError,
    UnauthorizedError,
)
from ..structured_logger import truncate_address
from .erc721 import ZERO_ADDRESS, RewardCollection

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
CLAIM_COOLDOWN_SECONDS = SECONDS_PER_DAY


class Category(IntEnum):
    """Reward tiers, ordered Theta < Beta < Alpha < Sigma."""

    THETA = 0
    BETA = 1
    ALPHA = 2
    SIGMA = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """Accept a Category, its integer value, or its name in any case."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unknown category: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise ValueError(f"Unknown category: {value!r}")


# (exclusive upper bound in elapsed days, category); first match wins
TIER_THRESHOLDS = (
    (7, Category.THETA),
    (14, Category.BETA),
    (30, Category.ALPHA),
)


def classify_tier(now: float, first_claim_time: Optional[float]) -> Category:
    """
    Map time since an address's first claim to a reward category.

    Args:
        now: Current timestamp (seconds)
        first_claim_time: Timestamp of the first claim, or None if the
            address has not started its cycle yet

    Returns:
        Category for a token minted at ``now``
    """
    if first_claim_time is None:
        return Category.THETA

    elapsed_days = max(0, int((now - first_claim_time) // SECONDS_PER_DAY))
    for upper_bound, category in TIER_THRESHOLDS:
        if elapsed_days < upper_bound:
            return category
    return Category.SIGMA


@dataclass
class RewardEvent:
    """A Claimed or Burned ledger event."""

    event_type: str  # "Claimed" or "Burned"
    user: str
    token_id: int
    timestamp: float
    category: Optional[Category] = None  # Claimed only

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "event_type": self.event_type,
            "user": self.user,
            "token_id": self.token_id,
            "timestamp": self.timestamp,
        }
        if self.category is not None:
            data["category"] = self.category.label
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardEvent":
        category = data.get("category")
        return cls(
            event_type=data["event_type"],
            user=data["user"],
            token_id=int(data["token_id"]),
            timestamp=float(data["timestamp"]),
            category=Category.parse(category) if category is not None else None,
        )


@dataclass
class UserRecord:
    """Per-address claim state. None timestamps mean the address never claimed."""

    first_claim_time: Optional[float] = None
    last_claim_time: Optional[float] = None
    claim_history: List[int] = field(default_factory=list)
    burn_history: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_claim_time": self.first_claim_time,
            "last_claim_time": self.last_claim_time,
            "claim_history": list(self.claim_history),
            "burn_history": list(self.burn_history),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        return cls(
            first_claim_time=data.get("first_claim_time"),
            last_claim_time=data.get("last_claim_time"),
            claim_history=[int(t) for t in data.get("claim_history", [])],
            burn_history=[int(t) for t in data.get("burn_history", [])],
        )


EventListener = Callable[[RewardEvent], None]
Persister = Callable[["DailyRewardLedger"], None]


class DailyRewardLedger:
    """
    Claim-gating and tier-progression engine for daily reward tokens.

    Every mutating call runs under one re-entrant lock and either commits all
    of its state changes or none. Token IDs are allocated from a counter
    starting at 0 inside the same locked step as the mint they back, so IDs are
    strictly increasing across all addresses and never reused.
    """

    def __init__(
        self,
        admin: str,
        base_uris: Sequence[str],
        collection: Optional[RewardCollection] = None,
        address: str = "",
    ) -> None:
        """
        Initialize the ledger.

        Args:
            admin: Address allowed to change category base URIs
            base_uris: Default base URIs for Theta, Beta, Alpha and Sigma,
                in that order
            collection: Ownership backend; a fresh one is created when omitted
            address: Ledger address used as the collection minter
        """
        if len(base_uris) != len(Category):
            raise ValueError(
                f"Expected {len(Category)} base URIs (Theta, Beta, Alpha, Sigma), "
                f"got {len(base_uris)}"
            )

        self.admin = self._normalize(admin)
        self.category_base_uris: Dict[Category, str] = {
            category: uri for category, uri in zip(Category, base_uris)
        }

        if collection is None:
            self.address = self._normalize(address or "0x" + "5" * 40)
            collection = RewardCollection(
                name="StreakMint Daily Reward",
                symbol="STRK",
                minter=self.address,
            )
        else:
            self.address = self._normalize(address or collection.minter)
        self.collection = collection

        self.records: Dict[str, UserRecord] = {}
        self.token_categories: Dict[int, Category] = {}
        self.next_token_id = 0
        self.events: List[RewardEvent] = []

        self._listeners: List[EventListener] = []
        self._persister: Optional[Persister] = None
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding every read-modify-write of ledger and collection state."""
        return self._lock

    def attach_persister(self, persister: Optional[Persister]) -> None:
        """
        Make ``persister`` part of every mutation's commit step.

        The persister is called with the ledger, under its lock, after the
        in-memory change is applied. If it raises, the change is rolled back
        and the exception propagates to the caller.
        """
        with self._lock:
            self._persister = persister

    # ==================== Claim & Burn ====================

    def claim(self, caller: str, now: Optional[float] = None) -> int:
        """
        Mint today's reward token to ``caller``.

        Args:
            caller: Claiming address
            now: Claim timestamp (defaults to wall clock)

        Returns:
            ID of the minted token

        Raises:
            InvalidAddressError: If ``caller`` is the zero address
            ClaimTooSoonError: If fewer than 24 hours passed since the
                caller's last claim
            StorageError: If the attached persister fails; nothing is committed
        """
        if now is None:
            now = time.time()
        user = self._normalize(caller)
        if user == ZERO_ADDRESS:
            raise InvalidAddressError(
                "The zero address cannot claim rewards",
                details={"user": user},
            )

        with self._lock:
            record = self.records.get(user)
            last_claim = record.last_claim_time if record else None
            if last_claim is not None and now - last_claim < CLAIM_COOLDOWN_SECONDS:
                next_claim_time = last_claim + CLAIM_COOLDOWN_SECONDS
                reward_metrics.record_rejected_claim("cooldown")
                logger.info(
                    "Claim rejected: cooldown active",
                    extra={
                        "event": "rewards.claim_too_soon",
                        "user": truncate_address(user),
                        "next_claim_time": next_claim_time,
                    },
                )
                raise ClaimTooSoonError(
                    f"Claim too soon: next claim allowed at {next_claim_time}",
                    next_claim_time=next_claim_time,
                    details={"user": user, "next_claim_time": next_claim_time},
                )

            first_claim = record.first_claim_time if record else None
            if first_claim is None:
                first_claim = now
            category = classify_tier(now, first_claim)

            checkpoint = self._checkpoint()
            token_id = self.next_token_id
            # Collection failures mean allocator/collection drift; let them propagate
            self.collection.mint(self.address, user, token_id)
            self.next_token_id += 1

            if record is None:
                record = self.records.setdefault(user, UserRecord())
            record.last_claim_time = now
            if record.first_claim_time is None:
                record.first_claim_time = now
            record.claim_history.append(token_id)
            self.token_categories[token_id] = category

            event = RewardEvent(
                event_type="Claimed",
                user=user,
                token_id=token_id,
                timestamp=now,
                category=category,
            )
            self.events.append(event)
            self._persist(checkpoint)
            reward_metrics.record_claim(category.label, self.next_token_id)

            logger.info(
                "Reward claimed",
                extra={
                    "event": "rewards.claimed",
                    "user": truncate_address(user),
                    "token_id": token_id,
                    "category": category.label,
                },
            )
            self._notify(event)

        return token_id

    def burn_and_unlock(
        self, caller: str, token_id: int, now: Optional[float] = None
    ) -> None:
        """
        Burn a reward token held by ``caller``.

        Claim timestamps are left untouched.

        Raises:
            NotTokenOwnerError: If ``caller`` does not currently own the token
                (including IDs that were never minted or are already burned)
            StorageError: If the attached persister fails; nothing is committed
        """
        if now is None:
            now = time.time()
        user = self._normalize(caller)

        with self._lock:
            if not self.collection.exists(token_id) or self.collection.owner_of(token_id) != user:
                logger.warning(
                    "Burn rejected: caller does not own token",
                    extra={
                        "event": "rewards.burn_not_owner",
                        "user": truncate_address(user),
                        "token_id": token_id,
                    },
                )
                raise NotTokenOwnerError(
                    f"Address {user} does not own token {token_id}",
                    details={"user": user, "token_id": token_id},
                )

            checkpoint = self._checkpoint()
            self.collection.burn(user, token_id)
            self.records.setdefault(user, UserRecord()).burn_history.append(token_id)

            event = RewardEvent(
                event_type="Burned",
                user=user,
                token_id=token_id,
                timestamp=now,
            )
            self.events.append(event)
            self._persist(checkpoint)
            reward_metrics.record_burn()

            logger.info(
                "Reward burned",
                extra={
                    "event": "rewards.burned",
                    "user": truncate_address(user),
                    "token_id": token_id,
                },
            )
            self._notify(event)

    # ==================== Admin ====================

    def set_category_base_uri(self, caller: str, category: Any, new_base: str) -> None:
        """
        Overwrite the base URI for a category (administrator only).

        Raises:
            UnauthorizedError: If ``caller`` is not the administrator; checked
                before ``category`` is parsed
            ValueError: If ``category`` names no category
        """
        caller_norm = self._normalize(caller)
        with self._lock:
            if caller_norm != self.admin:
                logger.warning(
                    "Unauthorized base URI update",
                    extra={
                        "event": "rewards.admin_unauthorized",
                        "caller": truncate_address(caller_norm),
                    },
                )
                raise UnauthorizedError(
                    "Caller is not the ledger administrator",
                    details={"caller": caller_norm},
                )
            category = Category.parse(category)

            checkpoint = self._checkpoint()
            self.category_base_uris[category] = new_base
            self._persist(checkpoint)

        logger.info(
            "Category base URI updated",
            extra={"event": "rewards.base_uri_updated", "category": category.label},
        )

    # ==================== Commit ====================

    def _checkpoint(self) -> Optional[Dict[str, Any]]:
        if self._persister is None:
            return None
        return {
            "state": self.to_dict(),
            "collection_events": len(self.collection.events),
        }

    def _persist(self, checkpoint: Optional[Dict[str, Any]]) -> None:
        if self._persister is None or checkpoint is None:
            return
        try:
            self._persister(self)
        except Exception:
            self._load_state(checkpoint["state"])
            del self.collection.events[checkpoint["collection_events"]:]
            logger.error(
                "Ledger change rolled back: snapshot could not be persisted",
                extra={"event": "rewards.persist_failed", "next_token_id": self.next_token_id},
            )
            raise

    # ==================== Events ====================

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable invoked with every committed Claimed/Burned event."""
        with self._lock:
            self._listeners.append(listener)

    def recent_events(self, limit: int = 50) -> List[RewardEvent]:
        with self._lock:
            if limit <= 0:
                return []
            return list(self.events[-limit:])

    def _notify(self, event: RewardEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Reward event listener failed",
                    extra={"event": "rewards.listener_error", "token_id": event.token_id},
                )

    # ==================== Queries ====================

    def category_of(self, token_id: int) -> Category:
        """
        Category recorded when the token was minted.

        Burned tokens keep their category.

        Raises:
            TokenNotFoundError: If the ID was never minted
        """
        category = self.token_categories.get(token_id)
        if category is None:
            raise TokenNotFoundError(
                f"Token {token_id} was never minted",
                details={"token_id": token_id},
            )
        return category

    def token_uri(self, token_id: int) -> str:
        """Base URI of the token's category followed by its decimal ID, or ""."""
        base = self.category_base_uris.get(self.category_of(token_id), "")
        if not base:
            return ""
        return f"{base}{token_id}"

    def category_base_uri(self, category: Any) -> str:
        return self.category_base_uris.get(Category.parse(category), "")

    def first_claim_time_of(self, user: str) -> Optional[float]:
        record = self.records.get(self._normalize(user))
        return record.first_claim_time if record else None

    def last_claim_time_of(self, user: str) -> Optional[float]:
        record = self.records.get(self._normalize(user))
        return record.last_claim_time if record else None

    def claim_history_of(self, user: str) -> List[int]:
        record = self.records.get(self._normalize(user))
        return list(record.claim_history) if record else []

    def burn_history_of(self, user: str) -> List[int]:
        record = self.records.get(self._normalize(user))
        return list(record.burn_history) if record else []

    def next_claim_time_of(self, user: str) -> Optional[float]:
        """Earliest timestamp the address may claim again; None if it never claimed."""
        last_claim = self.last_claim_time_of(user)
        if last_claim is None:
            return None
        return last_claim + CLAIM_COOLDOWN_SECONDS

    def can_claim(self, user: str, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        next_claim = self.next_claim_time_of(user)
        return next_claim is None or now >= next_claim

    def current_tier_of(self, user: str, now: Optional[float] = None) -> Category:
        """Category a claim by ``user`` at ``now`` would mint."""
        if now is None:
            now = time.time()
        return classify_tier(now, self.first_claim_time_of(user))

    def total_minted(self) -> int:
        """Number of token IDs allocated so far, burned tokens included."""
        return self.next_token_id

    def user_summary(self, user: str, now: Optional[float] = None) -> Dict[str, Any]:
        if now is None:
            now = time.time()
        user_norm = self._normalize(user)
        with self._lock:
            return {
                "address": user_norm,
                "first_claim_time": self.first_claim_time_of(user_norm),
                "last_claim_time": self.last_claim_time_of(user_norm),
                "next_claim_time": self.next_claim_time_of(user_norm),
                "can_claim": self.can_claim(user_norm, now),
                "next_category": self.current_tier_of(user_norm, now).label,
                "claim_history": self.claim_history_of(user_norm),
                "burn_history": self.burn_history_of(user_norm),
                "held_tokens": self.collection.tokens_of_owner(user_norm),
            }

    # ==================== Helpers ====================

    def _normalize(self, address: str) -> str:
        return address.lower()

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize ledger and collection state to a dictionary."""
        with self._lock:
            return {
                "admin": self.admin,
                "address": self.address,
                "category_base_uris": {
                    category.label: uri for category, uri in self.category_base_uris.items()
                },
                "records": {user: record.to_dict() for user, record in self.records.items()},
                "token_categories": {
                    str(token_id): category.label
                    for token_id, category in self.token_categories.items()
                },
                "next_token_id": self.next_token_id,
                "events": [event.to_dict() for event in self.events],
                "collection": self.collection.to_dict(),
            }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyRewardLedger":
        """Deserialize ledger state from dictionary."""
        ledger = cls(
            admin=data["admin"],
            base_uris=[""] * len(Category),
            collection=RewardCollection.from_dict(data["collection"]),
            address=data.get("address", ""),
        )
        ledger._load_state(data)
        return ledger

    def _load_state(self, data: Dict[str, Any]) -> None:
        uris = data.get("category_base_uris", {})
        self.category_base_uris = {
            category: uris.get(category.label, "") for category in Category
        }
        self.records = {
            user: UserRecord.from_dict(record)
            for user, record in data.get("records", {}).items()
        }
        self.token_categories = {
            int(token_id): Category.parse(label)
            for token_id, label in data.get("token_categories", {}).items()
        }
        self.next_token_id = int(data.get("next_token_id", 0))
        self.events = [RewardEvent.from_dict(e) for e in data.get("events", [])]
        self.collection.restore(data["collection"])
