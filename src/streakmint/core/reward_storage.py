"""
JSON snapshot persistence for the daily reward ledger.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Sequence

from streakmint.core.contracts.daily_reward import DailyRewardLedger
from streakmint.core.reward_exceptions import CorruptedDataError, StorageError

logger = logging.getLogger(__name__)

# Top-level snapshot keys holding JSON objects
_OBJECT_KEYS = ("category_base_uris", "records", "token_categories", "collection")


def _check_layout(data: Any) -> None:
    if not isinstance(data, dict):
        raise ValueError(f"snapshot root must be an object, got {type(data).__name__}")
    for key in _OBJECT_KEYS:
        if key in data and not isinstance(data[key], dict):
            raise ValueError(f"snapshot field {key!r} must be an object")


class RewardStore:
    """Saves and restores a ledger (with its collection) as one JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, ledger: DailyRewardLedger) -> None:
        """
        Write the snapshot atomically (temp file + rename).

        The ledger lock is held from snapshot to rename, so a concurrent
        save can never install an older snapshot over a newer one.
        """
        with ledger.lock:
            snapshot = ledger.to_dict()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".ledger-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(snapshot, f, indent=2)
                os.replace(tmp_path, self.path)
            except OSError as e:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise StorageError(
                    f"Failed to write ledger snapshot: {e}",
                    details={"path": str(self.path)},
                    recoverable=True,
                ) from e

        logger.debug(
            "Ledger snapshot saved",
            extra={
                "event": "rewards.storage.saved",
                "path": str(self.path),
                "next_token_id": snapshot["next_token_id"],
            },
        )

    def load(self) -> Optional[DailyRewardLedger]:
        """
        Read the snapshot.

        Returns:
            The restored ledger, or None if no snapshot exists

        Raises:
            CorruptedDataError: If the file cannot be decoded or does not
                have the snapshot layout; the file is moved aside to
                ``<name>.corrupted`` first
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            _check_layout(data)
            ledger = DailyRewardLedger.from_dict(data)
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            backup_path = str(self.path) + ".corrupted"
            logger.error(
                "Corrupted ledger snapshot, moved aside",
                extra={
                    "event": "rewards.storage.corrupted",
                    "path": str(self.path),
                    "backup": backup_path,
                    "error": str(e),
                },
            )
            self.path.rename(backup_path)
            raise CorruptedDataError(
                f"Ledger snapshot {self.path} is corrupted: {e}",
                details={"path": str(self.path), "backup": backup_path},
            ) from e

        logger.info(
            "Ledger snapshot loaded",
            extra={
                "event": "rewards.storage.loaded",
                "path": str(self.path),
                "users": len(ledger.records),
                "next_token_id": ledger.next_token_id,
            },
        )
        return ledger

    def load_or_create(
        self, admin: str, base_uris: Sequence[str]
    ) -> DailyRewardLedger:
        """Load the stored ledger, or start a fresh one if none is stored."""
        ledger = self.load()
        if ledger is None:
            ledger = DailyRewardLedger(admin=admin, base_uris=base_uris)
            logger.info(
                "Created new reward ledger",
                extra={"event": "rewards.storage.created", "path": str(self.path)},
            )
        return ledger
