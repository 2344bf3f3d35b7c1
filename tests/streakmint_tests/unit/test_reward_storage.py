"""
Unit tests for ledger snapshot persistence
"""

import json
import os
import threading
from unittest.mock import patch

import pytest

from streakmint.core.contracts.daily_reward import Category
from streakmint.core.reward_exceptions import ClaimTooSoonError, CorruptedDataError, StorageError
from streakmint.core.reward_storage import RewardStore

ALICE = "0x" + "a1" * 20
T0 = 1_700_000_000.0
DAY = 86400


@pytest.fixture
def store(temp_data_dir):
    return RewardStore(os.path.join(temp_data_dir, "ledger.json"))


class TestRewardStore:
    """Test saving and loading ledger snapshots"""

    def test_load_missing_returns_none(self, store):
        assert store.exists() is False
        assert store.load() is None

    def test_save_and_load(self, store, ledger):
        for day in range(8):
            ledger.claim(ALICE, T0 + day * DAY)
        ledger.burn_and_unlock(ALICE, 2, T0 + 8 * DAY)

        store.save(ledger)
        restored = store.load()

        assert restored.claim_history_of(ALICE) == list(range(8))
        assert restored.burn_history_of(ALICE) == [2]
        assert restored.category_of(7) == Category.BETA
        assert restored.token_uri(7) == "https://x/b/7"
        assert restored.next_token_id == 8
        with pytest.raises(ClaimTooSoonError):
            restored.claim(ALICE, T0 + 8 * DAY - 1)

    def test_snapshot_is_json(self, store, ledger):
        ledger.claim(ALICE, T0)
        store.save(ledger)

        with open(store.path, "r", encoding="utf-8") as f:
            data = json.load(f)

        assert data["next_token_id"] == 1
        assert data["token_categories"] == {"0": "Theta"}
        assert data["records"][ALICE.lower()]["first_claim_time"] == T0

    def test_save_creates_parent_dir(self, temp_data_dir, ledger):
        store = RewardStore(os.path.join(temp_data_dir, "nested", "ledger.json"))
        store.save(ledger)

        assert store.exists()

    def test_corrupted_snapshot_moved_aside(self, store):
        store.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptedDataError):
            store.load()

        assert not store.path.exists()
        assert os.path.exists(str(store.path) + ".corrupted")

    @pytest.mark.parametrize(
        "content",
        [
            "[1, 2, 3]",
            "\"ledger\"",
            json.dumps({"admin": "0x1", "records": [], "collection": {}}),
            json.dumps({"admin": "0x1", "collection": []}),
        ],
    )
    def test_wrong_layout_moved_aside(self, store, content):
        store.path.write_text(content, encoding="utf-8")

        with pytest.raises(CorruptedDataError):
            store.load()

        assert not store.path.exists()
        assert os.path.exists(str(store.path) + ".corrupted")

    def test_failed_write_leaves_previous_snapshot(self, store, ledger):
        ledger.claim(ALICE, T0)
        store.save(ledger)
        ledger.claim(ALICE, T0 + DAY)

        with patch("streakmint.core.reward_storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError):
                store.save(ledger)

        assert store.load().claim_history_of(ALICE) == [0]
        assert [p for p in os.listdir(store.path.parent) if p.endswith(".tmp")] == []

    def test_save_holds_ledger_lock_until_replaced(self, store, ledger):
        real_replace = os.replace
        lock_free = []

        def replace_and_check(src, dst):
            def try_lock():
                acquired = ledger.lock.acquire(blocking=False)
                if acquired:
                    ledger.lock.release()
                lock_free.append(acquired)

            other = threading.Thread(target=try_lock)
            other.start()
            other.join()
            real_replace(src, dst)

        with patch("streakmint.core.reward_storage.os.replace", side_effect=replace_and_check):
            store.save(ledger)

        assert lock_free == [False]
        assert store.exists()

    def test_concurrent_claims_and_saves_keep_latest_state(self, store, admin, base_uris):
        ledger = store.load_or_create(admin, base_uris)
        ledger.attach_persister(store.save)
        users = [f"0x{i:040x}" for i in range(1, 21)]

        threads = [threading.Thread(target=ledger.claim, args=(user, T0)) for user in users]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        restored = store.load()
        assert restored.total_minted() == len(users)
        assert sorted(restored.to_dict()["records"]) == sorted(users)

    def test_load_or_create(self, store, admin, base_uris):
        ledger = store.load_or_create(admin, base_uris)
        assert ledger.total_minted() == 0

        ledger.claim(ALICE, T0)
        store.save(ledger)

        again = store.load_or_create(admin, base_uris)
        assert again.total_minted() == 1
