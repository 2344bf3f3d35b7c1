import shutil
import tempfile

import pytest

from streakmint.core.contracts.daily_reward import DailyRewardLedger

ADMIN = "0x" + "aa" * 20

BASE_URIS = [
    "https://x/t/",
    "https://x/b/",
    "https://x/a/",
    "https://x/s/",
]


@pytest.fixture
def temp_data_dir():
    """Create a temporary directory for ledger snapshots"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def base_uris():
    return list(BASE_URIS)


@pytest.fixture
def ledger(admin, base_uris):
    """Fresh ledger with default base URIs"""
    return DailyRewardLedger(admin=admin, base_uris=base_uris)
