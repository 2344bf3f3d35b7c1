"""
Unit tests for environment configuration
"""

import os

import pytest

from streakmint.core.config import DEFAULT_API_PORT, RewardConfig
from streakmint.core.reward_exceptions import ConfigurationError

ADMIN = "0x" + "aa" * 20


def _env(**overrides):
    env = {"STREAKMINT_ADMIN_ADDRESS": ADMIN}
    env.update(overrides)
    return env


class TestRewardConfig:
    """Test RewardConfig.from_env"""

    def test_defaults(self):
        config = RewardConfig.from_env(_env())

        assert config.admin_address == ADMIN
        assert config.base_uris == ["", "", "", ""]
        assert config.persist is True
        assert config.api_port == DEFAULT_API_PORT
        assert config.log_level == "INFO"
        assert config.log_dir is None

    def test_base_uris_in_category_order(self):
        config = RewardConfig.from_env(
            _env(
                STREAKMINT_THETA_BASE_URI="t/",
                STREAKMINT_BETA_BASE_URI="b/",
                STREAKMINT_ALPHA_BASE_URI="a/",
                STREAKMINT_SIGMA_BASE_URI="s/",
            )
        )

        assert config.base_uris == ["t/", "b/", "a/", "s/"]

    def test_admin_required(self):
        with pytest.raises(ConfigurationError):
            RewardConfig.from_env({})

    def test_invalid_port(self):
        with pytest.raises(ConfigurationError):
            RewardConfig.from_env(_env(STREAKMINT_API_PORT="eighty"))

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError):
            RewardConfig.from_env(_env(STREAKMINT_LOG_LEVEL="chatty"))

    @pytest.mark.parametrize("raw,expected", [("0", False), ("false", False), ("yes", True)])
    def test_persist_flag(self, raw, expected):
        config = RewardConfig.from_env(_env(STREAKMINT_PERSIST=raw))

        assert config.persist is expected

    def test_snapshot_path(self, tmp_path):
        config = RewardConfig.from_env(_env(STREAKMINT_DATA_DIR=str(tmp_path)))

        assert config.snapshot_path == os.path.join(str(tmp_path), "ledger.json")

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("STREAKMINT_ADMIN_ADDRESS", ADMIN)
        monkeypatch.setenv("STREAKMINT_API_PORT", "9100")

        config = RewardConfig.from_env()

        assert config.api_port == 9100
