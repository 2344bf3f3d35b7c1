"""
Tests for the reward CLI commands

HTTP calls to the node are mocked.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from click.testing import CliRunner

from streakmint.cli.main import cli

ALICE = "0x" + "a1" * 20
NODE = "http://node:8090"


def _response(payload, status=200):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.json.return_value = payload
    return resp


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_request():
    with patch("streakmint.cli.reward_commands.requests.request") as mock:
        yield mock


class TestClaimCommand:
    def test_claim(self, runner, mock_request):
        mock_request.return_value = _response(
            {"success": True, "token_id": 4, "category": "Beta", "token_uri": "https://x/b/4"}
        )

        result = runner.invoke(cli, ["--node-url", NODE, "claim", ALICE])

        assert result.exit_code == 0
        assert "Claimed token #4" in result.output
        assert "https://x/b/4" in result.output
        method, url = mock_request.call_args[0]
        assert method == "POST"
        assert url == f"{NODE}/rewards/claim"
        assert mock_request.call_args[1]["json"] == {"address": ALICE}

    def test_claim_too_soon_surfaces_node_error(self, runner, mock_request):
        mock_request.return_value = _response(
            {"success": False, "error": "Claim too soon", "code": "claim_too_soon"}, status=429
        )

        result = runner.invoke(cli, ["--node-url", NODE, "claim", ALICE])

        assert result.exit_code != 0
        assert "Claim too soon" in result.output

    def test_connection_error(self, runner, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")

        result = runner.invoke(cli, ["--node-url", NODE, "claim", ALICE])

        assert result.exit_code != 0
        assert "API error" in result.output

    def test_json_output(self, runner, mock_request):
        payload = {"success": True, "token_id": 0, "category": "Theta", "token_uri": ""}
        mock_request.return_value = _response(payload)

        result = runner.invoke(cli, ["--node-url", NODE, "--json", "claim", ALICE])

        assert result.exit_code == 0
        assert json.loads(result.output) == payload


class TestOtherCommands:
    def test_burn(self, runner, mock_request):
        mock_request.return_value = _response({"success": True, "token_id": 2, "timestamp": 1.0})

        result = runner.invoke(cli, ["--node-url", NODE, "burn", ALICE, "2"])

        assert result.exit_code == 0
        assert "Burned token #2" in result.output
        assert mock_request.call_args[1]["json"] == {"address": ALICE, "token_id": 2}

    def test_status(self, runner, mock_request):
        mock_request.return_value = _response(
            {
                "success": True,
                "user": {
                    "address": ALICE,
                    "first_claim_time": 1_700_000_000.0,
                    "last_claim_time": 1_700_000_000.0,
                    "next_claim_time": 1_700_086_400.0,
                    "can_claim": False,
                    "next_category": "Theta",
                    "claim_history": [0],
                    "burn_history": [],
                    "held_tokens": [0],
                },
            }
        )

        result = runner.invoke(cli, ["--node-url", NODE, "status", ALICE])

        assert result.exit_code == 0
        assert "Theta" in result.output
        assert "2023-11-14" in result.output

    def test_token_burned(self, runner, mock_request):
        mock_request.return_value = _response(
            {"success": True, "token_id": 1, "category": "Alpha", "owner": None,
             "burned": True, "token_uri": ""}
        )

        result = runner.invoke(cli, ["--node-url", NODE, "token", "1"])

        assert result.exit_code == 0
        assert "burned" in result.output

    def test_events_empty(self, runner, mock_request):
        mock_request.return_value = _response({"success": True, "events": []})

        result = runner.invoke(cli, ["--node-url", NODE, "events", "--limit", "5"])

        assert result.exit_code == 0
        assert "No events yet" in result.output
        assert mock_request.call_args[0][1] == f"{NODE}/rewards/events?limit=5"

    def test_set_base_uri(self, runner, mock_request):
        mock_request.return_value = _response(
            {"success": True, "category": "Sigma", "base_uri": "ipfs://s/"}
        )

        result = runner.invoke(
            cli, ["--node-url", NODE, "set-base-uri", ALICE, "SIGMA", "ipfs://s/"]
        )

        assert result.exit_code == 0
        assert mock_request.call_args[0][0] == "PUT"
        assert mock_request.call_args[1]["json"]["category"] == "sigma"

    def test_set_base_uri_rejects_unknown_category(self, runner, mock_request):
        result = runner.invoke(
            cli, ["--node-url", NODE, "set-base-uri", ALICE, "omega", "x"]
        )

        assert result.exit_code != 0
        mock_request.assert_not_called()
