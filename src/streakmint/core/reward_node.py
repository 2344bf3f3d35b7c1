"""
StreakMint reward node

Wires configuration, storage, the ledger and the Flask API together and runs
the HTTP server.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from streakmint.core.api_blueprints import register_blueprints
from streakmint.core.config import RewardConfig
from streakmint.core.contracts.daily_reward import DailyRewardLedger
from streakmint.core.reward_storage import RewardStore
from streakmint.core.structured_logger import configure_logging

logger = logging.getLogger(__name__)


def build_ledger(config: RewardConfig) -> tuple[DailyRewardLedger, Optional[RewardStore]]:
    """Load the persisted ledger (or create one) according to ``config``."""
    if not config.persist:
        return DailyRewardLedger(admin=config.admin_address, base_uris=config.base_uris), None

    store = RewardStore(config.snapshot_path)
    ledger = store.load_or_create(config.admin_address, config.base_uris)
    return ledger, store


def create_app(
    ledger: DailyRewardLedger,
    store: Optional[RewardStore] = None,
    clock: Optional[Callable[[], float]] = None,
) -> Flask:
    """Create the Flask application serving ``ledger``."""
    app = Flask("streakmint")
    register_blueprints(app, ledger, store, clock)

    @app.route("/health", methods=["GET"])
    def health():
        return {"status": "ok", "total_minted": ledger.total_minted()}

    @app.route("/metrics", methods=["GET"])
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    return app


def main() -> None:
    config = RewardConfig.from_env()
    configure_logging(config.log_level, config.log_dir)
    ledger, store = build_ledger(config)
    app = create_app(ledger, store)
    logger.info(
        "Starting reward node",
        extra={
            "event": "node.start",
            "host": config.api_host,
            "port": config.api_port,
            "persist": config.persist,
        },
    )
    app.run(host=config.api_host, port=config.api_port)


if __name__ == "__main__":
    main()
