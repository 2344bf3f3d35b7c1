from __future__ import annotations

"""
StreakMint API Blueprints

Usage:
    from streakmint.core.api_blueprints import register_blueprints
    register_blueprints(app, ledger, store)
"""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from flask import Flask, g

from streakmint.core.api_blueprints.base import error_response
from streakmint.core.api_blueprints.rewards_bp import rewards_bp

if TYPE_CHECKING:
    from streakmint.core.contracts.daily_reward import DailyRewardLedger
    from streakmint.core.reward_storage import RewardStore

__all__ = [
    "rewards_bp",
    "register_blueprints",
    "ALL_BLUEPRINTS",
]

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = [
    rewards_bp,
]


def register_blueprints(
    app: Flask,
    ledger: "DailyRewardLedger",
    store: Optional["RewardStore"] = None,
    clock: Optional[Callable[[], float]] = None,
) -> None:
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
        ledger: Ledger served by the API
        store: Snapshot store; when set, every mutation is saved as part of
            its commit and rolled back if the save fails
        clock: Timestamp source for claims and burns (defaults to time.time)
    """
    if store is not None:
        ledger.attach_persister(store.save)

    api_context = {
        "ledger": ledger,
        "clock": clock,
    }

    @app.before_request
    def inject_api_context() -> None:
        """Inject API context into Flask's g object for blueprint access."""
        g.api_context = api_context

    @app.errorhandler(500)
    def handle_internal_error(error):
        original = getattr(error, "original_exception", None) or error
        logger.error(
            "Unhandled API exception: %s",
            type(original).__name__,
            extra={"event": "api.unhandled_exception"},
            exc_info=(type(original), original, original.__traceback__),
        )
        return error_response("Internal server error", status=500, code="internal_error")

    for bp in ALL_BLUEPRINTS:
        app.register_blueprint(bp)
