"""
Rewards API Blueprint

Handles daily reward endpoints: claim, burn, per-address status, token lookup,
admin base URI updates and the event feed.

With a store attached, every mutation is written to disk as part of its
commit; a failed write rolls the mutation back and answers 503.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, request
from pydantic import ValidationError as PydanticValidationError

from streakmint.core.api_blueprints.base import (
    current_time,
    error_response,
    get_ledger,
    invalid_payload_response,
    log_address,
    success_response,
)
from streakmint.core.contracts.daily_reward import Category
from streakmint.core.input_validation_schemas import (
    BaseUriUpdateInput,
    RewardBurnInput,
    RewardClaimInput,
)
from streakmint.core.reward_exceptions import (
    ClaimTooSoonError,
    InvalidAddressError,
    NotTokenOwnerError,
    StorageError,
    TokenNotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

rewards_bp = Blueprint("rewards", __name__, url_prefix="/rewards")

MAX_EVENTS_LIMIT = 500

FIELD_ERROR_CODES = {
    "address": "invalid_address",
    "caller": "invalid_address",
    "token_id": "invalid_token_id",
    "category": "invalid_category",
    "base_uri": "invalid_base_uri",
}


def _storage_unavailable(exc: StorageError) -> Tuple[Any, int]:
    return error_response(
        "Ledger could not be persisted; the request was not applied",
        status=503,
        code="storage_unavailable",
        context={"retryable": exc.recoverable},
    )


@rewards_bp.route("/claim", methods=["POST"])
def claim_reward() -> Tuple[Any, int]:
    """Claim today's reward token."""
    payload = request.get_json(silent=True) or {}
    try:
        model = RewardClaimInput.parse_obj(payload)
    except PydanticValidationError as exc:
        return invalid_payload_response(exc, "Invalid claim request", FIELD_ERROR_CODES)

    address = model.address
    ledger = get_ledger()
    now = current_time()
    try:
        token_id = ledger.claim(address, now)
    except InvalidAddressError as e:
        return error_response(e.message, code="invalid_address")
    except ClaimTooSoonError as e:
        return error_response(
            e.message,
            status=429,
            code="claim_too_soon",
            context={"next_claim_time": e.next_claim_time},
        )
    except StorageError as e:
        return _storage_unavailable(e)

    logger.info(
        "Claim served",
        extra={"event": "api.rewards.claim", "address": log_address(address), "token_id": token_id},
    )
    return success_response(
        {
            "token_id": token_id,
            "category": ledger.category_of(token_id).label,
            "token_uri": ledger.token_uri(token_id),
            "timestamp": now,
        }
    )


@rewards_bp.route("/burn", methods=["POST"])
def burn_reward() -> Tuple[Any, int]:
    """Burn a held reward token."""
    payload = request.get_json(silent=True) or {}
    try:
        model = RewardBurnInput.parse_obj(payload)
    except PydanticValidationError as exc:
        return invalid_payload_response(exc, "Invalid burn request", FIELD_ERROR_CODES)

    ledger = get_ledger()
    now = current_time()
    try:
        ledger.burn_and_unlock(model.address, model.token_id, now)
    except NotTokenOwnerError as e:
        return error_response(e.message, status=403, code="not_token_owner")
    except StorageError as e:
        return _storage_unavailable(e)

    return success_response({"token_id": model.token_id, "timestamp": now})


@rewards_bp.route("/users/<address>", methods=["GET"])
def get_user(address: str) -> Tuple[Any, int]:
    """Claim status and history for an address."""
    return success_response({"user": get_ledger().user_summary(address)})


@rewards_bp.route("/tokens/<int:token_id>", methods=["GET"])
def get_token(token_id: int) -> Tuple[Any, int]:
    """Category, current owner and metadata URI for a token."""
    ledger = get_ledger()
    try:
        category = ledger.category_of(token_id)
    except TokenNotFoundError as e:
        return error_response(e.message, status=404, code="token_not_found")

    live = ledger.collection.exists(token_id)
    return success_response(
        {
            "token_id": token_id,
            "category": category.label,
            "owner": ledger.collection.owner_of(token_id) if live else None,
            "burned": not live,
            "token_uri": ledger.token_uri(token_id),
        }
    )


@rewards_bp.route("/admin/base-uri", methods=["PUT"])
def set_base_uri() -> Tuple[Any, int]:
    """Change a category's base URI (administrator only)."""
    payload = request.get_json(silent=True) or {}
    try:
        model = BaseUriUpdateInput.parse_obj(payload)
    except PydanticValidationError as exc:
        return invalid_payload_response(exc, "Invalid base URI update", FIELD_ERROR_CODES)

    try:
        get_ledger().set_category_base_uri(model.caller, model.category, model.base_uri)
    except UnauthorizedError as e:
        return error_response(e.message, status=403, code="unauthorized")
    except ValueError as e:
        return error_response(str(e), code="invalid_category")
    except StorageError as e:
        return _storage_unavailable(e)

    return success_response(
        {"category": Category.parse(model.category).label, "base_uri": model.base_uri}
    )


@rewards_bp.route("/events", methods=["GET"])
def list_events() -> Tuple[Any, int]:
    """Most recent Claimed/Burned events, oldest first."""
    limit = request.args.get("limit", default=50, type=int)
    limit = max(0, min(limit, MAX_EVENTS_LIMIT))
    events: Dict[str, Any] = {
        "events": [event.to_dict() for event in get_ledger().recent_events(limit)]
    }
    return success_response(events)
