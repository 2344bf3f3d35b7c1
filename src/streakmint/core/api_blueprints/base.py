"""
Base utilities for API Blueprints

Provides the request-scoped ledger context and response helpers shared by the
reward blueprints.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

from flask import g, jsonify
from pydantic import ValidationError as PydanticValidationError

from streakmint.core.structured_logger import truncate_address

if TYPE_CHECKING:
    from streakmint.core.contracts.daily_reward import DailyRewardLedger

logger = logging.getLogger(__name__)


def get_api_context() -> Dict[str, Any]:
    """Get the API context stored in Flask's g object during request setup."""
    return g.get("api_context", {})


def get_ledger() -> "DailyRewardLedger":
    return get_api_context().get("ledger")


def current_time() -> float:
    """Timestamp for the current request, from the configured clock."""
    clock = get_api_context().get("clock") or time.time
    return clock()


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Any, int]:
    """Return an error response and log it at a level matching the status."""
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "API error: %s",
        code,
        extra={"event": "api.error", "code": code, "status": status, **(context or {})},
    )
    body: Dict[str, Any] = {"success": False, "error": message, "code": code}
    if context:
        body.update({k: v for k, v in context.items() if k not in body})
    return jsonify(body), status


def invalid_payload_response(
    exc: PydanticValidationError,
    message: str,
    field_codes: Mapping[str, str],
) -> Tuple[Any, int]:
    """
    400 response for a request body that failed its input model.

    The error code names the first offending field via ``field_codes``
    (``invalid_payload`` when the field is not listed).
    """
    errors = exc.errors()
    field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else ""
    logger.warning(
        "PydanticValidationError in %s",
        message,
        extra={"error_type": "PydanticValidationError", "error": str(exc), "field": field},
    )
    return error_response(
        message,
        status=400,
        code=field_codes.get(field, "invalid_payload"),
        context={"errors": errors},
    )


def log_address(address: str) -> str:
    return truncate_address(address)
