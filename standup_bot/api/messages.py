"""
Bot Framework messaging endpoint for the Standup Order Bot.

This module receives activities posted by the messaging platform, turns
message activities into order requests and hands them to the orchestrator,
which replies through the platform.
"""

import time
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from standup_bot.integrations.platform import PlatformError
from standup_bot.models.activity import Activity
from standup_bot.ordering.orchestrator import StandupOrderOrchestrator
from standup_bot.utils.logging import get_logger
from standup_bot.utils.validation import (
    InputTooLongError,
    ValidationError as InputValidationError,
    validate_activity_payload_size,
    validate_request_text,
)

logger = get_logger(__name__)


# Router for messaging endpoints
router = APIRouter(prefix="/api", tags=["Messages"])


class MessageResponse(BaseModel):
    """Response model for a processed activity."""

    status: str
    processed_in_ms: float
    reply_kind: Optional[str] = None
    message: Optional[str] = None


# Global orchestrator instance (initialized on startup)
_orchestrator: Optional[StandupOrderOrchestrator] = None


def set_orchestrator(orchestrator: Optional[StandupOrderOrchestrator]) -> None:
    """Set the global orchestrator instance."""
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator() -> StandupOrderOrchestrator:
    """Get the global orchestrator instance."""
    if _orchestrator is None:
        raise RuntimeError("Orchestrator not initialized. Call set_orchestrator() first.")
    return _orchestrator


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 1)


@router.post("/messages", response_model=MessageResponse)
async def receive_activity(request: Request) -> MessageResponse:
    """
    Receive an activity from the messaging platform.

    Message activities are answered with a help text, the speaking order,
    or a note that someone else already asked. Other activity types
    (conversation updates, typing, reactions) are acknowledged and ignored.

    Raises:
        HTTPException: 400 if the activity is malformed
        HTTPException: 413 if the payload or text is too long
        HTTPException: 502 if the platform cannot be reached
    """
    start_time = time.perf_counter()

    raw_body = await request.body()

    try:
        validate_activity_payload_size(raw_body)
    except InputTooLongError:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Activity payload exceeds maximum allowed size",
        )

    try:
        activity = Activity.model_validate_json(raw_body)
    except ModelValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid activity: {e.error_count()} validation error(s)",
        )

    if not activity.is_message:
        logger.debug("activity_ignored", activity_type=activity.type)
        return MessageResponse(
            status="ignored",
            message=f"Activity type '{activity.type}' not processed",
            processed_in_ms=_elapsed_ms(start_time),
        )

    try:
        text = validate_request_text(activity.text_without_recipient_mention())
    except InputTooLongError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Input too long: {e}",
        )
    except InputValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Validation error: {e}",
        )

    orchestrator = get_orchestrator()
    order_request = activity.to_order_request(text=text)

    try:
        payload = await orchestrator.handle_message(order_request)
    except PlatformError as e:
        logger.error(
            "platform_call_failed",
            error=str(e),
            error_type=type(e).__name__,
            status_code=e.status_code,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Messaging platform error: {type(e).__name__}",
        )

    return MessageResponse(
        status="processed",
        reply_kind=payload.kind.value,
        processed_in_ms=_elapsed_ms(start_time),
    )
