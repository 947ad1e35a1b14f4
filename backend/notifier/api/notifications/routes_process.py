"""Database webhook: process one pending notification."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifier.api.deps import get_dispatcher, get_session_factory, verify_webhook_secret
from notifier.domain.common.errors import InvalidRecordError
from notifier.domain.notifications.models import DispatchStatus, PendingEvent
from notifier.services.dispatch_service import NotificationDispatcher, log_pipeline_failure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route("/", methods=["GET", "HEAD", "OPTIONS", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def method_not_allowed():
    return PlainTextResponse("Method not allowed", status_code=405)


@router.post("/", dependencies=[Depends(verify_webhook_secret)])
async def process_notification(
    request: Request,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Called by the database webhook with {"record": <pending_notifications row>}.

    Resolution misses (duplicate, no tokens, no valid tokens) are terminal and
    leave the event unprocessed. Any other failure answers 500 with processed
    still false, so the trigger may redeliver.
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON payload"})

    record = body.get("record") if isinstance(body, dict) else None
    try:
        event = PendingEvent.model_validate(record)
    except ValidationError as e:
        raise InvalidRecordError([{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]) from e

    try:
        result = await dispatcher.process(event)
    except Exception as e:
        logger.error("Failed to process notification %s: %s", event.id, e, exc_info=True)
        try:
            await dispatcher.session.rollback()
        except Exception as rollback_error:
            logger.warning("Rollback failed: %s", rollback_error)
        await log_pipeline_failure(session_factory, event.user_id, e, record)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process notification", "details": str(e)},
        )

    if result.status == DispatchStatus.ALREADY_PROCESSED:
        return {"message": "Notification already processed"}
    if result.status == DispatchStatus.DUPLICATE:
        return {"message": "Duplicate notification skipped (logged)"}
    if result.status == DispatchStatus.NO_TOKENS:
        return JSONResponse(status_code=404, content={"error": "No push tokens found"})
    if result.status == DispatchStatus.NO_VALID_MESSAGES:
        return {"message": "No valid push tokens found"}
    return {"success": True, "tickets": result.tickets, "notificationId": result.notification_id}
