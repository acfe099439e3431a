"""API routes for notifications module."""

from fastapi import APIRouter, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from paayo.core.dependencies import DBSession
from paayo.core.redis import get_redis_client
from paayo.core.security import CurrentUser
from paayo.modules.notifications.schemas import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from paayo.modules.notifications.service import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    NotificationService,
)
from paayo.modules.notifications.stream import SSE_HEADERS, NotificationStream

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse], summary="List my notifications")
async def list_notifications(
    user: CurrentUser,
    db: DBSession,
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    unread_only: bool = Query(default=False),
) -> list[NotificationResponse]:
    notifications = await NotificationService(db).list_for_user(
        user.id, limit=limit, unread_only=unread_only
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread count")
async def unread_count(user: CurrentUser, db: DBSession) -> UnreadCountResponse:
    return UnreadCountResponse(count=await NotificationService(db).unread_count(user.id))


@router.get("/stream", summary="Notification event stream (SSE)")
async def stream_notifications(request: Request, user: CurrentUser) -> StreamingResponse:
    """Server-sent events: ``connected``, ``unread_count``, ``notification``
    and ``heartbeat``."""
    stream = NotificationStream(user.id, redis_client=get_redis_client())
    return StreamingResponse(
        stream.events(request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark notification as read",
)
async def mark_read(notification_id: str, user: CurrentUser, db: DBSession) -> Response:
    await NotificationService(db).mark_read(user.id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark all as read")
async def mark_all_read(user: CurrentUser, db: DBSession) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await NotificationService(db).mark_all_read(user.id))
