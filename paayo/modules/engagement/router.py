"""API routes for engagement module."""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.fingerprint import (
    ViewerContext,
    get_client_ip,
    get_user_agent,
    request_fingerprint,
)
from paayo.core.pagination import ListResponse
from paayo.core.security import AdminUser, EditorUser
from paayo.middleware.rate_limit import engagement_rate_limit
from paayo.modules.engagement.models import CommentStatus
from paayo.modules.engagement.schemas import (
    AggregateResponse,
    CommentAdminResponse,
    CommentBatchModerate,
    CommentBatchResponse,
    CommentCreate,
    CommentModerate,
    CommentResponse,
    DailyViewStats,
    LikeStatusResponse,
    LikeToggleResponse,
    PendingCountResponse,
    PruneResponse,
    TopLikedItem,
    TopLikedResponse,
    TrendingItem,
    TrendingResponse,
    ViewRecordRequest,
    ViewRecordResponse,
    ViewStatsResponse,
    ViewSummaryItem,
)
from paayo.modules.engagement.service import CommentService, LikeService, ViewService

router = APIRouter(tags=["Engagement"])


# ============================================================================
# Views
# ============================================================================


@router.post(
    "/views",
    response_model=ViewRecordResponse,
    summary="Record a content view",
    dependencies=[Depends(engagement_rate_limit)],
)
async def record_view(
    data: ViewRecordRequest, request: Request, db: DBSession
) -> ViewRecordResponse:
    recorded = await ViewService(db).record_view(
        data.target_type,
        data.target_id,
        request_fingerprint(request, ViewerContext.VIEW),
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request) or None,
        referrer=request.headers.get("Referer"),
    )
    return ViewRecordResponse(recorded=recorded)


@router.get(
    "/views/trending/{target_type}",
    response_model=TrendingResponse,
    summary="Most viewed items of a kind",
)
async def trending(
    target_type: str,
    db: DBSession,
    days: int | None = Query(default=None),
    limit: int | None = Query(default=None),
) -> TrendingResponse:
    days_used, rows = await ViewService(db).trending(target_type, days=days, limit=limit)
    return TrendingResponse(
        target_type=target_type,
        days=days_used,
        items=[TrendingItem(target_id=target_id, view_count=count) for target_id, count in rows],
    )


@router.get(
    "/views/admin/summary",
    response_model=list[ViewSummaryItem],
    summary="Total views per content type",
)
async def view_summary(user: AdminUser, db: DBSession) -> list[ViewSummaryItem]:
    rows = await ViewService(db).summary()
    return [
        ViewSummaryItem(target_type=kind, total_views=total, unique_viewers=unique)
        for kind, total, unique in rows
    ]


@router.post(
    "/views/admin/aggregate",
    response_model=AggregateResponse,
    summary="Aggregate yesterday's raw views",
)
async def aggregate_views(user: AdminUser, db: DBSession) -> AggregateResponse:
    view_date, rows = await ViewService(db).aggregate_daily()
    return AggregateResponse(view_date=view_date, rows_affected=rows)


@router.post(
    "/views/admin/prune",
    response_model=PruneResponse,
    summary="Delete raw views past retention",
)
async def prune_views(
    user: AdminUser,
    db: DBSession,
    retention_days: int | None = Query(default=None, ge=1),
) -> PruneResponse:
    days, deleted = await ViewService(db).prune(retention_days)
    return PruneResponse(retention_days=days, deleted=deleted)


@router.get(
    "/views/{target_type}/{target_id}",
    response_model=ViewStatsResponse,
    summary="View stats of a content item",
)
async def view_stats(target_type: str, target_id: str, db: DBSession) -> ViewStatsResponse:
    total, unique = await ViewService(db).get_stats(target_type, target_id)
    return ViewStatsResponse(
        target_type=target_type,
        target_id=target_id,
        total_views=total,
        unique_viewers=unique,
    )


@router.get(
    "/views/{target_type}/{target_id}/daily",
    response_model=list[DailyViewStats],
    summary="Daily view stats of a content item",
)
async def daily_views(
    target_type: str,
    target_id: str,
    user: AdminUser,
    db: DBSession,
    days: int | None = Query(default=None),
) -> list[DailyViewStats]:
    rows = await ViewService(db).daily(target_type, target_id, days=days)
    return [
        DailyViewStats(view_date=day, view_count=total, unique_viewers=unique)
        for day, total, unique in rows
    ]


# ============================================================================
# Likes
# ============================================================================


@router.post(
    "/content/{target_type}/{target_id}/like",
    response_model=LikeToggleResponse,
    summary="Toggle like",
    dependencies=[Depends(engagement_rate_limit)],
)
async def toggle_like(
    target_type: str, target_id: str, request: Request, db: DBSession
) -> LikeToggleResponse:
    liked, count = await LikeService(db).toggle(
        target_type,
        target_id,
        request_fingerprint(request, ViewerContext.LIKE),
        ip_address=get_client_ip(request),
    )
    return LikeToggleResponse(liked=liked, like_count=count)


@router.get(
    "/content/{target_type}/{target_id}/like-status",
    response_model=LikeStatusResponse,
    summary="Whether this viewer likes the item",
)
async def like_status(
    target_type: str, target_id: str, request: Request, db: DBSession
) -> LikeStatusResponse:
    liked, count = await LikeService(db).status(
        target_type, target_id, request_fingerprint(request, ViewerContext.LIKE)
    )
    return LikeStatusResponse(
        target_type=target_type, target_id=target_id, liked=liked, like_count=count
    )


@router.get(
    "/likes/{target_type}/top",
    response_model=TopLikedResponse,
    summary="Most liked items of a kind",
)
async def top_liked(
    target_type: str, db: DBSession, limit: int | None = Query(default=None)
) -> TopLikedResponse:
    rows = await LikeService(db).top(target_type, limit=limit)
    return TopLikedResponse(
        target_type=target_type,
        items=[TopLikedItem(target_id=target_id, like_count=count) for target_id, count in rows],
    )


# ============================================================================
# Comments
# ============================================================================


@router.post(
    "/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a guest comment",
    dependencies=[Depends(engagement_rate_limit)],
)
async def submit_comment(data: CommentCreate, request: Request, db: DBSession) -> CommentResponse:
    comment = await CommentService(db).submit(
        target_type=data.target_type,
        target_id=data.target_id,
        parent_id=data.parent_id,
        guest_name=data.guest_name,
        guest_email=data.guest_email,
        content=data.content,
        viewer=request_fingerprint(request, ViewerContext.COMMENT),
        ip_address=get_client_ip(request),
    )
    return CommentResponse.model_validate(comment)


@router.get(
    "/comments",
    response_model=ListResponse[CommentResponse],
    summary="Approved comments of a content item",
)
async def list_comments(
    pagination: Pagination,
    db: DBSession,
    target_type: str = Query(...),
    target_id: str = Query(...),
) -> ListResponse[CommentResponse]:
    comments, total = await CommentService(db).list_approved(
        target_type, target_id, page=pagination.page, page_size=pagination.page_size
    )
    return ListResponse[CommentResponse](
        items=[CommentResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/comments/admin",
    response_model=ListResponse[CommentAdminResponse],
    summary="Comments for moderation",
)
async def list_comments_for_moderation(
    pagination: Pagination,
    user: EditorUser,
    db: DBSession,
    status_filter: CommentStatus | None = Query(default=None, alias="status"),
    target_type: str | None = Query(default=None),
    target_id: str | None = Query(default=None),
) -> ListResponse[CommentAdminResponse]:
    comments, total = await CommentService(db).list_for_moderation(
        status=status_filter.value if status_filter else None,
        target_type=target_type,
        target_id=target_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[CommentAdminResponse](
        items=[CommentAdminResponse.model_validate(c) for c in comments],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/comments/admin/pending-count",
    response_model=PendingCountResponse,
    summary="Number of comments awaiting moderation",
)
async def pending_count(user: EditorUser, db: DBSession) -> PendingCountResponse:
    return PendingCountResponse(pending=await CommentService(db).pending_count())


@router.post(
    "/comments/admin/batch",
    response_model=CommentBatchResponse,
    summary="Moderate many comments",
)
async def batch_moderate(
    data: CommentBatchModerate, user: AdminUser, db: DBSession
) -> CommentBatchResponse:
    updated = await CommentService(db).batch_moderate(data.ids, data.status)
    return CommentBatchResponse(updated=updated)


@router.get(
    "/comments/{comment_id}/replies",
    response_model=list[CommentResponse],
    summary="Approved replies of a comment",
)
async def list_replies(comment_id: str, db: DBSession) -> list[CommentResponse]:
    replies = await CommentService(db).replies(comment_id)
    return [CommentResponse.model_validate(c) for c in replies]


@router.patch(
    "/comments/{comment_id}/moderate",
    response_model=CommentAdminResponse,
    summary="Approve, reject or mark a comment as spam",
)
async def moderate_comment(
    comment_id: str, data: CommentModerate, user: AdminUser, db: DBSession
) -> CommentAdminResponse:
    comment = await CommentService(db).moderate(comment_id, data.status)
    return CommentAdminResponse.model_validate(comment)


@router.delete(
    "/comments/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a comment and its replies",
)
async def delete_comment(comment_id: str, user: AdminUser, db: DBSession) -> Response:
    await CommentService(db).delete(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
