"""Video routes."""

from fastapi import APIRouter, Query

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import OptionalUser
from paayo.modules.content.models import VideoPlatform
from paayo.modules.content.routers.lifecycle import register_lifecycle_routes
from paayo.modules.content.schemas import VideoCreate, VideoResponse, VideoUpdate
from paayo.modules.content.service import VideoService

router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get("", response_model=ListResponse[VideoResponse], summary="List videos")
async def list_videos(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    video_status: str | None = Query(default=None, alias="status"),
    platform: VideoPlatform | None = Query(default=None),
    region_id: str | None = Query(default=None),
) -> ListResponse[VideoResponse]:
    videos, total = await VideoService(db).list_videos(
        user=user,
        status=video_status,
        platform=platform.value if platform else None,
        region_id=region_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[VideoResponse](
        items=[VideoResponse.model_validate(v) for v in videos],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


register_lifecycle_routes(
    router,
    service_class=VideoService,
    response_model=VideoResponse,
    create_model=VideoCreate,
    update_model=VideoUpdate,
    resource="video",
)


@router.get("/{slug}", response_model=VideoResponse, summary="Get video by slug")
async def get_video(slug: str, user: OptionalUser, db: DBSession) -> VideoResponse:
    video = await VideoService(db).get_by_slug(slug, user)
    return VideoResponse.model_validate(video)
