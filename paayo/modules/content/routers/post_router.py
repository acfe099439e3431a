"""Post routes, plus the events / activities / attractions views over posts."""

from fastapi import APIRouter, Query

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import OptionalUser
from paayo.modules.content.models import PostType
from paayo.modules.content.routers.lifecycle import register_lifecycle_routes
from paayo.modules.content.schemas import PostCreate, PostResponse, PostUpdate
from paayo.modules.content.service import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])
events_router = APIRouter(prefix="/events", tags=["Posts"])
activities_router = APIRouter(prefix="/activities", tags=["Posts"])
attractions_router = APIRouter(prefix="/attractions", tags=["Posts"])


def _page(posts: list, total: int, pagination) -> ListResponse[PostResponse]:
    return ListResponse[PostResponse](
        items=[PostResponse.model_validate(p) for p in posts],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ============================================================================
# Posts
# ============================================================================


@router.get("", response_model=ListResponse[PostResponse], summary="List posts")
async def list_posts(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    post_status: str | None = Query(default=None, alias="status"),
    post_type: PostType | None = Query(default=None, alias="type"),
    region_id: str | None = Query(default=None),
    is_featured: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
) -> ListResponse[PostResponse]:
    """Drafts are only listed for editors and admins."""
    posts, total = await PostService(db).list_posts(
        user=user,
        status=post_status,
        post_type=post_type.value if post_type else None,
        region_id=region_id,
        featured=is_featured,
        search=search,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return _page(posts, total, pagination)


register_lifecycle_routes(
    router,
    service_class=PostService,
    response_model=PostResponse,
    create_model=PostCreate,
    update_model=PostUpdate,
    resource="post",
)


@router.get("/{slug}", response_model=PostResponse, summary="Get post by slug")
async def get_post(slug: str, user: OptionalUser, db: DBSession) -> PostResponse:
    post = await PostService(db).get_by_slug(slug, user)
    return PostResponse.model_validate(post)


# ============================================================================
# Typed views
# ============================================================================


@events_router.get("", response_model=ListResponse[PostResponse], summary="List events")
async def list_events(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    upcoming: bool = Query(default=False, description="Only events that have not ended"),
    region_id: str | None = Query(default=None),
) -> ListResponse[PostResponse]:
    posts, total = await PostService(db).list_posts(
        user=user,
        post_type=PostType.EVENT.value,
        region_id=region_id,
        upcoming=upcoming,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return _page(posts, total, pagination)


@activities_router.get(
    "", response_model=ListResponse[PostResponse], summary="List activities"
)
async def list_activities(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    region_id: str | None = Query(default=None),
) -> ListResponse[PostResponse]:
    posts, total = await PostService(db).list_posts(
        user=user,
        post_type=PostType.ACTIVITY.value,
        region_id=region_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return _page(posts, total, pagination)


@attractions_router.get(
    "", response_model=ListResponse[PostResponse], summary="List attractions"
)
async def list_attractions(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    region_id: str | None = Query(default=None),
) -> ListResponse[PostResponse]:
    posts, total = await PostService(db).list_posts(
        user=user,
        post_type=PostType.EXPLORE.value,
        region_id=region_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return _page(posts, total, pagination)


@events_router.get("/{slug}", response_model=PostResponse, summary="Get event by slug")
@activities_router.get("/{slug}", response_model=PostResponse, summary="Get activity by slug")
@attractions_router.get(
    "/{slug}", response_model=PostResponse, summary="Get attraction by slug"
)
async def get_typed_post(slug: str, user: OptionalUser, db: DBSession) -> PostResponse:
    post = await PostService(db).get_by_slug(slug, user)
    return PostResponse.model_validate(post)
