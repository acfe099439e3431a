"""Region routes."""

from fastapi import APIRouter, Query

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import OptionalUser
from paayo.modules.content.models import PostType
from paayo.modules.content.routers.lifecycle import register_lifecycle_routes
from paayo.modules.content.schemas import (
    PostResponse,
    RegionCreate,
    RegionResponse,
    RegionUpdate,
)
from paayo.modules.content.service import PostService, RegionService

router = APIRouter(prefix="/regions", tags=["Regions"])


@router.get("", response_model=ListResponse[RegionResponse], summary="List regions")
async def list_regions(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    region_status: str | None = Query(default=None, alias="status"),
    province: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
) -> ListResponse[RegionResponse]:
    regions, total = await RegionService(db).list_regions(
        user=user,
        status=region_status,
        province=province,
        search=search,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[RegionResponse](
        items=[RegionResponse.model_validate(r) for r in regions],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


register_lifecycle_routes(
    router,
    service_class=RegionService,
    response_model=RegionResponse,
    create_model=RegionCreate,
    update_model=RegionUpdate,
    resource="region",
)


@router.get("/{slug}", response_model=RegionResponse, summary="Get region by slug")
async def get_region(slug: str, user: OptionalUser, db: DBSession) -> RegionResponse:
    region = await RegionService(db).get_by_slug(slug, user)
    return RegionResponse.model_validate(region)


@router.get(
    "/{slug}/attractions",
    response_model=ListResponse[PostResponse],
    summary="List attractions in a region",
)
async def list_region_attractions(
    slug: str,
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
) -> ListResponse[PostResponse]:
    region = await RegionService(db).get_by_slug(slug, user)
    posts, total = await PostService(db).list_posts(
        user=user,
        post_type=PostType.EXPLORE.value,
        region_id=region.id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[PostResponse](
        items=[PostResponse.model_validate(p) for p in posts],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )
