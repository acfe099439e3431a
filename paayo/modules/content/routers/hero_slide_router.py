"""Hero slide routes."""

from fastapi import APIRouter, Depends, Query, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.redis import CacheClient, get_redis_client
from paayo.core.security import AdminUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.content.schemas import (
    HeroSlideCounts,
    HeroSlideCreate,
    HeroSlideReorder,
    HeroSlideResponse,
    HeroSlideUpdate,
    ResolvedHeroSlide,
)
from paayo.modules.content.service import HeroSlideService

router = APIRouter(prefix="/hero-slides", tags=["Hero slides"])


def get_hero_slide_service(db: DBSession) -> HeroSlideService:
    return HeroSlideService(db, CacheClient(get_redis_client()))


@router.get("", response_model=list[ResolvedHeroSlide], summary="Active hero slides")
async def list_active_slides(
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> list[ResolvedHeroSlide]:
    """Active slides inside their schedule window, resolved against published content."""
    return await service.list_active()


@router.get(
    "/admin",
    response_model=ListResponse[HeroSlideResponse],
    summary="List all hero slides",
)
async def list_all_slides(
    pagination: Pagination,
    user: AdminUser,
    is_active: bool | None = Query(default=None),
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> ListResponse[HeroSlideResponse]:
    slides, total = await service.list_all(
        is_active=is_active, page=pagination.page, page_size=pagination.page_size
    )
    return ListResponse[HeroSlideResponse](
        items=[HeroSlideResponse.model_validate(s) for s in slides],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/admin/counts", response_model=HeroSlideCounts, summary="Hero slide counts")
async def slide_counts(
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> HeroSlideCounts:
    return HeroSlideCounts(**await service.counts())


@router.post(
    "",
    response_model=HeroSlideResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create hero slide",
    dependencies=[Depends(write_rate_limit)],
)
async def create_slide(
    data: HeroSlideCreate,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> HeroSlideResponse:
    return HeroSlideResponse.model_validate(await service.create(data))


@router.put(
    "/reorder",
    response_model=list[HeroSlideResponse],
    summary="Reorder hero slides",
    dependencies=[Depends(write_rate_limit)],
)
async def reorder_slides(
    data: HeroSlideReorder,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> list[HeroSlideResponse]:
    slides = await service.reorder(data.slide_ids)
    return [HeroSlideResponse.model_validate(s) for s in slides]


@router.get("/{slide_id}", response_model=HeroSlideResponse, summary="Get hero slide")
async def get_slide(
    slide_id: str,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> HeroSlideResponse:
    return HeroSlideResponse.model_validate(await service.get_by_id(slide_id))


@router.put(
    "/{slide_id}",
    response_model=HeroSlideResponse,
    summary="Update hero slide",
    dependencies=[Depends(write_rate_limit)],
)
async def update_slide(
    slide_id: str,
    data: HeroSlideUpdate,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> HeroSlideResponse:
    return HeroSlideResponse.model_validate(await service.update(slide_id, data))


@router.patch(
    "/{slide_id}/toggle",
    response_model=HeroSlideResponse,
    summary="Toggle hero slide active flag",
    dependencies=[Depends(write_rate_limit)],
)
async def toggle_slide(
    slide_id: str,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> HeroSlideResponse:
    return HeroSlideResponse.model_validate(await service.toggle(slide_id))


@router.delete(
    "/{slide_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete hero slide",
    dependencies=[Depends(write_rate_limit)],
)
async def delete_slide(
    slide_id: str,
    user: AdminUser,
    service: HeroSlideService = Depends(get_hero_slide_service),
) -> Response:
    await service.delete(slide_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
