"""Hotel routes, including branch management."""

from fastapi import APIRouter, Depends, Query, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import ActiveEditorUser, OptionalUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.content.models import PriceRange
from paayo.modules.content.routers.lifecycle import register_lifecycle_routes
from paayo.modules.content.schemas import (
    HotelBranchCreate,
    HotelBranchResponse,
    HotelBranchUpdate,
    HotelCreate,
    HotelResponse,
    HotelUpdate,
)
from paayo.modules.content.service import HotelService

router = APIRouter(prefix="/hotels", tags=["Hotels"])


@router.get("", response_model=ListResponse[HotelResponse], summary="List hotels")
async def list_hotels(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    hotel_status: str | None = Query(default=None, alias="status"),
    region_id: str | None = Query(default=None),
    price_range: PriceRange | None = Query(default=None),
    star_rating: int | None = Query(default=None, ge=1, le=5),
) -> ListResponse[HotelResponse]:
    hotels, total = await HotelService(db).list_hotels(
        user=user,
        status=hotel_status,
        region_id=region_id,
        price_range=price_range.value if price_range else None,
        star_rating=star_rating,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[HotelResponse](
        items=[HotelResponse.model_validate(h) for h in hotels],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


register_lifecycle_routes(
    router,
    service_class=HotelService,
    response_model=HotelResponse,
    create_model=HotelCreate,
    update_model=HotelUpdate,
    resource="hotel",
)


# ============================================================================
# Branches
# ============================================================================


@router.get(
    "/{hotel_id}/branches",
    response_model=list[HotelBranchResponse],
    summary="List hotel branches",
)
async def list_branches(
    hotel_id: str, user: ActiveEditorUser, db: DBSession
) -> list[HotelBranchResponse]:
    branches = await HotelService(db).list_branches(hotel_id)
    return [HotelBranchResponse.model_validate(b) for b in branches]


@router.post(
    "/{hotel_id}/branches",
    response_model=HotelBranchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add hotel branch",
    dependencies=[Depends(write_rate_limit)],
)
async def add_branch(
    hotel_id: str, data: HotelBranchCreate, user: ActiveEditorUser, db: DBSession
) -> HotelBranchResponse:
    branch = await HotelService(db).add_branch(hotel_id, data, user)
    return HotelBranchResponse.model_validate(branch)


@router.put(
    "/{hotel_id}/branches",
    response_model=HotelResponse,
    summary="Replace all hotel branches",
    dependencies=[Depends(write_rate_limit)],
)
async def set_branches(
    hotel_id: str,
    data: list[HotelBranchCreate],
    user: ActiveEditorUser,
    db: DBSession,
) -> HotelResponse:
    hotel = await HotelService(db).set_branches(hotel_id, data, user)
    return HotelResponse.model_validate(hotel)


@router.put(
    "/{hotel_id}/branches/{branch_id}",
    response_model=HotelBranchResponse,
    summary="Update hotel branch",
    dependencies=[Depends(write_rate_limit)],
)
async def update_branch(
    hotel_id: str,
    branch_id: str,
    data: HotelBranchUpdate,
    user: ActiveEditorUser,
    db: DBSession,
) -> HotelBranchResponse:
    branch = await HotelService(db).update_branch(hotel_id, branch_id, data, user)
    return HotelBranchResponse.model_validate(branch)


@router.delete(
    "/{hotel_id}/branches/{branch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove hotel branch",
    dependencies=[Depends(write_rate_limit)],
)
async def remove_branch(
    hotel_id: str, branch_id: str, user: ActiveEditorUser, db: DBSession
) -> Response:
    await HotelService(db).remove_branch(hotel_id, branch_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{slug}", response_model=HotelResponse, summary="Get hotel by slug")
async def get_hotel(slug: str, user: OptionalUser, db: DBSession) -> HotelResponse:
    hotel = await HotelService(db).get_by_slug(slug, user)
    return HotelResponse.model_validate(hotel)
