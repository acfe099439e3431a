"""Content link routes."""

from fastapi import APIRouter, Depends, Response, status

from paayo.core.dependencies import DBSession
from paayo.core.security import AdminUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.content.schemas import (
    ContentLinkCreate,
    ContentLinkOrderUpdate,
    ContentLinkResponse,
    ContentLinksSet,
)
from paayo.modules.content.service import ContentLinkService

router = APIRouter(prefix="/content-links", tags=["Content links"])


# ============================================================================
# Public Routes
# ============================================================================


@router.get(
    "/by-id/{link_id}",
    response_model=ContentLinkResponse,
    summary="Get content link",
)
async def get_link(link_id: str, db: DBSession) -> ContentLinkResponse:
    return ContentLinkResponse.model_validate(await ContentLinkService(db).get_by_id(link_id))


@router.get(
    "/target/{target_type}/{target_id}",
    response_model=list[ContentLinkResponse],
    summary="Links pointing at a content item",
)
async def list_links_for_target(
    target_type: str, target_id: str, db: DBSession
) -> list[ContentLinkResponse]:
    links = await ContentLinkService(db).list_for_target(target_type, target_id)
    return [ContentLinkResponse.model_validate(link) for link in links]


@router.get(
    "/{source_type}/{source_id}",
    response_model=list[ContentLinkResponse],
    summary="Related content of a post or region",
)
async def list_links_for_source(
    source_type: str, source_id: str, db: DBSession
) -> list[ContentLinkResponse]:
    links = await ContentLinkService(db).list_for_source(source_type, source_id)
    return [ContentLinkResponse.model_validate(link) for link in links]


@router.get("/{source_type}/{source_id}/count", summary="Count links of a post or region")
async def count_links_for_source(source_type: str, source_id: str, db: DBSession) -> dict:
    return {"count": await ContentLinkService(db).count_for_source(source_type, source_id)}


# ============================================================================
# Admin Routes
# ============================================================================


@router.post(
    "",
    response_model=ContentLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create content link",
    dependencies=[Depends(write_rate_limit)],
)
async def create_link(data: ContentLinkCreate, user: AdminUser, db: DBSession) -> ContentLinkResponse:
    return ContentLinkResponse.model_validate(await ContentLinkService(db).create(data))


@router.put(
    "/by-id/{link_id}",
    response_model=ContentLinkResponse,
    summary="Change display order of a link",
    dependencies=[Depends(write_rate_limit)],
)
async def update_link_order(
    link_id: str, data: ContentLinkOrderUpdate, user: AdminUser, db: DBSession
) -> ContentLinkResponse:
    link = await ContentLinkService(db).update_order(link_id, data.display_order)
    return ContentLinkResponse.model_validate(link)


@router.delete(
    "/by-id/{link_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete content link",
    dependencies=[Depends(write_rate_limit)],
)
async def delete_link(link_id: str, user: AdminUser, db: DBSession) -> Response:
    await ContentLinkService(db).delete(link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{source_type}/{source_id}",
    response_model=list[ContentLinkResponse],
    summary="Replace all links of a post or region",
    dependencies=[Depends(write_rate_limit)],
)
async def set_links(
    source_type: str,
    source_id: str,
    data: ContentLinksSet,
    user: AdminUser,
    db: DBSession,
) -> list[ContentLinkResponse]:
    links = await ContentLinkService(db).set_links(source_type, source_id, data.links)
    return [ContentLinkResponse.model_validate(link) for link in links]


@router.delete(
    "/{source_type}/{source_id}",
    summary="Remove all links of a post or region",
    dependencies=[Depends(write_rate_limit)],
)
async def delete_links_for_source(
    source_type: str, source_id: str, user: AdminUser, db: DBSession
) -> dict:
    return {"deleted": await ContentLinkService(db).delete_all_for_source(source_type, source_id)}
