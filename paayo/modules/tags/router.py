"""API routes for tags module."""

from fastapi import APIRouter, Depends, Query, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import ActiveEditorUser, AdminUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.tags.models import TagType
from paayo.modules.tags.schemas import (
    ContentTagsSetByIds,
    ContentTagsSetByNames,
    TagCreate,
    TagResponse,
    TagUpdate,
    TagWithCountResponse,
)
from paayo.modules.tags.service import TagService

router = APIRouter(prefix="/tags", tags=["Tags"])


# ============================================================================
# Public Routes
# ============================================================================


@router.get("", response_model=ListResponse[TagWithCountResponse], summary="List tags")
async def list_tags(
    pagination: Pagination,
    db: DBSession,
    search: str | None = Query(default=None, max_length=100),
    tag_type: TagType | None = Query(default=None),
) -> ListResponse[TagWithCountResponse]:
    service = TagService(db)
    tags, total = await service.list_tags(
        search=search,
        tag_type=tag_type.value if tag_type else None,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    counts = await service.usage_counts([t.id for t in tags])

    return ListResponse[TagWithCountResponse](
        items=[
            TagWithCountResponse.model_validate(t).model_copy(
                update={"usage_count": counts.get(t.id, 0)}
            )
            for t in tags
        ],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get(
    "/content/{target_type}/{target_id}",
    response_model=list[TagResponse],
    summary="Tags of a content item",
)
async def get_content_tags(target_type: str, target_id: str, db: DBSession) -> list[TagResponse]:
    tags = await TagService(db).get_content_tags(target_type, target_id)
    return [TagResponse.model_validate(t) for t in tags]


@router.get("/{slug}", response_model=TagResponse, summary="Get tag by slug")
async def get_tag(slug: str, db: DBSession) -> TagResponse:
    return TagResponse.model_validate(await TagService(db).get_by_slug(slug))


# ============================================================================
# Editor / Admin Routes
# ============================================================================


@router.put(
    "/content/{target_type}/{target_id}",
    response_model=list[TagResponse],
    summary="Set tags of a content item by id",
    dependencies=[Depends(write_rate_limit)],
)
async def set_content_tags(
    target_type: str,
    target_id: str,
    data: ContentTagsSetByIds,
    user: ActiveEditorUser,
    db: DBSession,
) -> list[TagResponse]:
    tags = await TagService(db).set_content_tags(target_type, target_id, data.tag_ids)
    return [TagResponse.model_validate(t) for t in tags]


@router.put(
    "/content/{target_type}/{target_id}/names",
    response_model=list[TagResponse],
    summary="Set tags of a content item by name",
    dependencies=[Depends(write_rate_limit)],
)
async def set_content_tags_by_name(
    target_type: str,
    target_id: str,
    data: ContentTagsSetByNames,
    user: ActiveEditorUser,
    db: DBSession,
) -> list[TagResponse]:
    tags = await TagService(db).set_content_tags_by_name(
        target_type, target_id, data.names, data.tag_type
    )
    return [TagResponse.model_validate(t) for t in tags]


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tag",
    dependencies=[Depends(write_rate_limit)],
)
async def create_tag(data: TagCreate, user: AdminUser, db: DBSession) -> TagResponse:
    return TagResponse.model_validate(await TagService(db).create(data))


@router.put(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Update tag",
    dependencies=[Depends(write_rate_limit)],
)
async def update_tag(tag_id: str, data: TagUpdate, user: AdminUser, db: DBSession) -> TagResponse:
    return TagResponse.model_validate(await TagService(db).update(tag_id, data))


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tag",
    dependencies=[Depends(write_rate_limit)],
)
async def delete_tag(tag_id: str, user: AdminUser, db: DBSession) -> Response:
    await TagService(db).delete(tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
