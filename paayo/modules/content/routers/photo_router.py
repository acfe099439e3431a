"""Photo feature routes, including gallery image management.

Mounted at both ``/photos`` and ``/photo-features``.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import ActiveEditorUser, OptionalUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.content.routers.lifecycle import register_lifecycle_routes
from paayo.modules.content.schemas import (
    ImageReorder,
    PhotoFeatureCreate,
    PhotoFeatureResponse,
    PhotoFeatureUpdate,
    PhotoImageCreate,
    PhotoImageResponse,
    PhotoImageUpdate,
)
from paayo.modules.content.service import PhotoFeatureService

router = APIRouter(tags=["Photo features"])


@router.get(
    "", response_model=ListResponse[PhotoFeatureResponse], summary="List photo features"
)
async def list_photo_features(
    pagination: Pagination,
    user: OptionalUser,
    db: DBSession,
    feature_status: str | None = Query(default=None, alias="status"),
    region_id: str | None = Query(default=None),
) -> ListResponse[PhotoFeatureResponse]:
    features, total = await PhotoFeatureService(db).list_features(
        user=user,
        status=feature_status,
        region_id=region_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[PhotoFeatureResponse](
        items=[PhotoFeatureResponse.model_validate(f) for f in features],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


register_lifecycle_routes(
    router,
    service_class=PhotoFeatureService,
    response_model=PhotoFeatureResponse,
    create_model=PhotoFeatureCreate,
    update_model=PhotoFeatureUpdate,
    resource="photo feature",
)


# ============================================================================
# Images
# ============================================================================


@router.get(
    "/{feature_id}/images",
    response_model=list[PhotoImageResponse],
    summary="List photo feature images",
)
async def list_images(
    feature_id: str, user: ActiveEditorUser, db: DBSession
) -> list[PhotoImageResponse]:
    images = await PhotoFeatureService(db).list_images(feature_id)
    return [PhotoImageResponse.model_validate(i) for i in images]


@router.post(
    "/{feature_id}/images",
    response_model=PhotoImageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add image to photo feature",
    dependencies=[Depends(write_rate_limit)],
)
async def add_image(
    feature_id: str, data: PhotoImageCreate, user: ActiveEditorUser, db: DBSession
) -> PhotoImageResponse:
    image = await PhotoFeatureService(db).add_image(feature_id, data, user)
    return PhotoImageResponse.model_validate(image)


@router.put(
    "/{feature_id}/images",
    response_model=PhotoFeatureResponse,
    summary="Replace all photo feature images",
    dependencies=[Depends(write_rate_limit)],
)
async def set_images(
    feature_id: str,
    data: list[PhotoImageCreate],
    user: ActiveEditorUser,
    db: DBSession,
) -> PhotoFeatureResponse:
    feature = await PhotoFeatureService(db).set_images(feature_id, data, user)
    return PhotoFeatureResponse.model_validate(feature)


@router.put(
    "/{feature_id}/images/reorder",
    response_model=PhotoFeatureResponse,
    summary="Reorder photo feature images",
    dependencies=[Depends(write_rate_limit)],
)
async def reorder_images(
    feature_id: str, data: ImageReorder, user: ActiveEditorUser, db: DBSession
) -> PhotoFeatureResponse:
    feature = await PhotoFeatureService(db).reorder_images(feature_id, data.image_ids, user)
    return PhotoFeatureResponse.model_validate(feature)


@router.put(
    "/{feature_id}/images/{image_id}",
    response_model=PhotoImageResponse,
    summary="Update photo feature image",
    dependencies=[Depends(write_rate_limit)],
)
async def update_image(
    feature_id: str,
    image_id: str,
    data: PhotoImageUpdate,
    user: ActiveEditorUser,
    db: DBSession,
) -> PhotoImageResponse:
    image = await PhotoFeatureService(db).update_image(feature_id, image_id, data, user)
    return PhotoImageResponse.model_validate(image)


@router.delete(
    "/{feature_id}/images/{image_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove photo feature image",
    dependencies=[Depends(write_rate_limit)],
)
async def remove_image(
    feature_id: str, image_id: str, user: ActiveEditorUser, db: DBSession
) -> Response:
    await PhotoFeatureService(db).remove_image(feature_id, image_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{slug}", response_model=PhotoFeatureResponse, summary="Get photo feature by slug"
)
async def get_photo_feature(
    slug: str, user: OptionalUser, db: DBSession
) -> PhotoFeatureResponse:
    feature = await PhotoFeatureService(db).get_by_slug(slug, user)
    return PhotoFeatureResponse.model_validate(feature)
