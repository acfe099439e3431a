"""API routes for media module."""

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status

from paayo.config import settings
from paayo.core.dependencies import DBSession, Pagination
from paayo.core.exceptions import BadRequestError
from paayo.core.pagination import ListResponse
from paayo.core.security import ActiveEditorUser, AdminUser, EditorUser
from paayo.middleware.rate_limit import upload_rate_limit
from paayo.modules.media.cleanup import cleanup_orphans
from paayo.modules.media.schemas import CleanupReport, MediaResponse
from paayo.modules.media.service import MediaService

router = APIRouter(prefix="/media", tags=["Media"])

READ_CHUNK_SIZE = 1024 * 1024


async def enforce_multipart_limit(request: Request) -> None:
    """Reject declared oversize bodies before the multipart parser buffers them."""
    declared = request.headers.get("Content-Length")
    if declared and declared.isdigit() and int(declared) > settings.max_multipart_size:
        raise BadRequestError(
            f"Upload exceeds {settings.max_multipart_size // (1024 * 1024)} MiB limit"
        )


async def read_limited(file: UploadFile, limit: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(READ_CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            raise BadRequestError(f"File exceeds {limit // (1024 * 1024)} MiB limit")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post(
    "/upload",
    response_model=MediaResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
    dependencies=[Depends(enforce_multipart_limit), Depends(upload_rate_limit)],
)
async def upload_media(
    user: ActiveEditorUser,
    db: DBSession,
    file: UploadFile = File(...),
) -> MediaResponse:
    data = await read_limited(file, settings.max_upload_size)
    media = await MediaService(db).upload(
        data,
        original_name=file.filename or "upload",
        content_type=file.content_type,
        user=user,
    )
    return MediaResponse.model_validate(media)


@router.get("", response_model=ListResponse[MediaResponse], summary="Media gallery")
async def list_media(
    pagination: Pagination, user: EditorUser, db: DBSession
) -> ListResponse[MediaResponse]:
    items, total = await MediaService(db).list_media(
        page=pagination.page, page_size=pagination.page_size
    )
    return ListResponse[MediaResponse](
        items=[MediaResponse.model_validate(m) for m in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.post("/cleanup", response_model=CleanupReport, summary="Reclaim orphan media")
async def run_cleanup(
    user: AdminUser,
    db: DBSession,
    dry_run: bool = Query(default=True),
    grace_hours: int = Query(default=settings.media_cleanup_grace_hours, ge=0, le=24 * 365),
) -> CleanupReport:
    return await cleanup_orphans(db, grace_hours=grace_hours, dry_run=dry_run)


@router.get("/{media_id}", response_model=MediaResponse, summary="Get media item")
async def get_media(media_id: str, user: EditorUser, db: DBSession) -> MediaResponse:
    return MediaResponse.model_validate(await MediaService(db).get_by_id(media_id))


@router.delete(
    "/{media_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete media item and its files",
)
async def delete_media(media_id: str, user: EditorUser, db: DBSession) -> Response:
    await MediaService(db).delete(media_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
