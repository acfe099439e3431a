"""Lifecycle routes shared by every content kind.

Each content router calls ``register_lifecycle_routes`` after its list route
and before its ``/{slug}`` route, so the fixed paths (``/trash``, ``/id/...``)
win over the slug match.
"""

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import ActiveEditorUser, AdminUser, EditorUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.content.schemas import DisplayOrderUpdate, StatusUpdate


def register_lifecycle_routes(
    router: APIRouter,
    *,
    service_class: type,
    response_model: Any,
    create_model: Any,
    update_model: Any,
    resource: str,
) -> None:
    """Add trash, get-by-id, create, update, status, display order, soft
    delete, restore and hard delete routes to ``router``."""
    list_model = ListResponse[response_model]

    @router.get(
        "/trash",
        response_model=list_model,
        summary=f"List deleted {resource}",
    )
    async def list_trash(pagination: Pagination, user: AdminUser, db: DBSession) -> Any:
        items, total = await service_class(db).list_deleted(
            page=pagination.page, page_size=pagination.page_size
        )
        return list_model(
            items=[response_model.model_validate(i) for i in items],
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    @router.get(
        "/id/{entity_id}",
        response_model=response_model,
        summary=f"Get {resource} by id",
    )
    async def get_by_id(entity_id: str, user: EditorUser, db: DBSession) -> Any:
        return response_model.model_validate(await service_class(db).get_by_id(entity_id))

    @router.post(
        "",
        response_model=response_model,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create {resource}",
        dependencies=[Depends(write_rate_limit)],
    )
    async def create(data: create_model, user: ActiveEditorUser, db: DBSession) -> Any:
        entity = await service_class(db).create(data, author_id=user.id)
        return response_model.model_validate(entity)

    @router.put(
        "/{entity_id}",
        response_model=response_model,
        summary=f"Update {resource}",
        dependencies=[Depends(write_rate_limit)],
    )
    async def update(
        entity_id: str, data: update_model, user: ActiveEditorUser, db: DBSession
    ) -> Any:
        entity = await service_class(db).update(entity_id, data, user)
        return response_model.model_validate(entity)

    @router.patch(
        "/{entity_id}/status",
        response_model=response_model,
        summary=f"Publish or unpublish {resource}",
        dependencies=[Depends(write_rate_limit)],
    )
    async def update_status(
        entity_id: str, data: StatusUpdate, user: ActiveEditorUser, db: DBSession
    ) -> Any:
        entity = await service_class(db).update_status(entity_id, data.status, user)
        return response_model.model_validate(entity)

    @router.patch(
        "/{entity_id}/display-order",
        response_model=response_model,
        summary=f"Set {resource} display order",
        dependencies=[Depends(write_rate_limit)],
    )
    async def update_display_order(
        entity_id: str, data: DisplayOrderUpdate, user: ActiveEditorUser, db: DBSession
    ) -> Any:
        entity = await service_class(db).update_display_order(
            entity_id, data.display_order, user
        )
        return response_model.model_validate(entity)

    @router.delete(
        "/{entity_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Move {resource} to trash",
        dependencies=[Depends(write_rate_limit)],
    )
    async def soft_delete(entity_id: str, user: ActiveEditorUser, db: DBSession) -> Response:
        await service_class(db).soft_delete(entity_id, user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post(
        "/{entity_id}/restore",
        response_model=response_model,
        summary=f"Restore {resource} from trash",
    )
    async def restore(entity_id: str, user: AdminUser, db: DBSession) -> Any:
        return response_model.model_validate(await service_class(db).restore(entity_id))

    @router.delete(
        "/{entity_id}/permanent",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete {resource} permanently",
    )
    async def hard_delete(entity_id: str, user: AdminUser, db: DBSession) -> Response:
        await service_class(db).hard_delete(entity_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
