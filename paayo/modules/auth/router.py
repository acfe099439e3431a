"""API routes for users."""

from fastapi import APIRouter, Depends, Query, Response, status

from paayo.core.dependencies import DBSession, Pagination
from paayo.core.pagination import ListResponse
from paayo.core.security import AdminUser, CurrentUser
from paayo.middleware.rate_limit import write_rate_limit
from paayo.modules.auth.models import UserRole
from paayo.modules.auth.schemas import MeResponse, UserCounts, UserResponse, UserRoleUpdate
from paayo.modules.auth.service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=MeResponse, summary="Current user")
async def get_me(user: CurrentUser) -> MeResponse:
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
    )


# ============================================================================
# Admin Routes
# ============================================================================


@router.get("", response_model=ListResponse[UserResponse], summary="List users")
async def list_users(
    pagination: Pagination,
    user: AdminUser,
    db: DBSession,
    role: UserRole | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    blocked: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
) -> ListResponse[UserResponse]:
    users, total = await UserService(db).list_users(
        role=role.value if role else None,
        is_active=is_active,
        blocked=blocked,
        search=search,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return ListResponse[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/counts", response_model=UserCounts, summary="User counts by role and state")
async def user_counts(user: AdminUser, db: DBSession) -> UserCounts:
    return UserCounts(**await UserService(db).counts())


@router.get("/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(user_id: str, user: AdminUser, db: DBSession) -> UserResponse:
    return UserResponse.model_validate(await UserService(db).get_by_id(user_id))


@router.post(
    "/{user_id}/activate",
    response_model=UserResponse,
    summary="Activate user",
    dependencies=[Depends(write_rate_limit)],
)
async def activate_user(user_id: str, user: AdminUser, db: DBSession) -> UserResponse:
    return UserResponse.model_validate(await UserService(db).activate(user_id))


@router.post(
    "/{user_id}/deactivate",
    response_model=UserResponse,
    summary="Deactivate user",
    dependencies=[Depends(write_rate_limit)],
)
async def deactivate_user(user_id: str, user: AdminUser, db: DBSession) -> UserResponse:
    return UserResponse.model_validate(await UserService(db).deactivate(user, user_id))


@router.post(
    "/{user_id}/block",
    response_model=UserResponse,
    summary="Block user",
    dependencies=[Depends(write_rate_limit)],
)
async def block_user(user_id: str, user: AdminUser, db: DBSession) -> UserResponse:
    return UserResponse.model_validate(await UserService(db).block(user, user_id))


@router.post(
    "/{user_id}/unblock",
    response_model=UserResponse,
    summary="Unblock user",
    dependencies=[Depends(write_rate_limit)],
)
async def unblock_user(user_id: str, user: AdminUser, db: DBSession) -> UserResponse:
    return UserResponse.model_validate(await UserService(db).unblock(user_id))


@router.patch(
    "/{user_id}/role",
    response_model=UserResponse,
    summary="Change user role",
    dependencies=[Depends(write_rate_limit)],
)
async def change_role(
    user_id: str, data: UserRoleUpdate, user: AdminUser, db: DBSession
) -> UserResponse:
    return UserResponse.model_validate(
        await UserService(db).change_role(user, user_id, data.role)
    )


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    dependencies=[Depends(write_rate_limit)],
)
async def delete_user(user_id: str, user: AdminUser, db: DBSession) -> Response:
    await UserService(db).delete(user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
