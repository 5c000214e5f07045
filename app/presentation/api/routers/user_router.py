"""API router for account management."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

from app.application.services.account_service import AccountLifecycleService
from app.core.dependencies import get_account_service
from app.domain.policies.authorization import Action, Claims
from app.presentation.api import responses
from app.presentation.api.dependencies import get_current_claims, require_action
from app.presentation.api.schemas.user_schemas import (
    CreateUserRequest,
    MessageResponse,
    PaginatedUsersResponse,
    UpdatePasswordRequest,
    UpdateUserRequest,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["users"])

PASSWORD_UPDATED = MessageResponse(message="Password updated successfully")


@router.get("")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    _: Claims = Depends(require_action(Action.LIST_ALL)),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    """List accounts (administrators only)."""
    result = await accounts.list_paged(page, limit)
    return responses.success(
        PaginatedUsersResponse(
            data=[UserResponse.from_domain(user) for user in result.items],
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        )
    )


@router.post("")
async def create_user(
    request: CreateUserRequest,
    _: Claims = Depends(require_action(Action.CREATE)),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    """Create an account (administrators only)."""
    user = await accounts.register(request.to_input())
    return responses.created(UserResponse.from_domain(user))


@router.get("/me")
async def get_current_user(
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    user = await accounts.get_for_actor(claims, claims.subject)
    return responses.success(UserResponse.from_domain(user))


@router.put("/me")
async def update_current_user(
    request: UpdateUserRequest,
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    user = await accounts.update(claims, claims.subject, request.to_input())
    return responses.success(UserResponse.from_domain(user))


@router.put("/me/password")
async def update_current_user_password(
    request: UpdatePasswordRequest,
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    await accounts.change_password(claims, claims.subject, request.current_password, request.new_password)
    return responses.success(PASSWORD_UPDATED)


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    user = await accounts.get_for_actor(claims, user_id)
    return responses.success(UserResponse.from_domain(user))


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    request: UpdateUserRequest,
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    """Update an account; owners edit their own basic fields, administrators anything."""
    user = await accounts.update(claims, user_id, request.to_input())
    return responses.success(UserResponse.from_domain(user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    _: Claims = Depends(require_action(Action.DELETE_ANY)),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> Response:
    """Soft-delete an account (administrators only)."""
    await accounts.soft_delete(user_id)
    return responses.no_content()


@router.put("/{user_id}/password")
async def update_user_password(
    user_id: UUID,
    request: UpdatePasswordRequest,
    claims: Claims = Depends(get_current_claims),
    accounts: AccountLifecycleService = Depends(get_account_service),
) -> JSONResponse:
    """Change a password: owners supply the current one, administrators reset others."""
    await accounts.change_password(claims, user_id, request.current_password, request.new_password)
    return responses.success(PASSWORD_UPDATED)
