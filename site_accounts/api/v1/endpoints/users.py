"""User endpoints."""

from typing import Any

from fastapi import APIRouter, status

from site_accounts.dependencies import AccountStoreDep, CurrentUser
from site_accounts.schemas.users import (
    AccountDeletion,
    AccountResponse,
    EmailUpdate,
    PasswordUpdate,
    ProfileUpdate,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=AccountResponse)
async def get_current_user_profile(current_user: CurrentUser) -> dict[str, Any]:
    """Get the logged-in account."""
    return current_user


@router.patch("/me", response_model=AccountResponse)
async def update_current_user_profile(
    profile: ProfileUpdate,
    store: AccountStoreDep,
) -> dict[str, Any]:
    """Update the logged-in account's profile."""
    return await store.update_profile(profile.model_dump())


@router.put("/me/email", response_model=AccountResponse)
async def update_current_user_email(
    request: EmailUpdate,
    store: AccountStoreDep,
) -> dict[str, Any]:
    """Change the login email after re-verifying the password."""
    return await store.update_email(request.new_email, request.password)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def update_current_user_password(request: PasswordUpdate, store: AccountStoreDep) -> None:
    """Change the password after re-verifying the current one."""
    await store.update_password(request.current_password, request.new_password)


@router.post("/me/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_current_user(request: AccountDeletion, store: AccountStoreDep) -> None:
    """Delete the logged-in account."""
    await store.delete_account(request.password)


@router.get("/{user_id}/profile", response_model=AccountResponse)
async def get_user_profile(user_id: str, store: AccountStoreDep) -> dict[str, Any]:
    """Get the stored profile of an account."""
    profile = await store.get_user_profile(user_id)
    return {"email": profile.get("email", ""), **profile, "id": user_id}
