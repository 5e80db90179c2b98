from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_current_account, get_get_current_user_use_case
from app.api.schemas.user import UserResponse
from app.application.use_cases.get_current_user import GetCurrentUserUseCase
from app.domain.entities.account import Account


router = APIRouter()


@router.get("/api/user", response_model=UserResponse)
def get_user(
    current_account: Account = Depends(get_current_account),
    use_case: GetCurrentUserUseCase = Depends(get_get_current_user_use_case),
):
    output = use_case.execute(account=current_account)
    return UserResponse(
        username=output.username,
        email=output.email,
        avatar_url=output.avatar_url,
    )
