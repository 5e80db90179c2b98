from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    get_current_account,
    get_get_badam_count_use_case,
    get_sync_badam_count_use_case,
    get_update_badam_count_use_case,
)
from app.api.schemas.badam import (
    BadamActionRequest,
    BadamCountResponse,
    BadamSyncRequest,
    BadamSyncResponse,
)
from app.application.dto.badam import SyncBadamCountInput, UpdateBadamCountInput
from app.application.use_cases.get_badam_count import GetBadamCountUseCase
from app.application.use_cases.sync_badam_count import SyncBadamCountUseCase
from app.application.use_cases.update_badam_count import UpdateBadamCountUseCase
from app.domain.entities.account import Account
from app.domain.exceptions import InvalidInputError


router = APIRouter()


@router.get("/api/badam", response_model=BadamCountResponse)
def get_badam_count(
    current_account: Account = Depends(get_current_account),
    use_case: GetBadamCountUseCase = Depends(get_get_badam_count_use_case),
):
    output = use_case.execute(account_id=current_account.id)
    return BadamCountResponse(count=output.count)


@router.post("/api/badam", response_model=BadamCountResponse, deprecated=True)
def update_badam_count(
    req: BadamActionRequest,
    current_account: Account = Depends(get_current_account),
    use_case: UpdateBadamCountUseCase = Depends(get_update_badam_count_use_case),
):
    try:
        output = use_case.execute(UpdateBadamCountInput(account_id=current_account.id, action=req.action))
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BadamCountResponse(count=output.count)


@router.post("/api/badam/sync", response_model=BadamSyncResponse)
def sync_badam_count(
    req: BadamSyncRequest,
    current_account: Account = Depends(get_current_account),
    use_case: SyncBadamCountUseCase = Depends(get_sync_badam_count_use_case),
):
    try:
        output = use_case.execute(SyncBadamCountInput(account_id=current_account.id, count=req.count))
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BadamSyncResponse(count=output.count)
