"""
After-Action Review Endpoints

Endpoints:
----------
- POST /aar/submit   - Submit an AAR (3 fields, 20+ words combined)
- GET  /aar          - The caller's AARs, newest first
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.aar import AarSubmit, AarResponse, AarSubmitResponse
from app.services.aar_service import AarService, AarError

router = APIRouter(tags=["AAR"])


@router.post(
    "/submit",
    response_model=AarSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "AAR too short or no subject declared"}},
)
async def submit_aar(
    request_data: AarSubmit,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    aar_service = AarService(db)
    try:
        entry = await aar_service.submit_aar(
            current_user,
            request_data.what_worked,
            request_data.what_blocked,
            request_data.tomorrow_plan,
        )
    except AarError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return AarSubmitResponse(
        message="AAR submitted",
        aar=AarResponse.model_validate(entry),
        aar_count=current_user.aar_count,
    )


@router.get("", response_model=List[AarResponse])
async def list_aars(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AarService(db).list_entries(current_user, skip=skip, limit=limit)
