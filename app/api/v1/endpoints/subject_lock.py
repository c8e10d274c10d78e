"""
Subject Lock Endpoints

Endpoints:
----------
- POST /declare-subject   - Lock the caller to a subject
- POST /unlock-request    - Unlock if eligible, otherwise ask an admin
- GET  /lock-status       - Read-only lock view
- GET  /progress          - Totals, streak and lock progress
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.lock import (
    DeclareSubjectRequest,
    DeclareSubjectResponse,
    LockStatusResponse,
    UnlockRequestResponse,
)
from app.schemas.progress import ProgressResponse
from app.services.subject_lock_service import (
    SubjectLockService,
    AlreadyLockedError,
    NoActiveLockError,
    SubjectNotFoundError,
    UserNotFoundError,
)
from app.services.progress_service import ProgressService

router = APIRouter(tags=["Subject Lock"])


@router.post(
    "/declare-subject",
    response_model=DeclareSubjectResponse,
    responses={
        400: {"description": "A subject is already locked"},
        404: {"description": "Subject not found or inactive"},
    },
)
async def declare_subject(
    request_data: DeclareSubjectRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Commit to one subject for the cooldown period.

    Fails if a subject is already locked; unlocking goes through /unlock-request.
    """
    lock_service = SubjectLockService(db)
    try:
        lock_status = await lock_service.declare_subject(current_user.id, request_data.subject_id)
    except AlreadyLockedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (SubjectNotFoundError, UserNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return DeclareSubjectResponse(
        message="Subject locked",
        lock_status=LockStatusResponse.model_validate(lock_status),
    )


@router.post(
    "/unlock-request",
    response_model=UnlockRequestResponse,
    responses={400: {"description": "No subject to unlock"}},
)
async def request_unlock(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Ask to leave the current subject.

    Users who meet every requirement are unlocked immediately; everyone
    else is queued for admin review.
    """
    lock_service = SubjectLockService(db)
    try:
        result = await lock_service.request_unlock(current_user.id)
    except NoActiveLockError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if result.unlocked:
        message = "All requirements met. Subject unlocked"
    else:
        message = "Unlock request submitted for admin review"
    return UnlockRequestResponse(
        message=message,
        unlocked=result.unlocked,
        progress=result.progress,
        lock_status=LockStatusResponse.model_validate(result.status),
    )


@router.get("/lock-status", response_model=LockStatusResponse)
async def get_lock_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        lock_status = await SubjectLockService(db).get_lock_status(current_user.id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return LockStatusResponse.model_validate(lock_status)


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    progress = await ProgressService(db).get_progress(current_user)
    return ProgressResponse.model_validate(progress)
