"""
Study Session Endpoints

Endpoints:
----------
- POST /sessions/start             - Start a session on the primary subject
- GET  /sessions/active            - The open session, if any
- GET  /sessions                   - Session history
- POST /sessions/{id}/complete     - Finish a session (minimum 5 minutes)
- POST /sessions/{id}/abandon      - Discard an open session
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.session import (
    SessionStart,
    SessionComplete,
    SessionResponse,
    SessionStartResponse,
    SessionCompleteResponse,
    ActiveSessionResponse,
)
from app.services.session_service import (
    SessionService,
    NoSubjectDeclaredError,
    SessionAlreadyActiveError,
    SessionNotFoundError,
    SessionTooShortError,
)

router = APIRouter(tags=["Sessions"])


@router.post(
    "/start",
    response_model=SessionStartResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "No subject declared, or a session is already active"},
    },
)
async def start_session(
    request_data: SessionStart,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session_service = SessionService(db)
    try:
        session = await session_service.start_session(
            current_user, request_data.planned_duration, request_data.session_type
        )
    except NoSubjectDeclaredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SessionAlreadyActiveError as e:
        # Include the open session so the client can resume or abandon it
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": str(e),
                "active_session": jsonable_encoder(SessionResponse.model_validate(e.session)),
            },
        )

    return SessionStartResponse(
        message="Session started",
        session=SessionResponse.model_validate(session),
    )


@router.get("/active", response_model=ActiveSessionResponse)
async def get_active_session(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await SessionService(db).get_active_session(current_user)
    return ActiveSessionResponse(
        session=SessionResponse.model_validate(session) if session else None
    )


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await SessionService(db).list_sessions(current_user, skip=skip, limit=limit)


@router.post(
    "/{session_id}/complete",
    response_model=SessionCompleteResponse,
    responses={
        400: {"description": "Session too short"},
        404: {"description": "Active session not found"},
    },
)
async def complete_session(
    session_id: UUID,
    request_data: Optional[SessionComplete] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Finish a session and credit it toward unlocking.

    A session shorter than the minimum stays open.
    """
    session_service = SessionService(db)
    try:
        result = await session_service.complete_session(
            current_user, session_id, request_data.notes if request_data else None
        )
    except SessionTooShortError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return SessionCompleteResponse(
        message="Session completed. Submit an AAR to reflect on it",
        session=SessionResponse.model_validate(result.session),
        requires_aar=result.requires_aar,
        session_count=current_user.session_count,
        total_study_minutes=current_user.total_study_minutes,
    )


@router.post(
    "/{session_id}/abandon",
    response_model=MessageResponse,
    responses={404: {"description": "Active session not found"}},
)
async def abandon_session(
    session_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await SessionService(db).abandon_session(current_user, session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Session abandoned")
