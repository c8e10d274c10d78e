"""
Admin Endpoints

All routes require an administrator (403 otherwise).

Endpoints:
----------
- GET    /admin/codes                         - List access codes
- POST   /admin/codes                         - Generate access codes
- POST   /admin/codes/send                    - Generate codes and email them
- GET    /admin/users                         - List users with progress
- DELETE /admin/users/{id}                    - Delete a user
- GET    /admin/unlock-requests               - Pending unlock requests
- POST   /admin/users/{id}/approve-unlock     - Approve (resets counters)
- POST   /admin/users/{id}/deny-unlock        - Deny with optional reason
- POST   /admin/users/{id}/unlock             - Force unlock (resets counters)
- POST   /admin/departments                   - Create department
- POST   /admin/subjects                      - Create subject
- PATCH  /admin/subjects/{id}                 - Activate / deactivate subject
- GET    /admin/resources                     - List resources
- POST   /admin/resources                     - Create resource
- DELETE /admin/resources/{id}                - Delete resource
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_admin
from app.models.user import User
from app.schemas.auth import MessageResponse
from app.schemas.admin import (
    CodeGenerateRequest,
    CodeSendRequest,
    AccessCodeResponse,
    CodesGeneratedResponse,
    CodesSentResponse,
    AdminUserResponse,
)
from app.schemas.catalog import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentCreateResponse,
    SubjectCreate,
    SubjectUpdate,
    SubjectResponse,
    SubjectMutationResponse,
    ResourceCreate,
    ResourceResponse,
    ResourceCreateResponse,
)
from app.schemas.lock import DenyUnlockRequest, UnlockQueueItem, AdminUnlockResponse
from app.services.admin_service import AdminService, AdminActionError, AdminNotFoundError
from app.services.subject_lock_service import (
    SubjectLockService,
    NoActiveLockError,
    UserNotFoundError,
)

router = APIRouter(tags=["Admin"])


# ============================================================
# Access Codes
# ============================================================

@router.get("/codes", response_model=List[AccessCodeResponse])
async def list_codes(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await AdminService(db).list_codes(admin)
    return [
        AccessCodeResponse(
            id=code.id,
            code=code.code,
            used=code.used,
            used_by_email=email,
            used_at=code.used_at,
            sent_to_email=code.sent_to_email,
            sent_at=code.sent_at,
            created_at=code.created_at,
        )
        for code, email in rows
    ]


@router.post(
    "/codes",
    response_model=CodesGeneratedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_codes(
    request_data: CodeGenerateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        codes = await AdminService(db).generate_codes(admin, request_data.count, request_data.prefix)
    except AdminActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CodesGeneratedResponse(message=f"Generated {len(codes)} access code(s)", codes=codes)


@router.post(
    "/codes/send",
    response_model=CodesSentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_codes(
    request_data: CodeSendRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Generate codes for an address and queue the email. Codes are kept even if the email fails."""
    try:
        codes, queued = await AdminService(db).send_codes(admin, request_data.email, request_data.count)
    except AdminActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    message = f"Sent {len(codes)} access code(s) to {request_data.email}"
    if not queued:
        message = f"Generated {len(codes)} access code(s); email could not be queued"
    return CodesSentResponse(message=message, codes=codes, email=request_data.email, email_queued=queued)


# ============================================================
# Users
# ============================================================

@router.get("/users", response_model=List[AdminUserResponse])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await AdminService(db).list_users(admin, skip=skip, limit=limit)
    return [
        AdminUserResponse(
            id=user.id,
            email=user.email,
            is_admin=user.is_admin,
            is_active=user.is_active,
            subject_name=subject.name if subject else None,
            subject_code=subject.code if subject else None,
            locked_at=user.locked_at,
            lock_expires_at=user.lock_expires_at,
            session_count=user.session_count,
            aar_count=user.aar_count,
            total_study_minutes=user.total_study_minutes,
            unlock_requested=user.unlock_requested,
            last_activity=user.last_activity,
            created_at=user.created_at,
        )
        for user, subject in rows
    ]


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        await AdminService(db).delete_user(admin, user_id)
    except AdminActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AdminNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="User deleted")


# ============================================================
# Unlock Requests
# ============================================================

@router.get("/unlock-requests", response_model=List[UnlockQueueItem])
async def list_unlock_requests(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    entries = await SubjectLockService(db).list_unlock_requests(admin)
    return [
        UnlockQueueItem(
            user_id=entry.user.id,
            email=entry.user.email,
            subject_name=entry.subject.name if entry.subject else None,
            subject_code=entry.subject.code if entry.subject else None,
            locked_at=entry.status.locked_at,
            unlock_requested_at=entry.status.unlock_requested_at,
            days_passed=entry.status.days_elapsed,
            session_count=entry.status.session_count,
            aar_count=entry.status.aar_count,
            requirements_met=entry.status.eligible,
        )
        for entry in entries
    ]


@router.post(
    "/users/{user_id}/approve-unlock",
    response_model=AdminUnlockResponse,
    responses={
        400: {"description": "User has no subject to unlock"},
        404: {"description": "User not found"},
    },
)
async def approve_unlock(
    user_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        await SubjectLockService(db).approve_unlock(admin, user_id)
    except NoActiveLockError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AdminUnlockResponse(message="Unlock approved", user_id=user_id)


@router.post(
    "/users/{user_id}/deny-unlock",
    response_model=AdminUnlockResponse,
    responses={404: {"description": "User not found"}},
)
async def deny_unlock(
    user_id: UUID,
    request_data: Optional[DenyUnlockRequest] = None,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    reason = request_data.reason if request_data else None
    try:
        await SubjectLockService(db).deny_unlock(admin, user_id, reason)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AdminUnlockResponse(message="Unlock request denied", user_id=user_id)


@router.post(
    "/users/{user_id}/unlock",
    response_model=AdminUnlockResponse,
    responses={404: {"description": "User not found"}},
)
async def force_unlock(
    user_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        await SubjectLockService(db).force_unlock(admin, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AdminUnlockResponse(message="User unlocked", user_id=user_id)


# ============================================================
# Catalog
# ============================================================

@router.post(
    "/departments",
    response_model=DepartmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_department(
    request_data: DepartmentCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        department = await AdminService(db).create_department(
            admin, request_data.name, request_data.code, request_data.icon
        )
    except AdminActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return DepartmentCreateResponse(
        message="Department created",
        department=DepartmentResponse.model_validate(department),
    )


@router.post(
    "/subjects",
    response_model=SubjectMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_subject(
    request_data: SubjectCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        subject = await AdminService(db).create_subject(
            admin,
            request_data.department_id,
            request_data.name,
            request_data.code,
            request_data.estimated_hours,
        )
    except AdminActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AdminNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return SubjectMutationResponse(
        message="Subject created",
        subject=SubjectResponse.model_validate(subject),
    )


@router.patch("/subjects/{subject_id}", response_model=SubjectMutationResponse)
async def update_subject(
    subject_id: UUID,
    request_data: SubjectUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        subject = await AdminService(db).set_subject_active(admin, subject_id, request_data.is_active)
    except AdminNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return SubjectMutationResponse(
        message="Subject activated" if subject.is_active else "Subject deactivated",
        subject=SubjectResponse.model_validate(subject),
    )


@router.get("/resources", response_model=List[ResourceResponse])
async def list_resources(
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    rows = await AdminService(db).list_resources(admin)
    return [
        ResourceResponse.model_validate(resource).model_copy(update={"subject_code": subject.code})
        for resource, subject in rows
    ]


@router.post(
    "/resources",
    response_model=ResourceCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(
    request_data: ResourceCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        resource = await AdminService(db).create_resource(
            admin,
            request_data.subject_id,
            request_data.title,
            request_data.url,
            request_data.type,
            request_data.duration_minutes,
            request_data.sort_order,
        )
    except AdminNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ResourceCreateResponse(
        message="Resource created",
        resource=ResourceResponse.model_validate(resource),
    )


@router.delete("/resources/{resource_id}", response_model=MessageResponse)
async def delete_resource(
    resource_id: UUID,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        await AdminService(db).delete_resource(admin, resource_id)
    except AdminNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Resource deleted")
