"""
Catalog Endpoints

Endpoints:
----------
- GET /departments                   - Active departments (public)
- GET /departments/{id}/subjects     - Active subjects of a department (public)
- GET /subjects                      - All active subjects with department (public)
- GET /resources                     - Resources of the caller's primary subject
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.catalog import DepartmentResponse, SubjectResponse, ResourceResponse
from app.services.catalog_service import CatalogService, DepartmentNotFoundError

router = APIRouter(tags=["Catalog"])


@router.get("/departments", response_model=List[DepartmentResponse])
async def list_departments(db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).list_departments()


@router.get(
    "/departments/{department_id}/subjects",
    response_model=List[SubjectResponse],
    responses={404: {"description": "Department not found"}},
)
async def list_department_subjects(
    department_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CatalogService(db).list_department_subjects(department_id)
    except DepartmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/subjects", response_model=List[SubjectResponse])
async def list_subjects(db: AsyncSession = Depends(get_db)):
    rows = await CatalogService(db).list_subjects()
    return [
        SubjectResponse.model_validate(subject).model_copy(update={"department_name": department_name})
        for subject, department_name in rows
    ]


@router.get("/resources", response_model=List[ResourceResponse])
async def list_my_resources(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Study resources for the subject the caller is locked to (empty when none)."""
    return await CatalogService(db).list_resources_for_user(current_user)
