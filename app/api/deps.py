from fastapi import HTTPException, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from app.db.database import get_db
from app.models import User
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
security = HTTPBearer()


# =====================================================
# Get Current user
# =====================================================
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Dependency that validates JWT token and returns current user.

    Raises:
        HTTPException 401: If token is invalid or missing
    """
    auth_service = AuthService(db)

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )


# =====================================================
# Get Current admin
# =====================================================
async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency that only lets administrators through.

    Raises:
        HTTPException 403: If the user is not an administrator
    """
    if not current_user.is_admin:
        logger.warning(f"User {current_user.id} denied access to admin endpoint")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
