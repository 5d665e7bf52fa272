"""Auth router - bearer token verification for the web UI."""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.database import get_identity_credential
from app.errors import AppError, ConfigurationError
from app.models.user import User
from app.services.identity_service import IdentityResolver
from app.services.slack_api import get_slack_client
from app.utils.auth import verify_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Dependency to get current user ID from the auth provider's JWT.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        User ID from token

    Raises:
        HTTPException: If token is missing or invalid (401), or token
            verification is not configured (500)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return verify_access_token(credentials.credentials)
    except ConfigurationError as e:
        raise HTTPException(status_code=e.status_code, detail="Internal Server Error")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_identity_credential),
    slack_client=Depends(get_slack_client),
):
    """
    Get current authenticated user.

    Raises:
        HTTPException: If user not found (404)
    """
    resolver = IdentityResolver(db, slack_client)

    try:
        return await resolver.get_user(user_id)
    except AppError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
