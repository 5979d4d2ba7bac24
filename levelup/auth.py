from dataclasses import dataclass
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from levelup.constants import API_KEY, ROLE_ADMIN
from levelup.database import get_db
from levelup.repositories.profile_repository import UserRoleRepository

# Sessions are issued by the external identity provider. The gateway in front
# of this API forwards the authenticated user id alongside the service key.
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
user_id_header = APIKeyHeader(name="X-User-Id", auto_error=False)
user_email_header = APIKeyHeader(name="X-User-Email", auto_error=False)


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller, passed explicitly into every service call"""
    user_id: str
    email: str = ""


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


async def get_current_user(
    _: str = Depends(verify_api_key),
    user_id: str = Security(user_id_header),
    email: str = Security(user_email_header),
) -> UserContext:
    """Build the caller's context from the forwarded identity headers"""
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity"
        )
    return UserContext(user_id=user_id.strip(), email=(email or "").strip())


async def require_admin(
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserContext:
    """Allow only users holding the admin role"""
    if UserRoleRepository.get_role(db, user.user_id) != ROLE_ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user
