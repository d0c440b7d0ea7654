"""
API Dependencies - Gemeinsame Abhängigkeiten für Endpoints
"""
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from farmflow.config import get_settings
from farmflow.core.security import verify_token
from farmflow.database import get_db

settings = get_settings()

# Type Alias für DB Session Dependency
DBSession = Annotated[Session, Depends(get_db)]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")  # URL is just for Swagger UI hint


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]):
    """
    Dependency für authentifizierten Benutzer.
    Liefert Benutzer- und Mandanten-ID aus dem JWT Token.
    """
    payload = verify_token(token)

    tenant_id = payload.get(settings.tenant_claim)
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token enthält keinen Mandanten",
        )
    try:
        tenant_uuid = UUID(str(tenant_id))
        user_uuid = UUID(str(payload["sub"])) if payload.get("sub") else None
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Ungültige Benutzer- oder Mandanten-ID im Token",
        )

    return {
        "id": user_uuid,
        "tenant_id": tenant_uuid,
        "roles": payload.get("roles", []),
        "raw": payload,
    }


CurrentUser = Annotated[dict, Depends(get_current_user)]


def require_role(required_roles: list[str]):
    """
    Dependency Factory für Rollenprüfung.

    Verwendung:
        @router.post("/generate", dependencies=[Depends(require_role(["admin"]))])
    """
    async def check_role(user: CurrentUser):
        user_roles = user.get("roles", [])
        if not any(role in user_roles for role in required_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Keine Berechtigung für diese Aktion"
            )
        return user
    return check_role


# Pagination Parameter
class PaginationParams:
    """Standard Pagination Parameter"""
    def __init__(
        self,
        page: int = 1,
        page_size: int = 20,
        max_page_size: int = 100
    ):
        self.page = max(1, page)
        self.page_size = min(max(1, page_size), max_page_size)
        self.offset = (self.page - 1) * self.page_size


Pagination = Annotated[PaginationParams, Depends()]
