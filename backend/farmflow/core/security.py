from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from fastapi import HTTPException, status
from jose import JWTError, jwt
from farmflow.config import get_settings

settings = get_settings()


def create_access_token(
    subject: str,
    tenant_id: str,
    roles: Optional[list[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Creates a signed access token carrying the tenant claim.
    Token issuance normally happens in the identity provider; this is used
    for service accounts and tests.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    claims = {
        "sub": subject,
        settings.tenant_claim: tenant_id,
        "roles": roles or [],
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verifies the JWT token locally using the shared secret.
    Returns the decoded token claims if valid.
    Raises HTTPException if invalid.
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
