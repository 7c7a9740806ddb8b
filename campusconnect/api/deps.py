from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from campusconnect.db.session import SessionLocal
from campusconnect.core.config import get_settings
from campusconnect.core.security import Principal, decode_token

# Tokens are issued by the campus identity provider; there is no local login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Get the calling principal from the bearer JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    principal = decode_token(token)
    if principal is None:
        raise credentials_exception

    return principal


def require_clearance_module() -> None:
    """Reject clearance calls while an administrator has the module switched off."""
    if not get_settings().clearance_module_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Clearance module is disabled",
        )
