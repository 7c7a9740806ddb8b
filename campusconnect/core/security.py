"""Identity of the calling principal.

Tokens are issued by the campus identity provider and signed with the shared
secret. The service trusts the role and department claims as given.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from campusconnect.core.config import get_settings
from campusconnect.core.rbac.roles import get_role_permissions

settings = get_settings()


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: who they are, their role and department."""

    user_id: str
    name: str
    role: str
    department: Optional[str] = None
    student_id: Optional[str] = None
    roll_no: Optional[str] = None

    @property
    def permissions(self) -> list[str]:
        return get_role_permissions(self.role)

    @property
    def clearance_student_id(self) -> str:
        # Students without a separate student number are keyed by user id
        return self.student_id or self.user_id


def create_access_token(
    principal: Principal,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT carrying the principal's claims."""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": principal.user_id,
        "name": principal.name,
        "role": principal.role,
        "department": principal.department,
        "student_id": principal.student_id,
        "roll_no": principal.roll_no,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[Principal]:
    """Decode and validate a JWT. Returns the principal if valid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None or payload.get("type") != "access":
        return None

    return Principal(
        user_id=user_id,
        name=payload.get("name") or user_id,
        role=role,
        department=payload.get("department"),
        student_id=payload.get("student_id"),
        roll_no=payload.get("roll_no"),
    )
