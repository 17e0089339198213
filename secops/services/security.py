import datetime as dt
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt

from secops.config import settings
from secops.core.store import bounded
from secops.errors import Unauthorized
from secops.models.user import Role, User

bearer = HTTPBearer()
ALGORITHM = "HS256"


class AuthUser:
    def __init__(self, user_id: str, role: Role = Role.USER, email: str | None = None):
        self.user_id = user_id
        self.role = role
        self.email = email

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def create_token(user_id: str) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    exp = now + dt.timedelta(minutes=settings.ACCESS_TOKEN_EXPIRES_MIN)
    payload = {"sub": user_id, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


async def require_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> AuthUser:
    if not creds or not creds.scheme.lower().startswith("bearer"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth")

    try:
        payload = jwt.decode(
            creds.credentials,
            settings.JWT_SECRET,
            algorithms=[ALGORITHM],
            options={"leeway": 30},  # 30s clock skew tolerance
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    db_user = await bounded(User.filter(id=user_id).first(), "look up user")
    if not db_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    # Role is re-read on every request so demotions apply immediately
    return AuthUser(str(db_user.id), db_user.role, db_user.email)


# --- ADMIN GUARD ---
async def require_admin(user: AuthUser = Depends(require_user)) -> AuthUser:
    """The one capability check in front of every admin-only operation."""
    if not user.is_admin:
        raise Unauthorized("Admin only")
    return user
