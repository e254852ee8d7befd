from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import User, UserRole

bearer_scheme = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Active user named by the token's ``sub``. Tokens come from the identity layer."""
    try:
        subject = decode_token(credentials.credentials).get("sub")
    except JWTError as exc:
        raise _unauthorized() from exc
    if not subject:
        raise _unauthorized()

    user = db.get(User, subject)
    if user is None:
        raise _unauthorized()
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[..., str]:
    """Gate a route on ``roles`` and hand it the caller's id.

    Booking services roll the session back before each attempt, which expires
    the loaded ``User``; the id is read here, while the row is still fresh.
    """
    allowed = frozenset(roles)

    def actor_id(current_user: User = Depends(get_current_user)) -> str:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user.id

    return actor_id
