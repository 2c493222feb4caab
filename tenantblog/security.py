from typing import Iterable, Optional
from fastapi import Depends, Header
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from jose import JWTError, jwt
from .config import settings
from .db import get_db
from .errors import Forbidden, Unauthenticated
from .logging_config import get_logger
from .models.user import Identity
from .utils import parse_object_id, verify_password

logger = get_logger(__name__)

oauth2_bearer = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)
api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def identity_from_user(user) -> Identity:
    return Identity(
        id=str(user["_id"]),
        name=user.get("name", ""),
        email=user.get("email"),
        is_admin=user.get("is_admin", False),
    )


async def authenticate_user(email: str, password: str, db):
    user = await db.users.find_one({"email": email})
    if not user:
        return None
    if not verify_password(plain_password=password, hashed_password=user["password"]):
        return None
    return user


async def get_current_user(token: Optional[str] = Depends(oauth2_bearer), db=Depends(get_db)) -> Identity:
    """Resolve the bearer token of the request to an Identity."""
    if not token:
        raise Unauthenticated("Not authorized, no token", headers=BEARER_CHALLENGE)

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning("Rejected session token: %s", e)
        raise Unauthenticated("Not authorized, token failed", headers=BEARER_CHALLENGE)

    user_id = parse_object_id(payload.get("id"))
    if user_id is None:
        raise Unauthenticated("Not authorized, token failed", headers=BEARER_CHALLENGE)

    user = await db.users.find_one({"_id": user_id}, {"password": 0})
    if not user:
        logger.warning("Session token for unknown user %s", user_id)
        raise Unauthenticated("Not authorized, user not found", headers=BEARER_CHALLENGE)

    return identity_from_user(user)


def origin_allowed(origin: str, allowed_origins: Iterable[str]) -> bool:
    for allowed in allowed_origins:
        if allowed.startswith("*."):
            if origin.endswith(allowed[2:]):
                return True
        elif origin == allowed:
            return True
    return False


async def get_api_site(
    api_key: Optional[str] = Depends(api_key_header),
    origin: Optional[str] = Header(None),
    db=Depends(get_db),
):
    """Resolve the x-api-key header to an active Site, enforcing its origin allow-list."""
    if not api_key:
        raise Unauthenticated("Not authorized, API key required")

    site = await db.sites.find_one({"api_key": api_key, "is_active": True})
    if not site:
        logger.warning("Rejected API key %s...", api_key[:6])
        raise Unauthenticated("Invalid API key")

    allowed_origins = site.get("allowed_origins") or []
    if origin and allowed_origins and not origin_allowed(origin, allowed_origins):
        logger.warning("Origin %s not allowed for site %s", origin, site["site_id"])
        raise Forbidden("Origin not allowed")

    return site
