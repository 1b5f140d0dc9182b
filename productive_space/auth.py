import base64
import json
import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .backend_client import BackendClient, BackendError, get_backend_client
from .cache import Cache, get_cache
from .config import USER_CACHE_TTL

logger = logging.getLogger(__name__)

security = HTTPBearer()

MEMBER_TYPES = ("STUDENT", "MEMBER", "TUTOR", "ADMIN")


class AuthUser(BaseModel):
    """Caller identity taken from the session token"""

    id: str
    email: str = ""
    name: str = ""
    firstName: str = ""
    lastName: str = ""
    memberType: str = "MEMBER"
    contactNumber: str = ""
    token: str

    @property
    def is_admin(self) -> bool:
        return self.memberType == "ADMIN"


def decode_token_claims(token: str) -> dict:
    """
    Read the claims of a session JWT.

    The signature is not checked here: the token is forwarded to the
    booking backend, which verifies it on every call.
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format")

    payload_b64 = parts[1]
    padding = 4 - len(payload_b64) % 4
    payload_b64_padded = payload_b64 + ("=" * padding if padding != 4 else "")

    try:
        claims = json.loads(base64.urlsafe_b64decode(payload_b64_padded))
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"⚠️ Could not decode token payload: {e}")
        raise HTTPException(status_code=401, detail="Invalid token payload") from e

    if not isinstance(claims, dict) or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Token has no subject")
    return claims


def user_from_claims(claims: dict, token: str) -> AuthUser:
    metadata = claims.get("user_metadata") or {}
    email = claims.get("email") or ""
    full_name = metadata.get("full_name") or (email.split("@")[0] if email else "User")
    name_parts = full_name.split(" ")
    member_type = str(metadata.get("memberType") or "MEMBER").upper()
    if member_type not in MEMBER_TYPES:
        member_type = "MEMBER"

    return AuthUser(
        id=claims["sub"],
        email=email,
        name=full_name,
        firstName=name_parts[0],
        lastName=" ".join(name_parts[1:]),
        memberType=member_type,
        contactNumber=metadata.get("phone") or "",
        token=token,
    )


async def load_user_profile(
    user_id: str, client: BackendClient, cache: Cache, token: Optional[str] = None
) -> Optional[dict]:
    """
    Fetch the backend profile for a user, cached for USER_CACHE_TTL seconds.

    A token the backend refuses is a 401 here; other failures fall back to None.
    """
    cache_key = f"user_profile:{user_id}"
    profile = cache.get(cache_key)
    if profile is not None:
        return profile

    try:
        data = await client.get(f"/user/{user_id}", token=token)
    except BackendError as e:
        if e.status_code in (401, 403):
            logger.warning(f"🚫 Backend rejected the session token for user {user_id}")
            raise HTTPException(status_code=401, detail="Invalid or expired session") from e
        logger.warning(f"⚠️ Could not load profile for user {user_id}: {e.detail}")
        return None

    profile = data.get("user")
    if profile:
        cache.set(cache_key, profile, USER_CACHE_TTL)
    return profile


def invalidate_user_profile(user_id: str, cache: Cache) -> bool:
    return cache.delete(f"user_profile:{user_id}")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
) -> AuthUser:
    """Resolve the caller from the bearer token, enriched with the cached profile"""
    token = credentials.credentials
    user = user_from_claims(decode_token_claims(token), token)

    profile = await load_user_profile(user.id, client, cache, token)
    if profile:
        user = user.model_copy(
            update={
                key: profile[key]
                for key in ("email", "firstName", "lastName", "memberType", "contactNumber")
                if profile.get(key)
            }
        )
    return user


async def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.is_admin:
        logger.warning(f"⚠️ Non-admin user {user.id} attempted an admin operation")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
