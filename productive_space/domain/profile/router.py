"""Profile router - the signed-in user's own details"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator

from ...auth import AuthUser, get_current_user, invalidate_user_profile, load_user_profile
from ...backend_client import BackendClient, get_backend_client
from ...cache import Cache, get_cache
from ...shared.validators import validate_sg_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])


class ProfileUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    contactNumber: Optional[str] = None

    @field_validator("contactNumber")
    @classmethod
    def validate_phone(cls, v):
        return validate_sg_phone(v)


@router.get("")
async def get_profile(
    user: AuthUser = Depends(get_current_user),
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
):
    profile = await load_user_profile(user.id, client, cache, user.token)
    if not profile:
        raise HTTPException(status_code=404, detail="User profile not found")
    return {"user": profile}


@router.put("")
async def update_profile(
    body: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
):
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")

    data = await client.put(f"/user/{user.id}", json=changes, token=user.token)
    invalidate_user_profile(user.id, cache)
    logger.info(f"👤 Profile updated for user {user.id}: {', '.join(changes)}")
    return {"user": data.get("user")}
