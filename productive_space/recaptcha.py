"""
Google reCAPTCHA verification
"""

import hashlib
import logging
from typing import Optional

import httpx
from fastapi import HTTPException

from . import config
from .cache import Cache

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


async def verify_recaptcha(
    token: Optional[str],
    ip: Optional[str],
    cache: Cache,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Verify a reCAPTCHA token, caching successes so a token can be reused
    across the steps of one checkout.

    Returns:
        True if verification successful, False otherwise
    """
    if not config.RECAPTCHA_SECRET_KEY:
        logger.warning("⚠️ RECAPTCHA_SECRET_KEY not configured - skipping CAPTCHA verification")
        return True

    if not token:
        logger.warning(f"❌ Missing reCAPTCHA token from IP: {ip}")
        return False

    cache_key = f"recaptcha_verified:{hashlib.sha256(f'{token}:{ip}'.encode()).hexdigest()}"
    if cache.get(cache_key):
        logger.info(f"✅ reCAPTCHA verification cached for IP: {ip}")
        return True

    try:
        async with httpx.AsyncClient(transport=transport) as client:
            data = {"secret": config.RECAPTCHA_SECRET_KEY, "response": token}
            if ip:
                data["remoteip"] = ip
            response = await client.post(SITEVERIFY_URL, data=data, timeout=10.0)
            result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"❌ reCAPTCHA verification error: {str(e)}")
        # Fail open - allow request if verification service is down
        return True

    success = bool(result.get("success", False))
    if success:
        logger.info(f"✅ reCAPTCHA verification successful for IP: {ip}")
        cache.set(cache_key, "verified", 300)
    else:
        logger.warning(
            f"❌ reCAPTCHA verification failed for IP: {ip} - Errors: {result.get('error-codes', [])}"
        )
    return success


async def ensure_recaptcha(token: Optional[str], ip: Optional[str], cache: Cache) -> None:
    if not await verify_recaptcha(token, ip, cache):
        raise HTTPException(status_code=400, detail="reCAPTCHA verification failed. Please try again.")
