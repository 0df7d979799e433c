import os
import hmac
import logging

from fastapi import Header, HTTPException, status, Request
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_ALLOWLIST_PATHS = {
    "/",
    "/health",
    "/docs",
    "/docs/oauth2-redirect",
    "/openapi.json",
    "/redoc",
}


def get_api_keys():
    keys = os.getenv("API_KEYS", "")
    return [k.strip() for k in keys.split(",") if k.strip()]


def is_valid_api_key(candidate: str) -> bool:
    """True when no keys are configured (local development) or the key matches one."""
    valid_keys = get_api_keys()
    if not valid_keys:
        return True
    candidate = (candidate or "").strip()
    return bool(candidate) and any(hmac.compare_digest(candidate, k) for k in valid_keys)


async def api_key_protection(
    request: Request = None,  # keep Request type so FastAPI injects it; default None for direct calls/tests
    x_api_key: str = Header(default=None, alias="X-API-KEY"),
):
    debug = os.getenv("API_KEY_DEBUG", "").lower() in ("1", "true", "yes")
    path = request.url.path if request is not None else "<no-request>"
    if debug:
        logger.info("API key check: path=%s header_present=%s", path, bool(x_api_key))

    if request is not None and request.url.path in _ALLOWLIST_PATHS:
        return

    ok = is_valid_api_key(x_api_key)
    if debug:
        logger.info("API key check: path=%s ok=%s configured_keys=%d", path, ok, len(get_api_keys()))

    if not ok:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
