"""Anonymous viewer fingerprints.

A fingerprint is a salted SHA-256 of ``context:ip:user_agent:salt`` truncated
to 128 bits. The context tag gives every subsystem its own identifier for the
same browser, so view, like and comment hashes cannot be joined together.
"""

import hashlib
from enum import Enum
from functools import lru_cache

from fastapi import Request

from paayo.config import DEV_VIEWER_HASH_SALT, get_settings
from paayo.core.logging import get_logger

logger = get_logger(__name__)


class ViewerContext(str, Enum):
    VIEW = "view"
    LIKE = "like"
    COMMENT = "comment"
    RATE_LIMIT = "ratelimit"


@lru_cache(maxsize=1)
def _salt() -> str:
    salt = get_settings().effective_viewer_hash_salt
    if salt == DEV_VIEWER_HASH_SALT:
        logger.warning("viewer_hash_salt_fallback", hint="set VIEWER_HASH_SALT")
    return salt


def viewer_hash(ip: str, user_agent: str, context: ViewerContext | str) -> str:
    """Deterministic 32-hex-char identifier for (ip, user agent) in a context."""
    tag = context.value if isinstance(context, ViewerContext) else context
    material = f"{tag}:{ip}:{user_agent}:{_salt()}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()[:32]


def get_client_ip(request: Request) -> str:
    """Client IP, honouring reverse-proxy headers."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> str:
    return request.headers.get("User-Agent", "")


def request_fingerprint(request: Request, context: ViewerContext) -> str:
    return viewer_hash(get_client_ip(request), get_user_agent(request), context)
