import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from storefront.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


async def is_admin(
    x_admin_token: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> bool:
    """
    Opaque "may mutate the catalog" capability.
    True when the X-Admin-Token header matches ADMIN_TOKEN. An empty ADMIN_TOKEN disables admin access.
    """
    if not settings.ADMIN_TOKEN or not x_admin_token:
        return False
    return hmac.compare_digest(x_admin_token.encode("utf-8"), settings.ADMIN_TOKEN.encode("utf-8"))


async def require_admin(allowed: bool = Depends(is_admin)) -> None:
    if not allowed:
        logger.warning("admin capability missing or invalid")
        raise HTTPException(status_code=403, detail="Admin access required")


async def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Identity is asserted by the upstream auth layer; we only read it."""
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None
