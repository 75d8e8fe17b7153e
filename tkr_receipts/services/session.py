"""Admin session hook."""

from typing import Optional

from tkr_receipts.config.settings import settings
from tkr_receipts.services.storage import KeyValueStore, StorageError
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)


async def logout(store: KeyValueStore, key: Optional[str] = None) -> bool:
    """
    Drop the stored admin session token.

    Returns:
        True if the token was removed, False if removal failed (logged, not raised)
    """
    key = key or settings.storage.session_key
    try:
        await store.delete(key)
    except StorageError as e:
        logger.error("Failed to clear session token", key=key, error=str(e))
        return False
    logger.info("Admin session cleared")
    return True
