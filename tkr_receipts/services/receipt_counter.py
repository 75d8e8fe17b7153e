"""Sequential receipt numbering."""

from typing import Optional

from tkr_receipts.config.settings import settings
from tkr_receipts.services.storage import KeyValueStore, StorageError
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)


class ReceiptCounter:
    """
    Persisted counter holding the next receipt number.

    The stored value is the number the next receipt will carry. It is only
    advanced by the caller after a document was produced. No locking: two
    processes generating at once can issue the same number.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: Optional[str] = None,
        width: Optional[int] = None,
        key: Optional[str] = None,
    ) -> None:
        self.store = store
        self.prefix = prefix or settings.receipt.prefix
        self.width = width or settings.receipt.number_width
        self.key = key or settings.storage.counter_key

    async def current(self) -> int:
        """
        Read the next number (1 when nothing valid is stored).

        Raises:
            StorageError: If the store cannot be read
        """
        try:
            raw = await self.store.get(self.key)
        except StorageError as e:
            logger.error("Failed to read receipt counter", error=str(e))
            raise

        if raw is None:
            return 1
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Invalid receipt counter value, resetting", raw=raw)
            return 1
        return value if value >= 1 else 1

    def format(self, value: int) -> str:
        """Format a counter value, e.g. 7 -> TKR2025-0007."""
        return f"{self.prefix}-{value:0{self.width}d}"

    async def peek(self) -> str:
        """Formatted number the next receipt will carry."""
        return self.format(await self.current())

    async def advance(self, issued: int) -> int:
        """
        Persist the value after an issued number.

        Args:
            issued: Counter value that was printed on the document

        Returns:
            The new stored value

        Raises:
            StorageError: If the new value cannot be written
        """
        next_value = issued + 1
        await self.store.set(self.key, str(next_value))
        logger.info("Receipt counter advanced", issued=issued, next_value=next_value)
        return next_value

    async def reset(self, value: int = 1) -> None:
        """Set the next number explicitly."""
        await self.store.set(self.key, str(value))
        logger.warning("Receipt counter reset", next_value=value)
