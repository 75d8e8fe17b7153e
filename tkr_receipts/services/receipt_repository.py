"""Receipt log persisted in the key-value store."""

import json
import random
import string
import time
from datetime import date, datetime
from typing import Optional

from pydantic import ValidationError

from tkr_receipts.config.settings import settings
from tkr_receipts.models.listing import Page, PaginationParams, SortDirection
from tkr_receipts.models.receipt import (
    AdvertisementSelection,
    ReceiptDetails,
    ReceiptStats,
    ServiceFlags,
    StoredReceipt,
)
from tkr_receipts.services.storage import KeyValueStore, StorageError
from tkr_receipts.utils.listing import matches_search, parse_amount, parse_date, text_sort_key
from tkr_receipts.utils.logging import get_logger

logger = get_logger(__name__)

CSV_HEADERS = [
    "Receipt Number",
    "Date",
    "Received From",
    "Amount",
    "Tent Number",
    "Usage Purpose",
    "Description",
    "Services",
    "Ad Zones",
    "Total Ads",
    "Car Flags",
    "Banner Flags",
    "Notes",
    "Receiver",
    "Issuer",
    "Created At",
]

SEARCH_FIELDS = (
    "receipt_number",
    "received_from",
    "amount",
    "tent_number",
    "usage_purpose",
    "description",
    "notes",
)


def _csv_cell(value: object, quote: bool = False) -> str:
    """Render one CSV cell; free-text cells are always double-quoted."""
    text = "" if value is None else str(value)
    if quote or any(char in text for char in ',"\r\n'):
        return '"' + text.replace('"', '""') + '"'
    return text


def _new_receipt_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"receipt_{int(time.time() * 1000)}_{suffix}"


class ReceiptRepository:
    """Newest-first receipt log stored as one JSON list."""

    def __init__(self, store: KeyValueStore, key: Optional[str] = None) -> None:
        self.store = store
        self.key = key or settings.storage.receipts_key

    async def _load(self, strict: bool = False) -> list[StoredReceipt]:
        """
        Read all records.

        Listing reads degrade: an unreadable log is empty and invalid
        records are skipped. Strict reads, used before rewriting the log,
        raise StorageError instead so valid records are never overwritten.
        """
        try:
            raw = await self.store.get(self.key)
            items = json.loads(raw) if raw else []
            if not isinstance(items, list):
                raise TypeError(f"expected a list, got {type(items).__name__}")
        except (StorageError, json.JSONDecodeError, TypeError) as e:
            logger.error("Error loading receipts from storage", error=str(e))
            if strict:
                raise StorageError("Receipt log is unreadable") from e
            return []

        receipts = []
        for index, item in enumerate(items):
            try:
                receipts.append(StoredReceipt.model_validate(item))
            except ValidationError as e:
                logger.error("Invalid receipt record", index=index, error=str(e))
                if strict:
                    raise StorageError(f"Receipt record {index} is invalid") from e
        return receipts

    async def _save(self, receipts: list[StoredReceipt]) -> None:
        payload = json.dumps(
            [receipt.model_dump(mode="json", by_alias=True) for receipt in receipts],
            ensure_ascii=False,
        )
        try:
            await self.store.set(self.key, payload)
        except StorageError as e:
            logger.error("Error saving receipts to storage", error=str(e))
            raise StorageError("Failed to save receipt data") from e

    @staticmethod
    def to_record(details: ReceiptDetails) -> StoredReceipt:
        """Build a log record from a completed receipt form."""
        return StoredReceipt(
            id=_new_receipt_id(),
            receipt_number=details.receipt_number or "N/A",
            date=details.receipt_date or date.today().isoformat(),
            received_from=details.received_from_name,
            amount=details.amount,
            tent_number=details.tent_number,
            usage_purpose=details.usage_purpose,
            description=details.description,
            notes=details.notes,
            receiver_name=details.receiver_name,
            payer_name=details.payer_name,
            services=ServiceFlags(
                electricity=details.electricity_available,
                chairs=details.chairs_available,
                table=details.table_available,
            ),
            advertisements=AdvertisementSelection(
                zones=details.active_zones(),
                total_quantity=details.ads_total_quantity,
                car_flags=details.car_flags_count,
                banner_flags=details.banner_flags_count,
            ),
            created_at=datetime.now(),
        )

    async def save_receipt(self, details: ReceiptDetails) -> str:
        """
        Prepend a receipt to the log.

        Args:
            details: Completed receipt form

        Returns:
            ID of the new record

        Raises:
            StorageError: If the log cannot be read or written
        """
        receipts = await self._load(strict=True)
        record = self.to_record(details)
        receipts.insert(0, record)
        await self._save(receipts)
        logger.info(
            "Receipt saved",
            receipt_id=record.id,
            receipt_number=record.receipt_number,
            total_receipts=len(receipts),
        )
        return record.id

    async def get_all_receipts(self) -> list[StoredReceipt]:
        """All records, newest first by creation time."""
        receipts = await self._load()
        return sorted(receipts, key=lambda r: r.created_at, reverse=True)

    async def get_receipt_by_id(self, receipt_id: str) -> Optional[StoredReceipt]:
        for receipt in await self._load():
            if receipt.id == receipt_id:
                return receipt
        return None

    async def delete_receipt(self, receipt_id: str) -> bool:
        """Delete one record; returns False if it does not exist."""
        receipts = await self._load(strict=True)
        remaining = [r for r in receipts if r.id != receipt_id]
        if len(remaining) == len(receipts):
            return False
        await self._save(remaining)
        logger.info("Receipt deleted", receipt_id=receipt_id)
        return True

    async def clear_all_receipts(self) -> None:
        await self._save([])
        logger.warning("Receipt log cleared")

    async def get_receipt_stats(self, today: Optional[date] = None) -> ReceiptStats:
        """Totals, this month's count and distinct tents."""
        receipts = await self._load()
        today = today or date.today()
        month_start = today.replace(day=1)

        total_amount = sum(parse_amount(r.amount) for r in receipts)
        this_month = 0
        for receipt in receipts:
            try:
                if date.fromisoformat(receipt.date) >= month_start:
                    this_month += 1
            except ValueError:
                continue

        total = len(receipts)
        return ReceiptStats(
            total_receipts=total,
            total_amount=total_amount,
            this_month_receipts=this_month,
            unique_tents=len({r.tent_number for r in receipts if r.tent_number}),
            average_amount=total_amount / total if total else 0.0,
        )

    async def search(
        self,
        term: str = "",
        sort_field: str = "created_at",
        direction: SortDirection = SortDirection.DESC,
        pagination: Optional[PaginationParams] = None,
    ) -> Page[StoredReceipt]:
        """
        Filter, sort and paginate the log for the receipts table.

        Date fields sort chronologically and amounts numerically; other
        fields compare as case-insensitive text.
        """
        if sort_field not in StoredReceipt.model_fields:
            raise ValueError(f"Unknown sort field: {sort_field}")

        receipts = [
            r
            for r in await self._load()
            if matches_search(term, (getattr(r, field) for field in SEARCH_FIELDS))
        ]

        if sort_field in ("created_at", "date"):
            key = lambda r: parse_date(getattr(r, sort_field))  # noqa: E731
        elif sort_field == "amount":
            key = lambda r: parse_amount(r.amount)  # noqa: E731
        else:
            key = lambda r: text_sort_key(getattr(r, sort_field))  # noqa: E731

        receipts.sort(key=key, reverse=direction == SortDirection.DESC)
        return Page[StoredReceipt].from_items(receipts, pagination or PaginationParams())

    async def export_to_csv(self) -> str:
        """CSV text: header row plus one row per record, newest first."""
        receipts = await self._load()
        lines = [",".join(CSV_HEADERS)]
        for r in receipts:
            lines.append(
                ",".join(
                    [
                        _csv_cell(r.receipt_number),
                        _csv_cell(r.date),
                        _csv_cell(r.received_from, quote=True),
                        _csv_cell(r.amount, quote=True),
                        _csv_cell(r.tent_number),
                        _csv_cell(r.usage_purpose, quote=True),
                        _csv_cell(r.description, quote=True),
                        _csv_cell(", ".join(r.services.enabled()), quote=True),
                        _csv_cell(", ".join(r.advertisements.zones), quote=True),
                        _csv_cell(r.advertisements.total_quantity),
                        _csv_cell(r.advertisements.car_flags),
                        _csv_cell(r.advertisements.banner_flags),
                        _csv_cell(r.notes, quote=True),
                        _csv_cell(r.receiver_name, quote=True),
                        _csv_cell(r.payer_name, quote=True),
                        _csv_cell(r.created_at.isoformat()),
                    ]
                )
            )
        return "\n".join(lines)

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        return f"receipts-export-{(today or date.today()).isoformat()}.csv"
