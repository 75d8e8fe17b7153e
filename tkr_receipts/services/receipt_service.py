"""Receipt generation: number, draw, write, then persist."""

from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from pydantic import BaseModel

from tkr_receipts.config.settings import settings
from tkr_receipts.models.receipt import ReceiptDetails
from tkr_receipts.pdf.receipt import ReceiptRenderError, generate_receipt_pdf
from tkr_receipts.pdf.resources import DocumentResources
from tkr_receipts.services.receipt_counter import ReceiptCounter
from tkr_receipts.services.receipt_repository import ReceiptRepository
from tkr_receipts.services.storage import KeyValueStore
from tkr_receipts.utils.logging import document_context, get_logger

logger = get_logger(__name__)


class GenerationError(Exception):
    """Receipt document could not be produced."""

    pass


class GenerationInProgressError(Exception):
    """A receipt is already being generated by this service."""

    pass


class GeneratedReceipt(BaseModel):
    """Outcome of one successful generation."""

    receipt_number: str
    receipt_id: str
    filename: str
    path: Optional[Path] = None
    page_count: int
    size_bytes: int


class ReceiptService:
    """
    Orchestrates receipt generation.

    The counter is read once at the start, the number is printed on the
    document, and the counter is only advanced once the PDF exists. Any
    failure before that point leaves the counter untouched.
    """

    def __init__(
        self,
        store: KeyValueStore,
        counter: Optional[ReceiptCounter] = None,
        repository: Optional[ReceiptRepository] = None,
        output_dir: Optional[Path] = None,
        client: Optional[httpx.AsyncClient] = None,
        resources: Optional[DocumentResources] = None,
    ) -> None:
        self.counter = counter or ReceiptCounter(store)
        self.repository = repository or ReceiptRepository(store)
        self.output_dir = output_dir if output_dir is not None else settings.receipt.output_dir
        self.client = client
        self.resources = resources
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def _write(self, filename: str, content: bytes) -> Path:
        path = Path(self.output_dir) / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, mode="wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to write receipt PDF", path=str(path), error=str(e))
            raise GenerationError(f"Failed to write {path}: {e}") from e
        return path

    async def generate(self, details: ReceiptDetails, write_file: bool = True) -> GeneratedReceipt:
        """
        Generate one receipt.

        Args:
            details: Filled receipt form; its receipt_number is replaced
            write_file: Write the PDF into the output directory

        Returns:
            Number, record id and output location of the receipt

        Raises:
            GenerationInProgressError: If a generation is already running
            GenerationError: If the document could not be drawn or written
            StorageError: If the counter or receipt log cannot be written
        """
        if self._in_flight:
            raise GenerationInProgressError("A receipt is already being generated")

        self._in_flight = True
        try:
            issued = await self.counter.current()
            numbered = details.model_copy(update={"receipt_number": self.counter.format(issued)})
            with document_context(receipt_number=numbered.receipt_number):
                return await self._generate_numbered(numbered, issued, write_file)
        finally:
            self._in_flight = False

    async def _generate_numbered(
        self, numbered: ReceiptDetails, issued: int, write_file: bool
    ) -> GeneratedReceipt:
        logger.info("Generating receipt")

        try:
            document = await generate_receipt_pdf(
                numbered, client=self.client, resources=self.resources
            )
        except ReceiptRenderError as e:
            raise GenerationError(str(e)) from e

        path = await self._write(document.filename, document.content) if write_file else None

        await self.counter.advance(issued)
        receipt_id = await self.repository.save_receipt(numbered)

        logger.info(
            "Receipt generated",
            receipt_id=receipt_id,
            path=str(path) if path else None,
            size_bytes=len(document.content),
        )
        return GeneratedReceipt(
            receipt_number=numbered.receipt_number,
            receipt_id=receipt_id,
            filename=document.filename,
            path=path,
            page_count=document.page_count,
            size_bytes=len(document.content),
        )
