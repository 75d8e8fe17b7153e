"""
Unit tests for receipt generation

Tests counter advancement, failure handling and the re-entrancy guard
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
import structlog

from tkr_receipts.services.receipt_counter import ReceiptCounter
from tkr_receipts.services.receipt_repository import ReceiptRepository
from tkr_receipts.services.receipt_service import (
    GenerationError,
    GenerationInProgressError,
    ReceiptService,
)
from tkr_receipts.services.storage import JsonFileStore, StorageError


@pytest.fixture
def service(store, fallback_resources, tmp_path):
    return ReceiptService(
        store,
        counter=ReceiptCounter(store, prefix="TKR2025", width=4),
        output_dir=tmp_path / "receipts",
        resources=fallback_resources,
    )


@pytest.mark.unit
@pytest.mark.storage
class TestReceiptService:
    """Test suite for ReceiptService.generate()"""

    @pytest.mark.asyncio
    async def test_generate_numbers_writes_and_logs(self, service, sample_details, store):
        """
        Test one successful generation

        Given: A fresh store
        When: A receipt is generated
        Then: It carries number 0001, the PDF is written, the counter moves to 2 and the log has one record
        """
        # Act
        result = await service.generate(sample_details)

        # Assert
        assert result.receipt_number == "TKR2025-0001"
        assert result.filename == "Receipt_TKR2025-0001.pdf"
        assert result.path.read_bytes().startswith(b"%PDF")
        assert result.size_bytes == result.path.stat().st_size
        assert await service.counter.current() == 2

        receipts = await ReceiptRepository(store).get_all_receipts()
        assert [r.receipt_number for r in receipts] == ["TKR2025-0001"]
        assert receipts[0].id == result.receipt_id

    @pytest.mark.asyncio
    async def test_k_generations_advance_counter_by_k(self, service, sample_details):
        """
        Test sequential numbering

        Given: A counter starting at 41
        When: Three receipts are generated one after another
        Then: They carry 0041, 0042 and 0043 and the counter ends at 44
        """
        await service.counter.reset(41)

        numbers = [(await service.generate(sample_details, write_file=False)).receipt_number for _ in range(3)]

        assert numbers == ["TKR2025-0041", "TKR2025-0042", "TKR2025-0043"]
        assert await service.counter.current() == 44

    @pytest.mark.asyncio
    async def test_input_form_not_modified(self, service, sample_details):
        """
        Test the caller's form is left alone

        Given: A form without a receipt number
        When: A receipt is generated
        Then: The form still has no number
        """
        await service.generate(sample_details, write_file=False)

        assert sample_details.receipt_number == ""

    @pytest.mark.asyncio
    async def test_render_failure_keeps_counter(self, service, sample_details, store):
        """
        Test a drawing failure

        Given: A renderer that fails
        When: Generation is attempted
        Then: GenerationError is raised, the counter is unchanged and nothing is logged
        """
        from tkr_receipts.pdf.receipt import ReceiptRenderError

        # Arrange
        await service.counter.reset(7)
        failing = AsyncMock(side_effect=ReceiptRenderError("Failed to generate receipt PDF: boom"))

        # Act
        with patch("tkr_receipts.services.receipt_service.generate_receipt_pdf", failing):
            with pytest.raises(GenerationError, match="boom"):
                await service.generate(sample_details)

        # Assert
        assert await service.counter.current() == 7
        assert await ReceiptRepository(store).get_all_receipts() == []
        assert not service.busy

    @pytest.mark.asyncio
    async def test_write_failure_keeps_counter(self, store, fallback_resources, sample_details, tmp_path):
        """
        Test an output write failure

        Given: An output directory path that is actually a file
        When: Generation is attempted
        Then: GenerationError is raised and the counter is unchanged
        """
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        service = ReceiptService(store, output_dir=blocker / "sub", resources=fallback_resources)

        with pytest.raises(GenerationError):
            await service.generate(sample_details)

        assert await service.counter.current() == 1

    @pytest.mark.asyncio
    async def test_unreadable_counter_stops_before_drawing(self, fallback_resources, sample_details, tmp_path):
        """
        Test a corrupt store file

        Given: Two receipts generated, then the store file is corrupted
        When: A third generation is attempted
        Then: StorageError is raised and the earlier PDFs are untouched
        """
        # Arrange
        store_path = tmp_path / "store.json"
        output_dir = tmp_path / "receipts"
        store = JsonFileStore(store_path)
        service = ReceiptService(
            store,
            counter=ReceiptCounter(store, prefix="TKR2025", width=4),
            output_dir=output_dir,
            resources=fallback_resources,
        )
        first = await service.generate(sample_details)
        await service.generate(sample_details)
        original = first.path.read_bytes()
        store_path.write_text("{not json", encoding="utf-8")

        # Act
        with pytest.raises(StorageError):
            await service.generate(sample_details)

        # Assert
        assert first.path.read_bytes() == original
        assert len(list(output_dir.iterdir())) == 2
        assert not service.busy

    @pytest.mark.asyncio
    async def test_second_generation_while_busy_rejected(self, service, sample_details):
        """
        Test the re-entrancy guard

        Given: A generation that is still drawing
        When: A second generation starts on the same service
        Then: The second call is rejected and only one number is consumed
        """
        # Arrange
        release = asyncio.Event()
        from tkr_receipts.pdf.receipt import generate_receipt_pdf as real_generate

        async def slow_generate(*args, **kwargs):
            await release.wait()
            return await real_generate(*args, **kwargs)

        # Act
        with patch("tkr_receipts.services.receipt_service.generate_receipt_pdf", slow_generate):
            first = asyncio.create_task(service.generate(sample_details, write_file=False))
            await asyncio.sleep(0)
            assert service.busy
            with pytest.raises(GenerationInProgressError):
                await service.generate(sample_details, write_file=False)
            release.set()
            result = await first

        # Assert
        assert result.receipt_number == "TKR2025-0001"
        assert await service.counter.current() == 2
        assert not service.busy

    @pytest.mark.asyncio
    async def test_receipt_number_bound_to_log_context(self, service, sample_details):
        """
        Test log context during generation

        Given: A renderer that records the bound log context
        When: A receipt is generated, then a second one fails to render
        Then: The receipt number is bound while drawing and unbound after both calls
        """
        from tkr_receipts.pdf.receipt import ReceiptRenderError
        from tkr_receipts.pdf.receipt import generate_receipt_pdf as real_generate

        # Arrange
        seen = []

        async def recording_generate(*args, **kwargs):
            seen.append(structlog.contextvars.get_contextvars())
            if len(seen) > 1:
                raise ReceiptRenderError("Failed to generate receipt PDF: boom")
            return await real_generate(*args, **kwargs)

        # Act
        with patch("tkr_receipts.services.receipt_service.generate_receipt_pdf", recording_generate):
            await service.generate(sample_details, write_file=False)
            after_success = structlog.contextvars.get_contextvars()
            with pytest.raises(GenerationError):
                await service.generate(sample_details, write_file=False)

        # Assert
        assert seen[0]["receipt_number"] == "TKR2025-0001"
        assert seen[1]["receipt_number"] == "TKR2025-0002"
        assert "receipt_number" not in after_success
        assert "receipt_number" not in structlog.contextvars.get_contextvars()
