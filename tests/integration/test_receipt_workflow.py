"""
Integration tests for the receipt workflow on a JSON file store

Tests generation, numbering, persistence across restarts and export
"""
import csv
import io

import pytest

from tkr_receipts.services.receipt_counter import ReceiptCounter
from tkr_receipts.services.receipt_repository import ReceiptRepository
from tkr_receipts.services.receipt_service import ReceiptService
from tkr_receipts.services.session import logout
from tkr_receipts.services.storage import JsonFileStore


@pytest.mark.integration
@pytest.mark.storage
class TestReceiptWorkflow:
    """End-to-end receipt generation against a file-backed store"""

    @pytest.mark.asyncio
    async def test_numbering_survives_restart(self, tmp_path, fallback_resources, sample_details):
        """
        Test persistence across process restarts

        Given: Two receipts generated by one service instance
        When: A new store and service are created on the same file
        Then: The next receipt continues the sequence and the log holds all three
        """
        # Arrange
        store_path = tmp_path / "store.json"
        output_dir = tmp_path / "receipts"
        first_service = ReceiptService(JsonFileStore(store_path), output_dir=output_dir, resources=fallback_resources)

        # Act
        await first_service.generate(sample_details)
        await first_service.generate(sample_details)

        restarted_store = JsonFileStore(store_path)
        second_service = ReceiptService(restarted_store, output_dir=output_dir, resources=fallback_resources)
        third = await second_service.generate(sample_details)

        # Assert
        prefix = ReceiptCounter(restarted_store).prefix
        assert third.receipt_number == f"{prefix}-0003"
        assert sorted(p.name for p in output_dir.iterdir()) == [
            f"Receipt_{prefix}-0001.pdf",
            f"Receipt_{prefix}-0002.pdf",
            f"Receipt_{prefix}-0003.pdf",
        ]
        receipts = await ReceiptRepository(restarted_store).get_all_receipts()
        assert [r.receipt_number for r in receipts] == [
            f"{prefix}-0003",
            f"{prefix}-0002",
            f"{prefix}-0001",
        ]

    @pytest.mark.asyncio
    async def test_generate_list_export_delete(self, tmp_path, fallback_resources, sample_details):
        """
        Test the admin table workflow

        Given: Receipts for two tents
        When: The log is searched, exported and one record deleted
        Then: Search, stats, CSV and deletion reflect the stored data
        """
        # Arrange
        store = JsonFileStore(tmp_path / "store.json")
        service = ReceiptService(store, output_dir=tmp_path / "out", resources=fallback_resources)
        repository = ReceiptRepository(store)
        other_tent = sample_details.model_copy(update={"tent_number": "T30", "amount": "250"})

        first = await service.generate(sample_details, write_file=False)
        second = await service.generate(other_tent, write_file=False)

        # Act
        page = await repository.search(term="t30")
        stats = await repository.get_receipt_stats()
        rows = list(csv.reader(io.StringIO(await repository.export_to_csv())))
        deleted = await repository.delete_receipt(first.receipt_id)

        # Assert
        assert [r.id for r in page.items] == [second.receipt_id]
        assert stats.total_receipts == 2
        assert stats.unique_tents == 2
        assert stats.total_amount == 1750.0
        assert len(rows) == 3
        assert deleted is True
        assert [r.id for r in await repository.get_all_receipts()] == [second.receipt_id]

    @pytest.mark.asyncio
    async def test_logout_keeps_receipts(self, tmp_path, fallback_resources, sample_details):
        """
        Test logout against the file store

        Given: A stored session token and one receipt
        When: The admin logs out
        Then: The token is gone but the counter and the log remain
        """
        from tkr_receipts.config.settings import settings

        store = JsonFileStore(tmp_path / "store.json")
        await store.set(settings.storage.session_key, "abc")
        await ReceiptService(store, resources=fallback_resources).generate(sample_details, write_file=False)

        assert await logout(store) is True

        assert await store.get(settings.storage.session_key) is None
        assert await ReceiptCounter(store).current() == 2
        assert len(await ReceiptRepository(store).get_all_receipts()) == 1
