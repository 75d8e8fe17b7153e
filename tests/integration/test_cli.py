"""
Integration tests for the command line
"""
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tkr_receipts.cli import app
from tkr_receipts.services.storage import JsonFileStore

runner = CliRunner()


@pytest.fixture
def file_store(tmp_path):
    store = JsonFileStore(tmp_path / "store.json")
    with patch("tkr_receipts.cli.get_default_store", return_value=store):
        yield store


@pytest.mark.integration
@pytest.mark.cli
class TestReceiptCommands:
    """Test suite for receipt commands"""

    def test_receipt_then_list(self, file_store, tmp_path, sample_receipt_fields):
        """
        Test generating and listing a receipt

        Given: A receipt form file
        When: 'tkr receipt' then 'tkr receipts list' are run
        Then: The PDF is written and the receipt shows up in the list
        """
        # Arrange
        form = tmp_path / "form.json"
        form.write_text(json.dumps(sample_receipt_fields, ensure_ascii=False), encoding="utf-8")
        out_dir = tmp_path / "pdfs"

        # Act
        created = runner.invoke(app, ["receipt", "--form", str(form), "--output-dir", str(out_dir)])
        listed = runner.invoke(app, ["receipts", "list"])

        # Assert
        assert created.exit_code == 0, created.output
        assert len(list(out_dir.glob("Receipt_*.pdf"))) == 1
        assert listed.exit_code == 0
        assert "1 matching receipt(s)" in listed.output

    def test_next_number_after_receipt(self, file_store, tmp_path):
        """
        Test the counter command

        Given: One receipt generated from command-line options
        When: 'tkr next-number' is run
        Then: The second number is shown
        """
        runner.invoke(app, ["receipt", "--from", "Club", "--amount", "100", "--output-dir", str(tmp_path)])

        result = runner.invoke(app, ["next-number"])

        assert result.exit_code == 0
        assert result.output.strip().endswith("-0002")

    def test_invalid_form_fails(self, file_store, tmp_path):
        """
        Test form validation

        Given: A form with an invalid date
        When: 'tkr receipt' is run
        Then: The command exits with status 1 and no number is consumed
        """
        form = tmp_path / "form.json"
        form.write_text(json.dumps({"receiptDate": "14/03/2025"}), encoding="utf-8")

        result = runner.invoke(app, ["receipt", "--form", str(form)])
        number = runner.invoke(app, ["next-number"])

        assert result.exit_code == 1
        assert "Invalid receipt form" in result.output
        assert number.output.strip().endswith("-0001")

    def test_form_must_be_an_object(self, file_store, tmp_path):
        """
        Test a form file holding a list

        Given: A form file whose top-level JSON value is a list
        When: 'tkr receipt' is run
        Then: The command exits with status 1 and a readable message
        """
        form = tmp_path / "form.json"
        form.write_text('[{"amount": "100"}]', encoding="utf-8")

        result = runner.invoke(app, ["receipt", "--form", str(form)])

        assert result.exit_code == 1
        assert "JSON object" in result.output
        assert not isinstance(result.exception, AttributeError)

    def test_corrupt_store_fails_cleanly(self, file_store, tmp_path):
        """
        Test a corrupt store file

        Given: A store file that is not valid JSON
        When: 'tkr next-number' and 'tkr receipt' are run
        Then: Both exit with status 1 and no PDF is written
        """
        file_store.path.write_text("{not json", encoding="utf-8")
        out_dir = tmp_path / "pdfs"

        number = runner.invoke(app, ["next-number"])
        created = runner.invoke(app, ["receipt", "--from", "Club", "--output-dir", str(out_dir)])

        assert number.exit_code == 1
        assert created.exit_code == 1
        assert "Corrupt store file" in created.output
        assert not out_dir.exists()

    def test_export_and_clear(self, file_store, tmp_path):
        """
        Test export and clear

        Given: One stored receipt
        When: The log is exported and then cleared
        Then: The CSV has a header and one row, and the list is empty afterwards
        """
        runner.invoke(app, ["receipt", "--from", "Club", "--output-dir", str(tmp_path)])
        csv_path = tmp_path / "log.csv"

        exported = runner.invoke(app, ["receipts", "export", "--output", str(csv_path)])
        cleared = runner.invoke(app, ["receipts", "clear", "--yes"])
        listed = runner.invoke(app, ["receipts", "list"])

        assert exported.exit_code == 0
        assert len(csv_path.read_text(encoding="utf-8").splitlines()) == 2
        assert cleared.exit_code == 0
        assert "0 matching receipt(s)" in listed.output

    def test_delete_unknown_receipt(self, file_store):
        """
        Test deleting a missing record

        Given: An empty log
        When: 'tkr receipts delete' is run with an unknown ID
        Then: The command fails
        """
        result = runner.invoke(app, ["receipts", "delete", "receipt_missing"])

        assert result.exit_code == 1

    def test_logout(self, file_store):
        """
        Test logout command

        Given: A file store
        When: 'tkr logout' is run
        Then: It reports success
        """
        result = runner.invoke(app, ["logout"])

        assert result.exit_code == 0
        assert "Logged out" in result.output


@pytest.mark.integration
@pytest.mark.cli
class TestTentCommands:
    """Test suite for tent and booking commands"""

    def test_tents_summary(self):
        """
        Test the tent layout command

        Given: The sample layout
        When: 'tkr tents' is run
        Then: The status totals are printed
        """
        result = runner.invoke(app, ["tents"])

        assert result.exit_code == 0
        assert "Total 48: 25 available, 14 reserved, 9 occupied" in result.output

    def test_bookings_export(self, tmp_path):
        """
        Test the bookings command with export

        Given: Seeded sample bookings
        When: 'tkr bookings' is run with an export path
        Then: All 25 bookings are written to CSV
        """
        out = tmp_path / "bookings.csv"

        result = runner.invoke(app, ["bookings", "--seed", "4", "--export", str(out)])

        assert result.exit_code == 0
        assert len(out.read_text(encoding="utf-8").splitlines()) == 26

    def test_bookings_bad_sort(self):
        """
        Test an invalid sort field

        Given: A field bookings do not have
        When: 'tkr bookings --sort' is run with it
        Then: The command fails
        """
        result = runner.invoke(app, ["bookings", "--sort", "price"])

        assert result.exit_code == 1

    def test_version(self):
        """
        Test --version

        Given: The CLI
        When: Run with --version
        Then: The package version is printed
        """
        from tkr_receipts import __version__

        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


@pytest.mark.integration
@pytest.mark.cli
class TestQuoteCommands:
    """Test suite for quotation commands that need no AI round trip"""

    def test_empty_scope_renders_template(self, tmp_path):
        """
        Test building a quotation without scope items

        Given: A scope file holding an empty list
        When: 'tkr quote build' is run
        Then: The empty template is rendered to <base>_Quotation.pdf
        """
        scope = tmp_path / "scope.json"
        scope.write_text("[]", encoding="utf-8")

        result = runner.invoke(
            app, ["quote", "build", str(scope), "--file-name", "plans.pdf", "--output-dir", str(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "plans_Quotation.pdf").read_bytes().startswith(b"%PDF")

    def test_invalid_scope_file(self, tmp_path):
        """
        Test scope validation

        Given: A scope file that is not a list of items
        When: 'tkr quote build' is run
        Then: The command fails with a readable message
        """
        scope = tmp_path / "scope.json"
        scope.write_text('{"category": "painting"}', encoding="utf-8")

        result = runner.invoke(app, ["quote", "build", str(scope), "--file-name", "plans.pdf"])

        assert result.exit_code == 1
        assert "Invalid scope file" in result.output

    def test_prices_must_be_an_object(self, tmp_path):
        """
        Test a price file holding a list

        Given: A valid scope file and a price file whose JSON value is a list
        When: 'tkr quote build' is run with --prices
        Then: The command fails before drafting the quotation
        """
        scope = tmp_path / "scope.json"
        scope.write_text("[]", encoding="utf-8")
        prices = tmp_path / "prices.json"
        prices.write_text("[100, 200]", encoding="utf-8")

        result = runner.invoke(
            app,
            ["quote", "build", str(scope), "--file-name", "plans.pdf", "--prices", str(prices),
             "--output-dir", str(tmp_path)],
        )

        assert result.exit_code == 1
        assert "JSON object" in result.output
        assert not (tmp_path / "plans_Quotation.pdf").exists()
