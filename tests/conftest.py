"""Pytest configuration and fixtures for all tests."""

import os
import tempfile
from io import BytesIO
from pathlib import Path

import pytest

# Set test environment variables before importing settings
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="tkr-tests-"))
os.environ["APP_ENV"] = "testing"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"
os.environ["TKR_DATA_DIR"] = str(_TEST_ROOT / "data")
os.environ["RECEIPT_OUTPUT_DIR"] = str(_TEST_ROOT / "out")
os.environ["FONT_PATHS"] = str(_TEST_ROOT / "no-fonts-here")
os.environ["LOGO_URL"] = ""
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["GEMINI_BASE_URL"] = "https://gemini.test/v1beta"
os.environ["GEMINI_MODEL"] = "test-model"

import reportlab  # noqa: E402
from reportlab.pdfgen.canvas import Canvas  # noqa: E402

REPORTLAB_FONTS = Path(reportlab.__file__).parent / "fonts"


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    from tkr_receipts.services.storage import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def fallback_fonts():
    """Font set made of built-in faces only."""
    from tkr_receipts.pdf.resources import FontSet

    return FontSet.fallback()


@pytest.fixture
def distinct_fonts():
    """Built-in faces with a different name per role, so tests can tell them apart."""
    from tkr_receipts.pdf.resources import FaceRole, FontFace, FontSet

    return FontSet(
        latin_regular=FontFace(role=FaceRole.LATIN_REGULAR, name="Helvetica", loaded=True),
        latin_bold=FontFace(role=FaceRole.LATIN_BOLD, name="Helvetica-Bold", loaded=True),
        arabic_regular=FontFace(role=FaceRole.ARABIC_REGULAR, name="Times-Roman", loaded=True),
        arabic_bold=FontFace(role=FaceRole.ARABIC_BOLD, name="Times-Bold", loaded=True),
    )


@pytest.fixture
def fallback_resources(fallback_fonts):
    """Document resources without custom fonts or logo."""
    from tkr_receipts.pdf.resources import DocumentResources

    return DocumentResources(fonts=fallback_fonts)


@pytest.fixture
def layout_ctx(distinct_fonts):
    """Layout context drawing into an in-memory canvas."""
    from tkr_receipts.pdf.layout import LayoutContext

    return LayoutContext(Canvas(BytesIO()), distinct_fonts)


@pytest.fixture
def font_dir(tmp_path):
    """Directory holding real TrueType files under the configured font names."""
    directory = tmp_path / "fonts"
    directory.mkdir()
    regular = (REPORTLAB_FONTS / "Vera.ttf").read_bytes()
    bold = (REPORTLAB_FONTS / "VeraBd.ttf").read_bytes()
    (directory / "Inter-Regular.ttf").write_bytes(regular)
    (directory / "Inter-Bold.ttf").write_bytes(bold)
    (directory / "NotoKufiArabic-Regular.ttf").write_bytes(regular)
    (directory / "NotoKufiArabic-Bold.ttf").write_bytes(bold)
    return directory


@pytest.fixture
def png_logo():
    """Small PNG image as bytes."""
    from PIL import Image

    buffer = BytesIO()
    Image.new("RGB", (200, 100), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_receipt_fields():
    """Receipt form fields as the web form sends them."""
    return {
        "receiptDate": "2025-03-14",
        "receivedFromName": "Karting Club Tripoli",
        "amount": "1,500 USD",
        "tentNumber": "T12",
        "usagePurpose": "Food stand",
        "description": "Corner tent near the pit lane",
        "electricityAvailable": True,
        "chairsAvailable": True,
        "adsZoneA": True,
        "adsZoneC": True,
        "adsTotalQuantity": "4",
        "carFlagsCount": "2",
        "bannerFlagsCount": "2",
        "notes": "Paid in cash",
        "receiverName": "Ahmad",
        "payerName": "Race office",
    }


@pytest.fixture
def sample_details(sample_receipt_fields):
    """Filled receipt form."""
    from tkr_receipts.models.receipt import ReceiptDetails

    return ReceiptDetails.model_validate(sample_receipt_fields)


@pytest.fixture
def sample_scope_items():
    """Scope items as returned by the AI service."""
    from tkr_receipts.models.quotation import ScopeItem

    raw = [
        {
            "category": "cladding",
            "itemDescription": "Granite facade panels, North Elevation",
            "quantity": "50 SQM",
            "materialOrFinish": "Granite, Honed, 30mm",
            "dimensions": "600x1200mm",
            "pageNumber": 5,
            "unitOfMeasure": "SQM",
        },
        {
            "category": "painting",
            "itemDescription": "Paint interior walls, Type P-1",
            "quantity": "2500 SQFT",
            "materialOrFinish": "Eggshell latex",
            "pageNumber": "A-101",
            "unitOfMeasure": "SQFT",
        },
        {
            "category": "painting",
            "itemDescription": "Allowance for touch-ups",
            "quantity": "1 LS",
            "materialOrFinish": "N/A",
            "pageNumber": "P2",
            "unitOfMeasure": "LS",
        },
    ]
    return [ScopeItem.model_validate(item) for item in raw]
