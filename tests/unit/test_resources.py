"""
Unit tests for font and logo resolution
"""
import httpx
import pytest

from tkr_receipts.config.settings import FontConfig
from tkr_receipts.pdf.resources import (
    FaceRole,
    FontSet,
    load_logo,
    load_resources,
    resolve_face,
    resolve_fonts,
)


def _font_config(paths: list[str]) -> FontConfig:
    return FontConfig(FONT_PATHS=",".join(paths))


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


@pytest.mark.unit
@pytest.mark.pdf
class TestFontResolution:
    """Test suite for resolve_face() and resolve_fonts()"""

    @pytest.mark.asyncio
    async def test_all_faces_loaded_from_directory(self, font_dir):
        """
        Test loading from a local directory

        Given: A directory holding all four configured font files
        When: resolve_fonts() is called
        Then: Every face is loaded under its family name
        """
        # Arrange
        config = _font_config([str(font_dir)])

        # Act
        async with _client(_not_found) as client:
            fonts = await resolve_fonts(config, client)

        # Assert
        assert fonts.all_loaded
        assert fonts.latin_regular.name == "Inter"
        assert fonts.arabic_bold.name == "NotoKufiArabic-Bold"
        assert fonts.latin_bold.source.endswith("Inter-Bold.ttf")

    @pytest.mark.asyncio
    async def test_missing_everywhere_falls_back(self, tmp_path):
        """
        Test fallback to built-in faces

        Given: Candidate paths where no font exists
        When: resolve_fonts() is called
        Then: Every face is the Helvetica fallback and marked not loaded
        """
        config = _font_config([str(tmp_path / "empty"), "https://fonts.test/fonts/"])

        async with _client(_not_found) as client:
            fonts = await resolve_fonts(config, client)

        assert fonts == FontSet.fallback()
        assert fonts.arabic_regular.name == "Helvetica"
        assert fonts.arabic_bold.name == "Helvetica-Bold"

    @pytest.mark.asyncio
    async def test_first_usable_candidate_wins(self, font_dir, tmp_path):
        """
        Test candidate order

        Given: A URL answering 404, then a file that is not a font, then a real font
        When: One face is resolved
        Then: The real font is used and the earlier candidates are skipped
        """
        # Arrange
        junk_dir = tmp_path / "junk"
        junk_dir.mkdir()
        (junk_dir / "Inter-Regular.ttf").write_bytes(b"not a font at all")
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(404)

        paths = ["https://cdn.test/fonts/", str(junk_dir), str(font_dir)]

        # Act
        async with _client(handler) as client:
            face = await resolve_face(FaceRole.LATIN_REGULAR, "Inter", "Inter-Regular.ttf", paths, client)

        # Assert
        assert requested == ["https://cdn.test/fonts/Inter-Regular.ttf"]
        assert face.loaded
        assert face.source == f"{font_dir}/Inter-Regular.ttf"

    @pytest.mark.asyncio
    async def test_font_fetched_over_http(self, font_dir):
        """
        Test URL candidates

        Given: A URL base serving the font bytes
        When: The face is resolved
        Then: It is loaded from that URL
        """
        data = (font_dir / "Inter-Bold.ttf").read_bytes()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=data)

        async with _client(handler) as client:
            face = await resolve_face(
                FaceRole.LATIN_BOLD, "Inter-Bold", "Inter-Bold.ttf", ["https://cdn.test/fonts"], client
            )

        assert face.loaded
        assert face.source == "https://cdn.test/fonts/Inter-Bold.ttf"

    def test_face_selection_by_script(self, distinct_fonts):
        """
        Test face lookup

        Given: A font set with a distinct face per role
        When: Faces are requested by script and weight
        Then: The matching face is returned
        """
        from tkr_receipts.utils.script import Script

        assert distinct_fonts.face(Script.ARABIC, bold=True).name == "Times-Bold"
        assert distinct_fonts.face(Script.LATIN).name == "Helvetica"


@pytest.mark.unit
@pytest.mark.pdf
class TestLogoLoading:
    """Test suite for load_logo()"""

    @pytest.mark.asyncio
    async def test_logo_from_url(self, png_logo):
        """
        Test fetching the logo

        Given: A URL serving a PNG
        When: load_logo() is called
        Then: The bytes and pixel size are returned
        """
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=png_logo)

        async with _client(handler) as client:
            data, size = await load_logo("https://img.test/logo.png", client)

        assert data == png_logo
        assert size == (200, 100)

    @pytest.mark.asyncio
    async def test_logo_from_file(self, tmp_path, png_logo):
        """
        Test a local logo path

        Given: A PNG on disk
        When: load_logo() is called with its path
        Then: The image is loaded
        """
        path = tmp_path / "logo.png"
        path.write_bytes(png_logo)

        async with _client(_not_found) as client:
            data, size = await load_logo(str(path), client)

        assert data == png_logo
        assert size == (200, 100)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content,status", [(b"", 500), (b"<html>nope</html>", 200)])
    async def test_logo_failure_is_not_fatal(self, content, status):
        """
        Test logo failures

        Given: A server error or a response that is not an image
        When: load_logo() is called
        Then: (None, None) is returned
        """
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=content)

        async with _client(handler) as client:
            assert await load_logo("https://img.test/logo.png", client) == (None, None)

    @pytest.mark.asyncio
    async def test_no_logo_configured(self):
        """
        Test an empty logo source

        Given: No logo source
        When: load_logo() is called
        Then: Nothing is fetched
        """
        async with _client(_not_found) as client:
            assert await load_logo("", client) == (None, None)

    @pytest.mark.asyncio
    async def test_load_resources_combines_fonts_and_logo(self, font_dir, png_logo):
        """
        Test concurrent resource loading

        Given: Local fonts and a logo URL
        When: load_resources() is called
        Then: The resources hold the loaded fonts and the logo
        """
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=png_logo)

        async with _client(handler) as client:
            resources = await load_resources(
                "https://img.test/logo.png", _font_config([str(font_dir)]), client
            )

        assert resources.fonts.all_loaded
        assert resources.logo_size == (200, 100)
