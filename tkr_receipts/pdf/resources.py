"""
Font and logo resolution for document generation.

Each of the four logical faces is looked up across the configured
candidate base paths (local directories or http(s) URLs). The first
candidate that yields a usable TrueType file is registered with
reportlab; when every candidate fails the face falls back to a built-in
Helvetica face. All lookups and the logo fetch run concurrently.
"""

import asyncio
import io
import struct
from enum import Enum
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from PIL import Image
from pydantic import BaseModel, ConfigDict
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from tkr_receipts.config.settings import FontConfig, settings
from tkr_receipts.utils.logging import get_logger
from tkr_receipts.utils.script import Script

logger = get_logger(__name__)

SYMBOL_FACE = "ZapfDingbats"


class FontResolutionError(Exception):
    """A single font candidate could not be fetched or parsed."""

    pass


class FaceRole(str, Enum):
    """Logical font faces used by the documents."""

    LATIN_REGULAR = "latin_regular"
    LATIN_BOLD = "latin_bold"
    ARABIC_REGULAR = "arabic_regular"
    ARABIC_BOLD = "arabic_bold"


FALLBACK_FACES = {
    FaceRole.LATIN_REGULAR: "Helvetica",
    FaceRole.LATIN_BOLD: "Helvetica-Bold",
    FaceRole.ARABIC_REGULAR: "Helvetica",
    FaceRole.ARABIC_BOLD: "Helvetica-Bold",
}


class FontFace(BaseModel):
    """A resolved face: the reportlab font name to draw with."""

    model_config = ConfigDict(frozen=True)

    role: FaceRole
    name: str
    loaded: bool
    source: Optional[str] = None


class FontSet(BaseModel):
    """The four faces of one document; never changed after resolution."""

    model_config = ConfigDict(frozen=True)

    latin_regular: FontFace
    latin_bold: FontFace
    arabic_regular: FontFace
    arabic_bold: FontFace

    def face(self, script: Script, bold: bool = False) -> FontFace:
        """Face for text of the given script."""
        if script is Script.ARABIC:
            return self.arabic_bold if bold else self.arabic_regular
        return self.latin_bold if bold else self.latin_regular

    @property
    def all_loaded(self) -> bool:
        return all(f.loaded for f in self.faces())

    def faces(self) -> list[FontFace]:
        return [self.latin_regular, self.latin_bold, self.arabic_regular, self.arabic_bold]

    @classmethod
    def fallback(cls) -> "FontSet":
        """Font set made only of built-in faces."""
        return cls(
            **{
                role.value: FontFace(role=role, name=name, loaded=False)
                for role, name in FALLBACK_FACES.items()
            }
        )


class DocumentResources(BaseModel):
    """Everything fetched before drawing starts."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    fonts: FontSet
    logo: Optional[bytes] = None
    logo_size: Optional[tuple[int, int]] = None


def _is_url(base: str) -> bool:
    return base.startswith(("http://", "https://"))


async def _read_candidate(client: httpx.AsyncClient, base: str, filename: str) -> bytes:
    """Fetch one candidate file from a directory or URL base."""
    if _is_url(base):
        url = base.rstrip("/") + "/" + filename
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise FontResolutionError(f"Request for {url} failed: {e}") from e
        if response.status_code != 200:
            raise FontResolutionError(f"Fetching {url} returned HTTP {response.status_code}")
        return response.content

    path = Path(base) / filename
    if not path.is_file():
        raise FontResolutionError(f"No font file at {path}")
    try:
        async with aiofiles.open(path, mode="rb") as f:
            return await f.read()
    except OSError as e:
        raise FontResolutionError(f"Cannot read {path}: {e}") from e


def _register(font_name: str, data: bytes, source: str) -> None:
    try:
        pdfmetrics.registerFont(TTFont(font_name, io.BytesIO(data)))
    except (TTFError, struct.error, ValueError, KeyError, IndexError) as e:
        raise FontResolutionError(f"{source} is not a usable TrueType font: {e}") from e


async def resolve_face(
    role: FaceRole,
    font_name: str,
    filename: str,
    search_paths: list[str],
    client: httpx.AsyncClient,
) -> FontFace:
    """
    Resolve one logical face.

    Args:
        role: Logical face being resolved
        font_name: Name to register the face under
        filename: Font file name looked up under every base path
        search_paths: Ordered candidate base paths
        client: HTTP client for URL candidates

    Returns:
        The loaded face, or the built-in fallback face
    """
    for base in search_paths:
        source = f"{base.rstrip('/')}/{filename}"
        try:
            data = await _read_candidate(client, base, filename)
            await asyncio.to_thread(_register, font_name, data, source)
        except FontResolutionError as e:
            logger.debug("Font candidate rejected", role=role.value, source=source, error=str(e))
            continue

        logger.info("Font loaded", role=role.value, font=font_name, source=source)
        return FontFace(role=role, name=font_name, loaded=True, source=source)

    fallback = FALLBACK_FACES[role]
    logger.warning(
        "Font unavailable, using fallback face",
        role=role.value,
        filename=filename,
        fallback=fallback,
        tried=len(search_paths),
    )
    return FontFace(role=role, name=fallback, loaded=False)


async def resolve_fonts(
    config: Optional[FontConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FontSet:
    """Resolve all four faces in parallel and wait for every one of them."""
    config = config or settings.fonts
    specs = [
        (FaceRole.LATIN_REGULAR, config.latin_family, config.latin_regular_file),
        (FaceRole.LATIN_BOLD, f"{config.latin_family}-Bold", config.latin_bold_file),
        (FaceRole.ARABIC_REGULAR, config.arabic_family, config.arabic_regular_file),
        (FaceRole.ARABIC_BOLD, f"{config.arabic_family}-Bold", config.arabic_bold_file),
    ]

    async def _resolve_all(http: httpx.AsyncClient) -> list[FontFace]:
        return await asyncio.gather(
            *(
                resolve_face(role, name, filename, config.search_paths, http)
                for role, name, filename in specs
            )
        )

    if client is not None:
        faces = await _resolve_all(client)
    else:
        async with httpx.AsyncClient(timeout=config.fetch_timeout_seconds) as http:
            faces = await _resolve_all(http)

    font_set = FontSet(**{face.role.value: face for face in faces})
    if not (font_set.arabic_regular.loaded and font_set.arabic_bold.loaded):
        logger.warning("Arabic fonts failed to load, Arabic text may not display correctly")
    return font_set


async def load_logo(
    source: Optional[str], client: httpx.AsyncClient
) -> tuple[Optional[bytes], Optional[tuple[int, int]]]:
    """
    Fetch the logo image from a URL or local path.

    Returns:
        (image bytes, (width, height) in pixels), or (None, None) on failure
    """
    if not source:
        return None, None
    try:
        if _is_url(source):
            response = await client.get(source)
            response.raise_for_status()
            data = response.content
        else:
            async with aiofiles.open(source, mode="rb") as f:
                data = await f.read()
        with Image.open(io.BytesIO(data)) as image:
            size = image.size
    except (httpx.HTTPError, OSError) as e:
        logger.warning("Logo unavailable, leaving its space empty", source=source, error=str(e))
        return None, None

    logger.debug("Logo loaded", source=source, width=size[0], height=size[1])
    return data, size


async def load_resources(
    logo_source: Optional[str] = None,
    config: Optional[FontConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> DocumentResources:
    """Resolve fonts and the logo concurrently."""
    config = config or settings.fonts

    async def _load(http: httpx.AsyncClient) -> DocumentResources:
        fonts, (logo, size) = await asyncio.gather(
            resolve_fonts(config, http),
            load_logo(logo_source, http),
        )
        return DocumentResources(fonts=fonts, logo=logo, logo_size=size)

    if client is not None:
        return await _load(client)
    async with httpx.AsyncClient(timeout=config.fetch_timeout_seconds) as http:
        return await _load(http)
