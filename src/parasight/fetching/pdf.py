"""PDF metadata extraction."""

import logging
from dataclasses import dataclass

import aiohttp
import pymupdf

logger = logging.getLogger(__name__)


@dataclass
class PDFResult:
    """Result of PDF metadata extraction."""

    title: str | None = None
    description: str | None = None
    error: str | None = None


class PDFExtractor:
    """Download a PDF and read its title and opening text."""

    def __init__(
        self,
        timeout_seconds: int = 15,
        max_download_bytes: int = 20_000_000,
        description_length: int = 300,
        user_agent: str = "Parasight/1.0",
    ):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_download_bytes = max_download_bytes
        self.description_length = description_length
        self.user_agent = user_agent

    async def extract(self, url: str) -> PDFResult:
        """Download PDF and extract metadata."""
        try:
            pdf_bytes = await self._download(url)
            if pdf_bytes is None:
                return PDFResult(error="Failed to download PDF")

            title, description = self._extract_metadata(pdf_bytes)
            return PDFResult(title=title, description=description)

        except Exception as e:
            logger.warning(f"PDF extraction failed for {url}: {e}")
            return PDFResult(error=str(e))

    async def _download(self, url: str) -> bytes | None:
        """Download PDF file."""
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            headers = {"User-Agent": self.user_agent}
            async with session.get(url, headers=headers) as response:
                if response.status != 200:
                    return None
                if (response.content_length or 0) > self.max_download_bytes:
                    return None
                return await response.read()

    def _extract_metadata(self, pdf_bytes: bytes) -> tuple[str | None, str | None]:
        """Read the document title and the start of the first page."""
        with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:
            title = (doc.metadata or {}).get("title") or None
            first_page = doc[0].get_text() if doc.page_count else ""

        # Clean up whitespace
        text = " ".join(first_page.split())
        description = text[: self.description_length] or None
        return (title.strip() if title else None), description
