"""Async metadata fetcher with rate limiting."""

import asyncio
import logging
import re
import time
from urllib.parse import urlparse

import aiohttp

from ..extraction.urls import arxiv_paper_id, title_from_url
from ..storage.models import PageMetadata
from .arxiv import ArxivClient
from .content import MetadataExtractor
from .pdf import PDFExtractor

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}


class PageFetchError(Exception):
    """Page answered with an error status."""


class MetadataFetcher:
    """Fetch a title and description for a URL.

    arXiv links go to the export API first. PDFs are read directly.
    Everything else is scraped from HTML. ``fetch`` never raises: every
    failure degrades to a URL-derived title and no description.
    """

    PDF_EXTENSIONS = {".pdf"}

    def __init__(
        self,
        requests_per_second: float = 2.0,
        timeout_seconds: int = 15,
        max_redirects: int = 5,
        max_content_length: int = 1_000_000,
        arxiv_client: ArxivClient | None = None,
        pdf_extractor: PDFExtractor | None = None,
    ):
        self.min_interval = 1.0 / requests_per_second
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_redirects = max_redirects
        self.max_content_length = max_content_length
        self.arxiv = arxiv_client or ArxivClient()
        self.pdf_extractor = pdf_extractor or PDFExtractor(timeout_seconds=timeout_seconds)
        self.extractor = MetadataExtractor()
        self._domain_last_request: dict[str, float] = {}

    def is_pdf(self, url: str) -> bool:
        """Check if URL points to a PDF."""
        path = urlparse(url).path.lower()
        return any(path.endswith(ext) for ext in self.PDF_EXTENSIONS)

    async def fetch(self, url: str) -> PageMetadata:
        """Fetch metadata for a URL."""
        try:
            fetch_url = self._canonical_fetch_url(url)

            paper_id = arxiv_paper_id(fetch_url)
            if paper_id:
                metadata = await self.arxiv.fetch(paper_id)
                if metadata.title or metadata.description:
                    return PageMetadata(
                        title=metadata.title or title_from_url(url),
                        description=metadata.description,
                    )

            if self.is_pdf(fetch_url):
                result = await self.pdf_extractor.extract(fetch_url)
                if result.error:
                    logger.warning(f"PDF extraction failed for {url}: {result.error}")
                return PageMetadata(
                    title=result.title or title_from_url(url),
                    description=result.description,
                )

            html = await self._get_page(fetch_url)
            metadata = self.extractor.extract(html, url)
            logger.info(f"Fetched: {metadata.title!r} from {url}")
            return metadata

        except asyncio.TimeoutError:
            logger.warning(f"Timed out fetching {url}")
        except (aiohttp.ClientError, PageFetchError) as e:
            logger.warning(f"Error fetching {url}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error fetching {url}: {e}")

        fallback = title_from_url(url)
        logger.info(f"Using fallback title {fallback!r} for {url}")
        return PageMetadata(title=fallback, description=None)

    def _canonical_fetch_url(self, url: str) -> str:
        """Point arXiv PDF links at their abstract page."""
        if "arxiv.org/pdf/" in url:
            return re.sub(r"\.pdf$", "", url.replace("/pdf/", "/abs/"))
        return url

    async def _get_page(self, url: str) -> str:
        """GET a page with browser headers. Raises PageFetchError on error status."""
        domain = urlparse(url).netloc
        await self._rate_limit(domain)

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(
                url,
                headers=BROWSER_HEADERS,
                allow_redirects=True,
                max_redirects=self.max_redirects,
            ) as response:
                if response.status >= 400:
                    raise PageFetchError(f"HTTP {response.status}")

                content = await response.text(errors="replace")
                return content[: self.max_content_length]

    async def _rate_limit(self, domain: str) -> None:
        """Apply per-domain rate limiting.

        Each caller reserves the next free slot for the domain before
        sleeping, so the fetcher can be shared across event loops.
        """
        now = time.monotonic()
        # A slot older than one interval no longer delays anything
        stale = [
            d for d, slot in self._domain_last_request.items()
            if slot <= now - self.min_interval
        ]
        for d in stale:
            del self._domain_last_request[d]

        last_slot = self._domain_last_request.get(domain)
        slot = now if last_slot is None else max(now, last_slot + self.min_interval)
        self._domain_last_request[domain] = slot
        if slot > now:
            await asyncio.sleep(slot - now)
