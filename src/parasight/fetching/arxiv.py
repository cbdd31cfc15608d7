"""arXiv export API client."""

import asyncio
import logging
import re

import aiohttp
from bs4 import BeautifulSoup

from ..storage.models import PageMetadata

logger = logging.getLogger(__name__)

ARXIV_API_ENDPOINT = "https://export.arxiv.org/api/query"


def parse_arxiv_feed(feed: str) -> PageMetadata:
    """Pull the first entry's title and abstract out of an Atom feed."""
    soup = BeautifulSoup(feed, "html.parser")
    title_el = soup.select_one("entry > title")
    summary_el = soup.select_one("entry > summary")

    title = re.sub(r"\s+", " ", title_el.get_text()).strip() if title_el else ""
    summary = re.sub(r"\s+", " ", summary_el.get_text()).strip() if summary_el else ""
    return PageMetadata(title=title or None, description=summary or None)


class ArxivClient:
    """Look up paper metadata by id via the export API."""

    def __init__(self, timeout_seconds: int = 12):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def fetch(self, paper_id: str) -> PageMetadata:
        """Fetch title and abstract. Returns empty metadata on any failure."""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    ARXIV_API_ENDPOINT, params={"id_list": paper_id}
                ) as response:
                    response.raise_for_status()
                    feed = await response.text()
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            logger.warning(f"Failed to fetch arXiv metadata for {paper_id}: {e}")
            return PageMetadata()

        metadata = parse_arxiv_feed(feed)
        if metadata.title or metadata.description:
            logger.info(f"Fetched arXiv metadata for {paper_id}")
        return metadata
