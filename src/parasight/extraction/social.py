"""Expand social-media status URLs into the external links they contain."""

import asyncio
import logging
import re
from urllib.parse import urlsplit

import aiohttp
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

PLATFORM_DOMAINS = ("twitter.com", "x.com")
SHORTENER_DOMAINS = ("t.co",)
OEMBED_ENDPOINT = "https://publish.twitter.com/oembed"

SHORTENER_LINK = re.compile(r"https?://t\.co/[a-zA-Z0-9]+")


def _host_matches(url: str, domains: tuple[str, ...]) -> bool:
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)


def is_social_post_url(url: str) -> bool:
    """True for a status URL on a known social platform."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return _host_matches(url, PLATFORM_DOMAINS) and "/status/" in path


def is_platform_internal(url: str) -> bool:
    return _host_matches(url, PLATFORM_DOMAINS)


def is_shortener(url: str) -> bool:
    return _host_matches(url, SHORTENER_DOMAINS)


class SocialPostExtractor:
    """Fetch a post's embed markup and collect its outbound links."""

    def __init__(
        self,
        embed_timeout_seconds: int = 10,
        redirect_timeout_seconds: int = 5,
        max_redirects: int = 5,
    ):
        self.embed_timeout = aiohttp.ClientTimeout(total=embed_timeout_seconds)
        self.redirect_timeout = aiohttp.ClientTimeout(total=redirect_timeout_seconds)
        self.max_redirects = max_redirects

    def is_social_post_url(self, url: str) -> bool:
        return is_social_post_url(url)

    async def extract_links(self, url: str) -> list[str]:
        """Return external links in the post, first-seen order. Never raises."""
        try:
            markup = await self._fetch_embed_html(url)
            links = self._outbound_anchors(markup)

            for short_link in dict.fromkeys(SHORTENER_LINK.findall(markup)):
                resolved = await self._resolve_redirect(short_link)
                if (
                    resolved
                    and not is_platform_internal(resolved)
                    and not is_shortener(resolved)
                ):
                    links.append(resolved)

            unique = list(dict.fromkeys(links))
            logger.info(f"Extracted {len(unique)} links from post {url}")
            return unique
        except Exception as e:
            logger.error(f"Failed to extract links from post {url}: {e}")
            return []

    def _outbound_anchors(self, markup: str) -> list[str]:
        """Collect anchor hrefs that leave the platform and are not shortened."""
        soup = BeautifulSoup(markup, "html.parser")
        links = []
        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href.startswith(("http://", "https://")):
                continue
            if is_platform_internal(href) or is_shortener(href):
                continue
            links.append(href)
        return links

    async def _fetch_embed_html(self, url: str) -> str:
        """Fetch the oEmbed HTML fragment for a post."""
        # oEmbed only knows the twitter.com host
        parts = urlsplit(url)
        embed_url = parts._replace(netloc="twitter.com").geturl()
        params = {"url": embed_url, "omit_script": "true"}

        async with aiohttp.ClientSession(timeout=self.embed_timeout) as session:
            async with session.get(OEMBED_ENDPOINT, params=params) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
                return data.get("html") or ""

    async def _resolve_redirect(self, url: str) -> str | None:
        """Follow a shortener's redirects with HEAD, returning the final URL."""
        try:
            async with aiohttp.ClientSession(timeout=self.redirect_timeout) as session:
                async with session.head(
                    url, allow_redirects=True, max_redirects=self.max_redirects
                ) as response:
                    return str(response.url)
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            logger.warning(f"Failed to resolve shortened link {url}: {e}")
            return None
