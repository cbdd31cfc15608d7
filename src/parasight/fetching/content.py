"""Extract title and description from page HTML."""

import re
from typing import Callable

from bs4 import BeautifulSoup

from ..extraction.urls import hostname, title_from_url
from ..storage.models import PageMetadata

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 50

# arXiv <title> looks like "[2401.00001] Actual Paper Title"
ARXIV_TITLE = re.compile(r"^\[[\w.]+\]\s*(.+)$")

Extractor = Callable[[BeautifulSoup], str | None]


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> str | None:
    tag = soup.find("meta", attrs={attr: value})
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def _text(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    if element is None:
        return None
    return re.sub(r"\s+", " ", element.get_text()).strip()


def title_tag(soup: BeautifulSoup) -> str | None:
    return _text(soup, "title")


def arxiv_title_tag(soup: BeautifulSoup) -> str | None:
    title = title_tag(soup)
    if title:
        match = ARXIV_TITLE.match(title)
        if match:
            return match.group(1).strip()
    return title


def arxiv_heading(soup: BeautifulSoup) -> str | None:
    heading = _text(soup, "h1.title")
    if heading:
        return re.sub(r"^Title:\s*", "", heading, flags=re.I).strip()
    return None


def og_title(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "property", "og:title")


def twitter_title(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "name", "twitter:title")


def first_heading(soup: BeautifulSoup) -> str | None:
    return _text(soup, "h1")


def meta_description(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "name", "description")


def og_description(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "property", "og:description")


def twitter_description(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "name", "twitter:description")


def arxiv_abstract(soup: BeautifulSoup) -> str | None:
    abstract = _text(soup, "blockquote.abstract")
    if abstract:
        return re.sub(r"^Abstract:\s*", "", abstract, flags=re.I).strip()
    return None


TITLE_CHAIN: list[Extractor] = [title_tag, og_title, twitter_title, first_heading]
ARXIV_TITLE_CHAIN: list[Extractor] = [
    arxiv_title_tag,
    arxiv_heading,
    og_title,
    twitter_title,
    first_heading,
]
DESCRIPTION_CHAIN: list[Extractor] = [meta_description, og_description, twitter_description]


def first_match(
    extractors: list[Extractor], soup: BeautifulSoup, min_length: int = 1
) -> str | None:
    """Run extractors in order, returning the first result at least min_length long."""
    for extractor in extractors:
        value = extractor(soup)
        if value and len(value) >= min_length:
            return value
    return None


class MetadataExtractor:
    """Extract display metadata from HTML."""

    def extract(self, html: str, url: str) -> PageMetadata:
        soup = BeautifulSoup(html, "html.parser")
        is_arxiv = hostname(url).endswith("arxiv.org")

        chain = ARXIV_TITLE_CHAIN if is_arxiv else TITLE_CHAIN
        title = first_match(chain, soup, MIN_TITLE_LENGTH) or title_from_url(url)

        description = first_match(DESCRIPTION_CHAIN, soup)
        if is_arxiv and (not description or len(description) < MIN_DESCRIPTION_LENGTH):
            abstract = arxiv_abstract(soup)
            if abstract and len(abstract) > MIN_DESCRIPTION_LENGTH:
                description = abstract

        return PageMetadata(title=title, description=description)
