"""Parse submitted URLs out of pasted text."""

import re
from pathlib import Path


class PastedUrlParser:
    """Pull http(s) URLs out of a pasted list.

    Accepts whitespace- or comma-separated URLs, one-per-line lists and
    markdown ``[title](url)`` links. Duplicates are dropped, first seen wins.
    """

    # Markdown alternative first so a link's URL is not also matched bare
    URL_PATTERN = re.compile(
        r"\[[^\]]*\]\((https?://[^\)\s]+)\)|(https?://[^\s,<>\"']+)"
    )

    def parse(self, text: str) -> list[str]:
        """Parse URLs from a block of text in document order."""
        urls = []
        for match in self.URL_PATTERN.finditer(text):
            # Trailing sentence punctuation is not part of a bare URL
            url = match.group(1) or match.group(2).rstrip(".);:")
            urls.append(url)
        return list(dict.fromkeys(urls))

    def parse_file(self, file_path: Path) -> list[str]:
        """Parse URLs from a text file."""
        return self.parse(Path(file_path).read_text(encoding="utf-8"))


def parse_urls(text: str) -> list[str]:
    return PastedUrlParser().parse(text)
