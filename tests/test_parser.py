"""Tests for pasted-list URL parsing."""

from parasight.extraction.parser import PastedUrlParser, parse_urls


class TestPastedUrlParser:
    def test_space_and_comma_separated(self):
        text = "https://a.com/1 https://b.com/2,https://c.com/3"
        assert parse_urls(text) == ["https://a.com/1", "https://b.com/2", "https://c.com/3"]

    def test_ignores_non_urls(self):
        text = "read later:\nhttps://a.com/1\nftp://files.example.com\nexample.com"
        assert parse_urls(text) == ["https://a.com/1"]

    def test_markdown_links_in_document_order(self):
        text = "https://first.com [Second](https://second.com/x) https://third.com"
        assert parse_urls(text) == [
            "https://first.com",
            "https://second.com/x",
            "https://third.com",
        ]

    def test_deduplicates_first_seen(self):
        text = "https://a.com https://b.com https://a.com"
        assert parse_urls(text) == ["https://a.com", "https://b.com"]

    def test_strips_trailing_punctuation(self):
        assert parse_urls("See https://a.com/page.") == ["https://a.com/page"]

    def test_parse_file(self, tmp_path):
        path = tmp_path / "tabs.txt"
        path.write_text("https://a.com\nhttps://b.com\n")
        assert PastedUrlParser().parse_file(path) == ["https://a.com", "https://b.com"]
