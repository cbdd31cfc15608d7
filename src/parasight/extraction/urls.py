"""URL normalization and URL-derived helpers.

The normalized form is only a deduplication key. The submitted URL is what
gets stored and displayed.
"""

import logging
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

# Compared case-insensitively so lower-casing never re-exposes a tracking key
TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "_bhlid",
        "ref",
        "source",
        "fbclid",
        "gclid",
        "msclkid",
        "mc_cid",
        "mc_eid",
        "_hsenc",
        "_hsmi",
        "si",
        "s",
        "t",
    }
)

ARXIV_ID = re.compile(r"arxiv\.org/(?:abs|pdf)/(\d{4}\.\d{4,5}(?:v\d+)?)", re.IGNORECASE)


class InvalidUrlError(ValueError):
    """Submitted URL is malformed or not http(s)."""


def normalize_url(url: str) -> str:
    """Normalize a URL into its deduplication key.

    Steps, in order: force https, strip leading ``www.`` labels, drop the
    fragment, drop tracking parameters, strip trailing slashes (the root
    path stays ``/``), sort query parameters by key, lower-case everything.
    Never raises; unparseable input comes back lower-cased.
    """
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
        if not parts.scheme or not host:
            return url.lower()

        while host.startswith("www."):
            host = host[4:]
        if ":" in host:
            host = f"[{host}]"

        netloc = host
        if parts.port is not None and parts.port != 443:
            netloc = f"{netloc}:{parts.port}"
        if parts.username:
            userinfo = parts.username
            if parts.password:
                userinfo = f"{userinfo}:{parts.password}"
            netloc = f"{userinfo}@{netloc}"

        params = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key.lower() not in TRACKING_PARAMS
        ]
        params.sort(key=lambda kv: (kv[0].lower(), kv[1].lower()))

        path = parts.path.rstrip("/") or "/"

        normalized = urlunsplit(("https", netloc, path, urlencode(params), ""))
        return normalized.lower()
    except ValueError:
        return url.lower()


def validate_submitted_url(url: str) -> str:
    """Return the stripped URL, or raise InvalidUrlError if it is not http(s)."""
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
        # Touch the port so malformed ports surface here
        parts.port
    except ValueError as e:
        raise InvalidUrlError("Invalid URL format") from e

    if not parts.scheme or not parts.netloc:
        raise InvalidUrlError("Invalid URL format")
    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidUrlError("URL must start with http:// or https://")
    return candidate


def arxiv_paper_id(url: str) -> str | None:
    """Extract an arXiv paper id from an /abs/ or /pdf/ URL."""
    match = ARXIV_ID.search(url)
    return match.group(1) if match else None


def hostname(url: str) -> str:
    """Lower-cased hostname without a leading www., or empty string."""
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def title_from_url(url: str) -> str:
    """Build a human-readable title from the URL alone."""
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").removeprefix("www.")
        segments = [p for p in parts.path.split("/") if p]

        # GitHub repos: owner/repo
        if host == "github.com" and len(segments) >= 2:
            return f"{segments[0]}/{segments[1]}"

        if "arxiv.org" in host:
            paper_id = arxiv_paper_id(url)
            if paper_id:
                return f"arXiv:{paper_id}"

        if segments and len(segments[-1]) > 3:
            last = re.sub(r"[-_]", " ", segments[-1])
            return re.sub(r"\.\w+$", "", last)

        return host or url[:50]
    except ValueError:
        return url[:50]
