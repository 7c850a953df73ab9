"""Web link helpers: URL validation, title suggestion and page text preview."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

import requests

from .constants import WEB_CONTENT_LIMIT, WEB_FETCH_FAILED, WEB_FETCH_TIMEOUT

log = logging.getLogger(__name__)

_URL_RE = re.compile(
    r"^(https?://)?"
    r"((([a-zA-Z0-9\-]+\.)+[a-zA-Z]{2,})|localhost|((\d{1,3}\.){3}\d{1,3}))"
    r"(:\d+)?"
    r"(/[-a-zA-Z0-9%._~+]*)*"
    r"(\?[;&a-zA-Z0-9%_~+=\-]*)?"
    r"(#[-a-zA-Z0-9%_~+=\-]*)?$"
)
_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&[^;]+;")
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_valid_url(text: str) -> bool:
    return bool(_URL_RE.match(text.strip()))


def normalize_url(text: str) -> str:
    """Add an https:// scheme when the user left it out."""
    text = text.strip()
    if not _SCHEME_RE.match(text):
        text = "https://" + text
    return text


def title_from_url(url: str) -> str:
    """'https://www.example.com/page' -> 'Example Com'."""
    clean = _SCHEME_RE.sub("", url.strip())
    if clean.lower().startswith("www."):
        clean = clean[4:]
    host = urlsplit("https://" + clean).hostname
    if not host:
        return ""
    return host.replace(".", " ").title()


def extract_text(html: str, limit: int = WEB_CONTENT_LIMIT) -> str:
    """Crude tag/entity stripping, trimmed and cut to ``limit`` characters."""
    text = _TAG_RE.sub("", html)
    text = _ENTITY_RE.sub("", text)
    return text.strip()[:limit]


def fetch_page_text(
    url: str,
    *,
    limit: int = WEB_CONTENT_LIMIT,
    timeout: float = WEB_FETCH_TIMEOUT,
    session: requests.Session | None = None,
) -> str:
    """Fetch ``url`` once and return a plain-text preview.

    Network errors return the generic failure message instead of raising.
    A body that is not UTF-8 yields an empty preview.
    """
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(normalize_url(url), timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        log.warning("Failed to fetch %s: %s", url, exc)
        return WEB_FETCH_FAILED
    try:
        html = resp.content.decode("utf-8")
    except UnicodeDecodeError:
        log.info("Non UTF-8 body from %s, no preview", url)
        return ""
    return extract_text(html, limit)
