"""Fetch a public job posting page and pull a title, company and plain-text description."""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass
from urllib.parse import urlparse, urlunparse

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_S = 12.0
MAX_DESCRIPTION_CHARS = 8000
MAX_FIELD_CHARS = 300
DEFAULT_IMPORTED_TITLE = "Imported Job Posting"
DEFAULT_IMPORTED_COMPANY = "Unknown Company"

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class JobPageError(ValueError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class JobPage:
    url: str
    title: str
    company: str
    description: str


def normalize_job_url(raw_url: str) -> tuple[str, str]:
    value = (raw_url or "").strip()
    if not value:
        raise JobPageError("Please provide a valid URL.")
    if "://" not in value:
        value = f"https://{value}"
    try:
        parsed = urlparse(value)
        hostname = (parsed.hostname or "").lower().strip()
    except ValueError as exc:
        raise JobPageError("Please provide a valid URL.") from exc
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc or not hostname:
        raise JobPageError("Please provide a valid URL.")
    normalized = urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), parsed.path or "/", "", parsed.query, ""))
    return normalized, hostname


def host_is_private_or_local(hostname: str) -> bool:
    host = (hostname or "").strip().lower()
    if host in {"localhost", "127.0.0.1", "::1"} or host.endswith(".local"):
        return True
    try:
        ip = ipaddress.ip_address(host)
        return bool(ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved)
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None)
    except OSError:
        # unresolvable hosts fail later at fetch time
        return False
    for _family, _socktype, _proto, _canon, sockaddr in infos:
        try:
            resolved = ipaddress.ip_address(sockaddr[0])
        except (ValueError, IndexError):
            continue
        if resolved.is_private or resolved.is_loopback or resolved.is_link_local or resolved.is_reserved:
            return True
    return False


def _http_client() -> httpx.Client:
    return httpx.Client(timeout=FETCH_TIMEOUT_S, follow_redirects=True, headers=_HEADERS)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    content = tag.get("content") if tag else None
    return content.strip() if isinstance(content, str) else ""


def parse_job_page(html: str, hostname: str) -> tuple[str, str, str]:
    """Return ``(title, company, description)`` for a fetched posting."""
    soup = BeautifulSoup(html, "html.parser")

    page_title = soup.title.get_text(" ", strip=True) if soup.title else ""
    title = (
        _meta_content(soup, property="og:title")
        or _meta_content(soup, name="twitter:title")
        or page_title
        or DEFAULT_IMPORTED_TITLE
    )

    host = hostname[4:] if hostname.startswith("www.") else hostname
    company = _meta_content(soup, property="og:site_name") or host or DEFAULT_IMPORTED_COMPANY

    for node in soup(["script", "style", "noscript"]):
        node.decompose()
    description = re.sub(r"\s+", " ", soup.get_text(" ")).strip()
    return title[:MAX_FIELD_CHARS], company[:MAX_FIELD_CHARS], description[:MAX_DESCRIPTION_CHARS]


def fetch_job_page(raw_url: str) -> JobPage:
    url, hostname = normalize_job_url(raw_url)
    if host_is_private_or_local(hostname):
        raise JobPageError("Private or local URLs are not allowed for job import.")

    try:
        with _http_client() as client:
            response = client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("job_page_fetch_failed host=%s: %s", hostname, exc)
        raise JobPageError("Failed to fetch the URL.", status_code=502) from exc

    if response.status_code >= 400:
        logger.info("job_page_fetch_rejected host=%s status=%s", hostname, response.status_code)
        raise JobPageError(f"Failed to fetch the URL (status {response.status_code}).", status_code=502)

    title, company, description = parse_job_page(response.text or "", hostname)
    return JobPage(url=str(response.url), title=title, company=company, description=description)
