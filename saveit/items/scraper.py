"""Fetch a web page and pull its Open Graph / Twitter Card / HTML metadata."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from saveit.config import SCRAPE_TIMEOUT_SECONDS, SCRAPE_USER_AGENT
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter, time_block

logger = get_logger(__name__)


class ScrapeError(Exception):
    """The page could not be fetched."""


@dataclass
class ScrapedPage:
    title: str | None = None
    description: str | None = None
    image: str | None = None
    favicon: str | None = None
    author: str | None = None
    published_date: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


def _meta(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str | None:
    attrs = {"property": prop} if prop else {"name": name}
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def _link_href(soup: BeautifulSoup, rel: str) -> str | None:
    for tag in soup.find_all("link", href=True):
        rels = tag.get("rel") or []
        if isinstance(rels, str):
            rels = rels.split()
        if " ".join(r.lower() for r in rels) == rel:
            return tag["href"].strip() or None
    return None


def parse_metadata(html: str, url: str) -> ScrapedPage:
    """
    Extract metadata from page HTML, preferring og: then twitter: then plain
    HTML tags. Relative favicon paths are resolved against the page origin.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    title_tag = soup.find("title")
    html_title = title_tag.get_text(strip=True) if title_tag else None

    page = ScrapedPage(
        title=_meta(soup, prop="og:title") or _meta(soup, name="twitter:title") or html_title or None,
        description=(
            _meta(soup, prop="og:description")
            or _meta(soup, name="twitter:description")
            or _meta(soup, name="description")
        ),
        image=_meta(soup, prop="og:image") or _meta(soup, name="twitter:image"),
        favicon=_link_href(soup, "icon") or _link_href(soup, "shortcut icon"),
        author=_meta(soup, name="author") or _meta(soup, prop="article:author"),
        published_date=_meta(soup, prop="article:published_time"),
    )

    if page.favicon and not page.favicon.startswith("http"):
        parsed = urlparse(url)
        page.favicon = urljoin(f"{parsed.scheme}://{parsed.netloc}/", page.favicon)

    return page


def scrape_page(url: str, timeout: float = SCRAPE_TIMEOUT_SECONDS) -> ScrapedPage:
    """
    Download url and parse its metadata.

    Raises:
        ScrapeError: Network failure, timeout, or non-2xx response
    """
    try:
        with time_block("scraper.fetch"):
            response = httpx.get(
                url,
                timeout=timeout,
                follow_redirects=True,
                headers={"User-Agent": SCRAPE_USER_AGENT},
            )
        response.raise_for_status()
    except httpx.HTTPError as e:
        counter("scraper.failed")
        logger.warning("Failed to scrape %s: %s", urlparse(url).netloc, e)
        raise ScrapeError(str(e)) from e

    counter("scraper.success")
    return parse_metadata(response.text, str(response.url))
