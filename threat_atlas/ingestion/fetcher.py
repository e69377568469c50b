"""Fetches article pages and reduces them to plain text."""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

import requests
from bs4 import BeautifulSoup

from ..errors import FetchFailure

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/115.0 Safari/537.36'
)

BOILERPLATE_TAGS = ('script', 'style', 'nav', 'footer')


@dataclass
class FetchedContent:
    title: str
    text: str
    content_locator: str
    url: str

    def as_markdown(self) -> str:
        """Text handed to the extraction model."""
        return f"# {self.title}\n\nURL: {self.url}\n\n{self.text}"


class ContentFetcher:
    """Downloads a page and strips scripts, styles and navigation."""

    def __init__(self,
                 timeout: float = 15,
                 user_agent: str = DEFAULT_USER_AGENT,
                 archive_dir: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize fetcher.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with each request
            archive_dir: Directory for markdown copies of fetched pages
            session: Optional requests session
        """
        self.timeout = timeout
        self.headers = {'User-Agent': user_agent}
        self.archive_dir = Path(archive_dir) if archive_dir else None
        self.session = session or requests.Session()

    def fetch(self, url: str) -> FetchedContent:
        """
        Fetch and clean a page.

        Args:
            url: Page URL

        Returns:
            FetchedContent with title, cleaned text and a content locator

        Raises:
            FetchFailure: On network errors, timeouts or non-2xx responses
        """
        logger.info(f"Fetching {url}")
        try:
            resp = self.session.get(url, headers=self.headers, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise FetchFailure(f"Failed to fetch URL: {e}") from e

        title, text = clean_html(resp.text)
        content = FetchedContent(title=title, text=text, content_locator=url, url=url)

        if self.archive_dir is not None:
            content.content_locator = self._archive(content)

        return content

    def _archive(self, content: FetchedContent) -> str:
        timestamp = datetime.now().strftime('%Y%m%d%H%M%S%f')
        safe_title = re.sub(r'[^a-z0-9]', '_', content.title, flags=re.IGNORECASE).lower()[:80]
        path = self.archive_dir / f"{timestamp}_{safe_title}.md"

        try:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content.as_markdown(), encoding='utf-8')
        except OSError as e:
            # The archive copy is optional, the text is already in memory
            logger.warning(f"Could not archive {content.url} to {path}: {e}")
            return content.url

        return str(path)


def clean_html(html: str):
    """
    Strip boilerplate from an HTML document.

    Returns:
        Tuple of (title, whitespace-collapsed body text)
    """
    soup = BeautifulSoup(html or '', 'html.parser')

    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()

    title = soup.title.get_text().strip() if soup.title else ''
    body = soup.body if soup.body is not None else soup
    text = re.sub(r'\s+', ' ', body.get_text(separator=' ')).strip()

    return title or 'Untitled Article', text
